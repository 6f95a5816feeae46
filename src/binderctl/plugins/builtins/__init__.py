"""Built-in plugins registered on every workspace."""
