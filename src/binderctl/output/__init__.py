"""Output layer: human (rich) and machine (JSON) rendering of ServiceResult."""
