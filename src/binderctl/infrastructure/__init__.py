"""Infrastructure layer: local database, ledger and snapshot stores, remote stores.

This layer depends on stdlib, SQLAlchemy, and the domain models it persists.
It must never import from services, commands, or output.
"""
