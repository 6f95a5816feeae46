"""SQLite database engine and schema via SQLAlchemy Core."""

from binderctl.infrastructure.database.engine import create_db_engine, init_database, open_database
from binderctl.infrastructure.database.schema import (
    binder_snapshots,
    event_wal,
    metadata,
    pending_changes,
    pending_preferences,
    remote_binders,
    remote_metadata,
)

__all__ = [
    "binder_snapshots",
    "create_db_engine",
    "event_wal",
    "init_database",
    "metadata",
    "open_database",
    "pending_changes",
    "pending_preferences",
    "remote_binders",
    "remote_metadata",
]
