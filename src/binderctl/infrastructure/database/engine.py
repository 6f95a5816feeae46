"""Database engine setup for SQLite with WAL mode.

The workspace DB is stored at {root}/.binderctl/binderctl.db.

SQLAlchemy Core (not ORM) is used because binderctl is a short-lived
CLI process with no benefit from session management or identity maps.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.engine import Engine

from binderctl.infrastructure.database.schema import metadata

WORKSPACE_DIRNAME = ".binderctl"
DB_FILENAME = "binderctl.db"


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def open_database(db_path: Path, tables: MetaData) -> Engine:
    """Create the parent directory and all *tables*, then return the engine.

    Idempotent: safe to call on an existing database.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    tables.create_all(engine)
    return engine


def init_database(root: Path) -> Engine:
    """Initialize the workspace database at ``{root}/.binderctl/binderctl.db``."""
    return open_database(root / WORKSPACE_DIRNAME / DB_FILENAME, metadata)
