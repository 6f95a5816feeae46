"""SQLAlchemy Core table definitions.

Two independent metadata collections:

- :data:`metadata` for the local workspace database (snapshot, ledger,
  event WAL).
- :data:`remote_metadata` for the file-backed remote store, which keeps one
  JSON document per binder the way a document database would.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, Integer, MetaData, Table, Text

metadata = MetaData()

binder_snapshots = Table(
    "binder_snapshots",
    metadata,
    Column("binder_id", Text, primary_key=True),
    Column("owner_id", Text, nullable=False),
    Column("revision", Integer, nullable=False, default=0, server_default="0"),
    Column("payload", Text, nullable=False),  # JSON BinderSnapshot
    Column("pulled_at", Text, nullable=False),
)

pending_changes = Table(
    "pending_changes",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("binder_id", Text, nullable=False),
    Column("card_id", Text, nullable=False),
    Column("kind", Text, nullable=False),  # add | remove | move | update
    Column("payload", Text, nullable=False),  # JSON PendingChange
    Column("created", Text, nullable=False),
    # seq is never reused, even after the newest row is deleted.
    sqlite_autoincrement=True,
)

Index("ix_pending_changes_binder", pending_changes.c.binder_id, pending_changes.c.seq)

pending_preferences = Table(
    "pending_preferences",
    metadata,
    Column("binder_id", Text, primary_key=True),
    Column("payload", Text, nullable=False),  # JSON object of overridden fields
    Column("modified", Text, nullable=False),
)

event_wal = Table(
    "event_wal",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("hook_name", Text, nullable=False),
    Column("payload", Text, nullable=False),  # JSON
    Column("status", Text, nullable=False),
    Column("error", Text),
    Column("retries", Integer, default=0, server_default="0"),
    Column("created", Text, nullable=False),
    Column("completed", Text),
)

remote_metadata = MetaData()

remote_binders = Table(
    "remote_binders",
    remote_metadata,
    Column("binder_id", Text, primary_key=True),
    Column("owner_id", Text, nullable=False),
    Column("revision", Integer, nullable=False, default=0, server_default="0"),
    Column("document", Text, nullable=False),  # JSON BinderSnapshot
    Column("modified", Text, nullable=False),
)
