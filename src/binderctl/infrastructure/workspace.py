"""Workspace: the single dependency injected into every service.

Owns the local database (snapshots, ledger, event WAL), the remote store,
the plugin event bus with its built-in query cache, and the process-local
session state (in-flight syncs and save history).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from binderctl.domain.rate_limit import SaveRateState
from binderctl.infrastructure.database.engine import WORKSPACE_DIRNAME, init_database
from binderctl.infrastructure.ledger import LedgerStore
from binderctl.infrastructure.remote import RemoteStore, SqliteRemoteStore
from binderctl.infrastructure.snapshots import SnapshotStore

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from binderctl.config.settings import BinderSettings
    from binderctl.plugins.builtins.query_cache import QueryCache
    from binderctl.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)


class Workspace:
    """Local binder workspace rooted at ``settings.root``.

    Constructed once at CLI startup and stored on the click context.
    Services receive it via their :class:`BaseService` constructor.
    """

    def __init__(self, settings: BinderSettings, *, remote: RemoteStore | None = None) -> None:
        self._settings = settings
        self._engine: Engine = init_database(self.root)
        self._remote = remote
        self._event_bus: EventBus | None = None
        self._query_cache: QueryCache | None = None
        self.ledger = LedgerStore(self._engine)
        self.snapshots = SnapshotStore(self._engine)
        self.syncs_in_flight: set[str] = set()
        self.save_state = SaveRateState()
        self.init_event_bus()

    @property
    def root(self) -> Path:
        return self._settings.root

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def settings(self) -> BinderSettings:
        return self._settings

    @property
    def owner_id(self) -> str:
        return self._settings.workspace.owner

    @property
    def remote(self) -> RemoteStore:
        """The remote store; the configured SQLite document store by default."""
        if self._remote is None:
            self._remote = SqliteRemoteStore(self._settings.remote_path)
            logger.debug("Using remote store at %s", self._settings.remote_path)
        return self._remote

    @property
    def event_bus(self) -> EventBus | None:
        return self._event_bus

    @property
    def query_cache(self) -> QueryCache | None:
        return self._query_cache

    def init_event_bus(self) -> None:
        """Load plugins and wire up the event bus.

        The built-in query cache is registered first so every ``mark_stale``
        dispatch reaches it.
        """
        from binderctl.plugins.builtins.query_cache import QueryCache
        from binderctl.plugins.event_bus import EventBus
        from binderctl.plugins.manager import PluginManager

        pm = PluginManager()
        self._query_cache = QueryCache()
        pm.register_plugin(self._query_cache, name="query-cache")
        pm.discover_and_load(local_dir=self.root / WORKSPACE_DIRNAME / "plugins")
        self._event_bus = EventBus(self._engine, pm)

    def close(self) -> None:
        """Dispose of database connections held by the workspace."""
        self._engine.dispose()
        if isinstance(self._remote, SqliteRemoteStore):
            self._remote.close()
