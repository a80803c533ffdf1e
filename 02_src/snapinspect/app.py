"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .config import HealthThresholds, resolve_db_path
from .inspector import SnapshotInspector
from .logging_config import get_logger
from .query import HttpQueryClient, IQueryClient, LocalQueryClient
from .storage import ISnapshotStore, SnapshotStore

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        query_url: str | None = None,
        thresholds: HealthThresholds | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._query_url = os.getenv("SNAPINSPECT_QUERY_URL") if query_url is None else query_url
        self._thresholds = thresholds

        # Components (will be initialized in start())
        self._store: ISnapshotStore | None = None
        self._client: HttpQueryClient | LocalQueryClient | None = None
        self._inspector: SnapshotInspector | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Snapshot store (no dependencies)
        self._store = SnapshotStore(self._db_path)
        await self._store.init()
        logger.info("Snapshot store initialized")

        # 2. Query client (remote collaborator or local store)
        if self._query_url:
            self._client = HttpQueryClient(self._query_url)
            logger.info(f"Using remote query collaborator at {self._query_url}")
        else:
            self._client = LocalQueryClient(self._store)
            logger.info("Using local snapshot store for queries")

        # 3. Inspector (depends on query client)
        thresholds = self._thresholds or HealthThresholds.from_env()
        self._inspector = SnapshotInspector(self._client, thresholds)
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        self._inspector = None
        if self._client:
            await self._client.close()
            self._client = None
        if self._store:
            await self._store.close()
            self._store = None
            logger.info("Snapshot store closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._store:
            await self._store.clear()
            logger.info("Snapshot store cleared")
        if self._inspector:
            self._inspector.colors.reset()
        logger.info("Reset complete")

    @property
    def store(self) -> ISnapshotStore:
        """Get snapshot store instance."""
        if not self._store:
            raise RuntimeError("Application not started")
        return self._store

    @property
    def client(self) -> IQueryClient:
        """Get query client instance."""
        if not self._client:
            raise RuntimeError("Application not started")
        return self._client

    @property
    def inspector(self) -> SnapshotInspector:
        """Get inspector instance."""
        if not self._inspector:
            raise RuntimeError("Application not started")
        return self._inspector
