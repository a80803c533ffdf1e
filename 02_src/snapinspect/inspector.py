"""Snapshot inspection service: fetch, then reconcile."""

import asyncio
from typing import Protocol

from .config import DEFAULT_RECENT_WINDOW_SECONDS, DEFAULT_THRESHOLDS, HealthThresholds
from .connections import DuplexResolver, build_connections_table
from .graph import KindRegistry, NodeView, ProcessColorCache, default_registry, describe_graph
from .logging_config import get_logger
from .models import (
    ConnectionsTable,
    Graph,
    ProcessOption,
    SeverityFilter,
    SortDir,
    SortKey,
    StuckRequest,
    TimelineCursor,
    TimelineEvent,
    TimelinePage,
)
from .query import (
    IQueryClient,
    fetch_captured_at_ns,
    fetch_graph,
    fetch_process_options,
    fetch_recent_events,
    fetch_snapshot_processes,
    fetch_stuck_requests,
)
from .timeline import TimelinePager, TimelineSession

logger = get_logger(__name__)


class ISnapshotInspector(Protocol):
    """Reconciled views over one captured snapshot."""

    async def graph(self, snapshot_id: int) -> Graph:
        """Nodes and edges with ghosts for dangling endpoints."""
        ...

    async def connections(
        self,
        snapshot_id: int,
        sort_key: SortKey = SortKey.PENDING,
        sort_dir: SortDir = SortDir.DESC,
        severity: SeverityFilter = SeverityFilter.ALL,
        process: str | None = None,
    ) -> ConnectionsTable:
        """Duplex connections table."""
        ...

    async def timeline_page(
        self,
        snapshot_id: int,
        proc_key: str,
        entity_id: str,
        limit: int,
        cursor: TimelineCursor | None = None,
        captured_at_ns: int | None = None,
    ) -> TimelinePage:
        """One timeline page for an entity."""
        ...


class SnapshotInspector:
    """Composes the query client with the reconciliation components."""

    def __init__(
        self,
        client: IQueryClient,
        thresholds: HealthThresholds = DEFAULT_THRESHOLDS,
        registry: KindRegistry | None = None,
        colors: ProcessColorCache | None = None,
    ):
        self.client = client
        self.thresholds = thresholds
        self.registry = registry or default_registry()
        self.colors = colors or ProcessColorCache()

    async def graph(self, snapshot_id: int) -> Graph:
        return await fetch_graph(self.client, snapshot_id)

    async def graph_view(self, snapshot_id: int) -> tuple[Graph, list[NodeView]]:
        """Graph plus render-ready node summaries."""
        graph = await self.graph(snapshot_id)
        return graph, describe_graph(graph, self.registry, self.colors)

    async def connections(
        self,
        snapshot_id: int,
        sort_key: SortKey = SortKey.PENDING,
        sort_dir: SortDir = SortDir.DESC,
        severity: SeverityFilter = SeverityFilter.ALL,
        process: str | None = None,
    ) -> ConnectionsTable:
        captured_at_ns = await self.captured_at_ns(snapshot_id)
        graph, processes = await asyncio.gather(
            fetch_graph(self.client, snapshot_id),
            fetch_snapshot_processes(self.client, snapshot_id),
        )
        resolver = DuplexResolver(captured_at_ns, processes, self.thresholds)
        rows = resolver.resolve(graph.nodes)
        logger.debug(f"Resolved {len(rows)} duplex connections for snapshot {snapshot_id}")
        return build_connections_table(
            rows,
            captured_at_ns=captured_at_ns,
            sort_key=sort_key,
            sort_dir=sort_dir,
            severity=severity,
            process=process,
        )

    async def captured_at_ns(self, snapshot_id: int) -> int:
        return await fetch_captured_at_ns(self.client, snapshot_id)

    def pager(self, snapshot_id: int) -> TimelinePager:
        return TimelinePager(self.client, snapshot_id)

    async def timeline_page(
        self,
        snapshot_id: int,
        proc_key: str,
        entity_id: str,
        limit: int,
        cursor: TimelineCursor | None = None,
        captured_at_ns: int | None = None,
    ) -> TimelinePage:
        """Page of an entity's events; capture time is looked up when not given."""
        if captured_at_ns is None:
            captured_at_ns = await self.captured_at_ns(snapshot_id)
        return await self.pager(snapshot_id).fetch_page(
            proc_key, entity_id, captured_at_ns, limit, cursor
        )

    async def timeline_session(self, snapshot_id: int, page_size: int) -> TimelineSession:
        captured_at_ns = await self.captured_at_ns(snapshot_id)
        return TimelineSession(self.pager(snapshot_id), captured_at_ns, page_size)

    async def stuck_requests(self, snapshot_id: int, min_elapsed_ns: int) -> list[StuckRequest]:
        return await fetch_stuck_requests(self.client, snapshot_id, min_elapsed_ns)

    async def process_options(self, snapshot_id: int) -> list[ProcessOption]:
        return await fetch_process_options(self.client, snapshot_id)

    async def recent_events(
        self,
        snapshot_id: int,
        window_seconds: int = DEFAULT_RECENT_WINDOW_SECONDS,
        proc_key: str | None = None,
        limit: int = 500,
    ) -> list[TimelineEvent]:
        captured_at_ns = await self.captured_at_ns(snapshot_id)
        return await fetch_recent_events(
            self.client, snapshot_id, captured_at_ns, window_seconds, proc_key, limit
        )
