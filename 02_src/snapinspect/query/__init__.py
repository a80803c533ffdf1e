"""Query collaborator module."""

from .client import HttpQueryClient, IQueryClient, LocalQueryClient, QueryResult
from .errors import QueryError, SnapshotNotFoundError
from .queries import (
    fetch_captured_at_ns,
    fetch_graph,
    fetch_process_options,
    fetch_recent_events,
    fetch_snapshot_processes,
    fetch_stuck_requests,
    fetch_timeline_events,
    fetch_timeline_page,
)

__all__ = [
    "HttpQueryClient",
    "IQueryClient",
    "LocalQueryClient",
    "QueryResult",
    "QueryError",
    "SnapshotNotFoundError",
    "fetch_captured_at_ns",
    "fetch_graph",
    "fetch_process_options",
    "fetch_recent_events",
    "fetch_snapshot_processes",
    "fetch_stuck_requests",
    "fetch_timeline_events",
    "fetch_timeline_page",
]
