"""Snapshot reconciliation and inspection."""

from .app import Application, IApplication
from .config import HealthThresholds
from .connections import DuplexResolver, build_connections_table
from .graph import KindRegistry, ProcessColorCache, build_graph
from .inspector import ISnapshotInspector, SnapshotInspector
from .models import (
    ConnectionLeg,
    ConnectionsTable,
    DuplexConnection,
    Edge,
    Graph,
    Health,
    Node,
    TimelineCursor,
    TimelinePage,
    TimelineRow,
)
from .query import HttpQueryClient, IQueryClient, LocalQueryClient, QueryError
from .storage import ISnapshotStore, SnapshotStore
from .timeline import TimelinePager, TimelineSession

__all__ = [
    # Application
    "Application",
    "IApplication",
    "HealthThresholds",
    # Models
    "Node",
    "Edge",
    "Graph",
    "Health",
    "ConnectionLeg",
    "DuplexConnection",
    "ConnectionsTable",
    "TimelineCursor",
    "TimelineRow",
    "TimelinePage",
    # Components
    "build_graph",
    "KindRegistry",
    "ProcessColorCache",
    "DuplexResolver",
    "build_connections_table",
    "TimelinePager",
    "TimelineSession",
    "IQueryClient",
    "HttpQueryClient",
    "LocalQueryClient",
    "QueryError",
    "ISnapshotStore",
    "SnapshotStore",
    "ISnapshotInspector",
    "SnapshotInspector",
]
