"""Core data models for snapinspect."""

from .connections import (
    ConnectionIdentity,
    ConnectionLeg,
    ConnectionsSummary,
    ConnectionsTable,
    DuplexConnection,
    Health,
    PendingRefs,
    ProcessInfo,
    SeverityFilter,
    SortDir,
    SortKey,
)
from .graph import GHOST_KIND, AttributeBag, Edge, Graph, Node
from .requests import StuckRequest
from .timeline import (
    ProcessOption,
    Relation,
    TimelineCursor,
    TimelineEvent,
    TimelinePage,
    TimelineRow,
)

__all__ = [
    # Graph
    "AttributeBag",
    "Node",
    "Edge",
    "Graph",
    "GHOST_KIND",
    # Connections
    "Health",
    "SortKey",
    "SortDir",
    "SeverityFilter",
    "ProcessInfo",
    "PendingRefs",
    "ConnectionIdentity",
    "ConnectionLeg",
    "DuplexConnection",
    "ConnectionsSummary",
    "ConnectionsTable",
    # Timeline
    "Relation",
    "TimelineCursor",
    "TimelineEvent",
    "TimelineRow",
    "TimelinePage",
    "ProcessOption",
    # Requests
    "StuckRequest",
]
