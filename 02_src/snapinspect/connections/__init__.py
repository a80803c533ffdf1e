"""Duplex connection resolution module."""

from .identity import (
    duplex_key,
    parse_directional_token,
    parse_duplex_pair,
    pending_refs_key,
    resolve_identity,
)
from .pending import PendingRefsIndex
from .resolver import (
    DuplexResolver,
    ProcessLookup,
    classify_health,
    connection_state,
    resolve_duplex_connections,
)
from .table import build_connections_table, sort_rows, summarize

__all__ = [
    "duplex_key",
    "parse_directional_token",
    "parse_duplex_pair",
    "pending_refs_key",
    "resolve_identity",
    "PendingRefsIndex",
    "DuplexResolver",
    "ProcessLookup",
    "classify_health",
    "connection_state",
    "resolve_duplex_connections",
    "build_connections_table",
    "sort_rows",
    "summarize",
]
