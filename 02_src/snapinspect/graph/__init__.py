"""Graph module."""

from .builder import (
    build_graph,
    build_graph_from_rows,
    edge_from_row,
    make_ghost_node,
    node_from_row,
)
from .colors import ProcessColorCache
from .kinds import DescribeContext, KindRegistry, NodeSummary, default_registry
from .presenter import NodeView, describe_graph

__all__ = [
    "build_graph",
    "build_graph_from_rows",
    "edge_from_row",
    "make_ghost_node",
    "node_from_row",
    "ProcessColorCache",
    "DescribeContext",
    "KindRegistry",
    "NodeSummary",
    "default_registry",
    "NodeView",
    "describe_graph",
]
