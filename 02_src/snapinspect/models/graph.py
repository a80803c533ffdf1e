"""Snapshot graph data models."""

from dataclasses import dataclass, field
from typing import Any

AttributeBag = dict[str, Any]

GHOST_KIND = "ghost"


@dataclass(frozen=True)
class Node:
    """A typed entity captured in a snapshot (mutex, request, connection...)."""

    id: str
    kind: str  # open tag, unknown kinds render through the generic describer
    process: str
    proc_key: str
    attrs: AttributeBag = field(default_factory=dict)

    @property
    def is_ghost(self) -> bool:
        return self.kind == GHOST_KIND


@dataclass(frozen=True)
class Edge:
    """A typed relation between two node ids; endpoints may be absent."""

    src_id: str
    dst_id: str
    kind: str
    attrs: AttributeBag = field(default_factory=dict)


@dataclass
class Graph:
    """Nodes (real first, then ghosts), untouched edges and the ghost subset."""

    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    ghost_nodes: list[Node] = field(default_factory=list)

    def node_index(self) -> dict[str, Node]:
        """Map node id to node."""
        return {node.id: node for node in self.nodes}

    def nodes_of_kind(self, kind: str) -> list[Node]:
        """All nodes carrying the given kind tag."""
        return [node for node in self.nodes if node.kind == kind]
