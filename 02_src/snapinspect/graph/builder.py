"""Graph construction with ghost endpoints for dangling edges."""

from typing import Any, Iterable, Sequence

from ..attributes import parse_attrs_json
from ..logging_config import get_logger
from ..models import GHOST_KIND, Edge, Graph, Node

logger = get_logger(__name__)

GHOST_SOURCE = "dangling_edge"


def node_from_row(row: Sequence[Any]) -> Node:
    """Build a Node from an ``(id, kind, process, proc_key, attrs_json)`` row."""
    return Node(
        id=str(row[0]),
        kind=str(row[1] or ""),
        process=str(row[2] or ""),
        proc_key=str(row[3] or ""),
        attrs=parse_attrs_json(row[4]),
    )


def edge_from_row(row: Sequence[Any]) -> Edge:
    """Build an Edge from a ``(src_id, dst_id, kind, attrs_json)`` row."""
    return Edge(
        src_id=str(row[0]),
        dst_id=str(row[1]),
        kind=str(row[2] or ""),
        attrs=parse_attrs_json(row[3]),
    )


def make_ghost_node(node_id: str, missing_side: str) -> Node:
    """Placeholder standing in for an edge endpoint absent from the snapshot."""
    return Node(
        id=node_id,
        kind=GHOST_KIND,
        process="",
        proc_key="",
        attrs={
            "reason": f"missing_{missing_side}",
            "missing_side": missing_side,
            "source": GHOST_SOURCE,
        },
    )


def build_graph(nodes: Iterable[Node], edges: Iterable[Edge]) -> Graph:
    """Assemble a Graph in which every edge endpoint resolves to a node.

    Missing endpoint ids get exactly one ghost node each, keyed by id and
    recording the side on which the id was first seen missing. Edges are kept
    as given, never dropped and never deduplicated. A repeated real node id
    keeps its first row.
    """
    real_nodes: list[Node] = []
    index: dict[str, Node] = {}
    for node in nodes:
        if node.id in index:
            logger.debug("Duplicate node row ignored: %s", node.id)
            continue
        index[node.id] = node
        real_nodes.append(node)

    edge_list = list(edges)
    ghosts: dict[str, Node] = {}

    for edge in edge_list:
        for endpoint_id, side in ((edge.src_id, "src"), (edge.dst_id, "dst")):
            if endpoint_id in index or endpoint_id in ghosts:
                continue
            ghosts[endpoint_id] = make_ghost_node(endpoint_id, side)

    if ghosts:
        logger.debug(
            "Synthesized ghost nodes for dangling edges",
            extra={"context": {"ghosts": len(ghosts), "edges": len(edge_list)}},
        )

    ghost_nodes = list(ghosts.values())
    return Graph(
        nodes=real_nodes + ghost_nodes,
        edges=edge_list,
        ghost_nodes=ghost_nodes,
    )


def build_graph_from_rows(
    node_rows: Iterable[Sequence[Any]],
    edge_rows: Iterable[Sequence[Any]],
) -> Graph:
    """Build a Graph straight from node/edge listing rows."""
    return build_graph(
        (node_from_row(row) for row in node_rows),
        (edge_from_row(row) for row in edge_rows),
    )
