"""Render-ready node payloads for the layout collaborator."""

from dataclasses import dataclass, field
from typing import Any

from ..models import Graph, Health
from .colors import ProcessColorCache
from .kinds import DescribeContext, KindRegistry


@dataclass
class NodeView:
    id: str
    kind: str
    process: str
    proc_key: str
    label: str
    display_name: str
    severity: Health
    color: str
    is_ghost: bool
    details: dict[str, Any] = field(default_factory=dict)
    attrs: dict[str, Any] = field(default_factory=dict)


def describe_graph(
    graph: Graph,
    registry: KindRegistry,
    colors: ProcessColorCache,
) -> list[NodeView]:
    """Summarize every node (ghosts included) in graph order."""
    context = DescribeContext.from_graph(graph.nodes, graph.edges)
    views = []
    for node in graph.nodes:
        summary = registry.describe(node, context)
        views.append(
            NodeView(
                id=node.id,
                kind=node.kind,
                process=node.process,
                proc_key=node.proc_key,
                label=summary.label,
                display_name=summary.display_name,
                severity=summary.severity,
                color=colors.color_for(node.process),
                is_ghost=node.is_ghost,
                details=summary.details,
                attrs=node.attrs,
            )
        )
    return views
