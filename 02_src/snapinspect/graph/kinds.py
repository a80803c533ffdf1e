"""Kind-tag dispatch for node summaries.

Node kinds are an open set. Describers are registered per kind in a
``KindRegistry``; anything unregistered goes through the generic describer,
so a new kind renders without touching any call site.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from ..attributes import (
    aliases,
    duration_ns,
    first_bool,
    first_int,
    first_string,
    first_timestamp_ns,
)
from ..config import NS_PER_SECOND
from ..models import Edge, Health, Node

SLOW_WARN_NS = 1 * NS_PER_SECOND
SLOW_CRIT_NS = 5 * NS_PER_SECOND
HELD_WARN_NS = 100_000_000
HELD_CRIT_NS = 1 * NS_PER_SECOND


@dataclass
class NodeSummary:
    """Render-ready digest of a node."""

    label: str
    display_name: str
    severity: Health = Health.HEALTHY
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class DescribeContext:
    """Graph-wide lookups some describers need."""

    method_by_correlation: dict[str, str] = field(default_factory=dict)
    incoming: dict[str, int] = field(default_factory=dict)
    outgoing: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_graph(cls, nodes: Iterable[Node], edges: Iterable[Edge]) -> "DescribeContext":
        context = cls()
        for node in nodes:
            if node.kind != "request":
                continue
            method = first_string(node.attrs, aliases.REQUEST_METHOD)
            correlation = first_string(node.attrs, aliases.CORRELATION)
            if method and correlation:
                context.method_by_correlation[correlation] = method
        for edge in edges:
            context.outgoing[edge.src_id] = context.outgoing.get(edge.src_id, 0) + 1
            context.incoming[edge.dst_id] = context.incoming.get(edge.dst_id, 0) + 1
        return context


Describer = Callable[[Node, DescribeContext], NodeSummary]


def _duration_health(ns: int | None, warn_ns: int, crit_ns: int) -> Health:
    if ns is None:
        return Health.HEALTHY
    if ns >= crit_ns:
        return Health.CRITICAL
    if ns >= warn_ns:
        return Health.WARNING
    return Health.HEALTHY


def _label(node: Node, *candidates: str | None) -> str:
    for candidate in candidates:
        if candidate:
            return candidate
    return first_string(node.attrs, aliases.LABEL) or node.id


def _wait_ns(node: Node) -> int | None:
    queued = first_timestamp_ns(node.attrs, aliases.QUEUED_AT) or first_timestamp_ns(
        node.attrs, aliases.CREATED_AT
    )
    started = first_timestamp_ns(node.attrs, aliases.STARTED_AT)
    return duration_ns(queued, started)


def describe_generic(node: Node, context: DescribeContext) -> NodeSummary:
    return NodeSummary(
        label=_label(node, first_string(node.attrs, aliases.METHOD)),
        display_name=node.kind or "unknown",
        details={"source": first_string(node.attrs, aliases.SOURCE)},
    )


def describe_request(node: Node, context: DescribeContext) -> NodeSummary:
    elapsed = first_int(node.attrs, aliases.ELAPSED_NS)
    return NodeSummary(
        label=_label(node, first_string(node.attrs, aliases.REQUEST_METHOD)),
        display_name="Request",
        severity=_duration_health(elapsed, SLOW_WARN_NS, SLOW_CRIT_NS),
        details={
            "method": first_string(node.attrs, aliases.REQUEST_METHOD),
            "correlation": first_string(node.attrs, aliases.CORRELATION),
            "status": first_string(node.attrs, aliases.STATUS),
            "elapsed_ns": elapsed,
            "queue_wait_ns": _wait_ns(node),
        },
    )


def describe_response(node: Node, context: DescribeContext) -> NodeSummary:
    correlation = first_string(node.attrs, aliases.CORRELATION)
    method = first_string(node.attrs, aliases.METHOD)
    if method is None and correlation:
        method = context.method_by_correlation.get(correlation)
    status = first_string(node.attrs, aliases.STATUS)
    return NodeSummary(
        label=_label(node, method),
        display_name="Response",
        severity=Health.WARNING if status == "in_flight" else Health.HEALTHY,
        details={
            "method": method,
            "correlation": correlation,
            "status": status,
            "completed_at_ns": first_timestamp_ns(node.attrs, aliases.COMPLETED_AT),
        },
    )


def describe_mutex(node: Node, context: DescribeContext) -> NodeSummary:
    holder = first_string(node.attrs, aliases.HOLDER)
    waiters = first_int(node.attrs, aliases.WAITERS) or 0
    held_ns = first_int(node.attrs, aliases.HELD_NS)
    if holder and waiters > 0:
        severity = Health.CRITICAL
    elif holder:
        severity = Health.worst(
            Health.WARNING, _duration_health(held_ns, HELD_WARN_NS, HELD_CRIT_NS)
        )
    else:
        severity = Health.HEALTHY
    return NodeSummary(
        label=_label(node),
        display_name="Mutex",
        severity=severity,
        details={
            "state": "held" if holder else "free",
            "holder": holder,
            "waiters": waiters,
            "held_ns": held_ns,
        },
    )


def describe_rwlock(node: Node, context: DescribeContext) -> NodeSummary:
    readers = first_int(node.attrs, aliases.READERS) or 0
    reader_waiters = first_int(node.attrs, aliases.READER_WAITERS) or 0
    writer_waiters = first_int(node.attrs, aliases.WRITER_WAITERS) or 0
    holder = first_string(node.attrs, aliases.HOLDER)
    held = bool(holder) or readers > 0
    waiting = reader_waiters + writer_waiters
    if held and waiting > 0:
        severity = Health.CRITICAL
    elif held:
        severity = Health.WARNING
    else:
        severity = Health.HEALTHY
    return NodeSummary(
        label=_label(node),
        display_name="RwLock",
        severity=severity,
        details={
            "readers": readers,
            "writer": holder,
            "reader_waiters": reader_waiters,
            "writer_waiters": writer_waiters,
            "held_ns": first_int(node.attrs, aliases.HELD_NS),
        },
    )


def describe_channel_tx(node: Node, context: DescribeContext) -> NodeSummary:
    buffered = first_int(node.attrs, aliases.BUFFERED) or 0
    capacity = first_int(node.attrs, aliases.CAPACITY) or 0
    fill = buffered / capacity if capacity > 0 else 0.0
    if capacity > 0 and buffered >= capacity:
        severity = Health.CRITICAL
    elif fill >= 0.5:
        severity = Health.WARNING
    else:
        severity = Health.HEALTHY
    return NodeSummary(
        label=_label(node),
        display_name="Channel Tx",
        severity=severity,
        details={
            "channel_kind": first_string(node.attrs, aliases.CHANNEL_KIND),
            "buffered": buffered,
            "capacity": capacity or None,
            "full": capacity > 0 and buffered >= capacity,
        },
    )


def describe_channel_rx(node: Node, context: DescribeContext) -> NodeSummary:
    alive = first_bool(node.attrs, aliases.RECEIVER_ALIVE)
    state = first_string(node.attrs, aliases.STATE) or "idle"
    if alive is False:
        severity = Health.CRITICAL
    elif state == "starved":
        severity = Health.WARNING
    else:
        severity = Health.HEALTHY
    return NodeSummary(
        label=_label(node),
        display_name="Channel Rx",
        severity=severity,
        details={
            "channel_kind": first_string(node.attrs, aliases.CHANNEL_KIND),
            "state": state,
            "receiver_alive": alive,
            "buffered": first_int(node.attrs, aliases.BUFFERED),
        },
    )


def describe_semaphore(node: Node, context: DescribeContext) -> NodeSummary:
    available = first_int(node.attrs, aliases.PERMITS_AVAILABLE)
    total = first_int(node.attrs, aliases.PERMITS_TOTAL)
    waiters = first_int(node.attrs, aliases.WAITERS) or 0
    if available == 0 and waiters > 0:
        severity = Health.CRITICAL
    elif available == 0:
        severity = Health.WARNING
    else:
        severity = Health.HEALTHY
    return NodeSummary(
        label=_label(node),
        display_name="Semaphore",
        severity=severity,
        details={"available": available, "total": total, "waiters": waiters},
    )


def describe_future(node: Node, context: DescribeContext) -> NodeSummary:
    polls = first_int(node.attrs, aliases.POLL_COUNT)
    last_polled = first_int(node.attrs, aliases.LAST_POLLED_NS)
    # never polled is suspicious
    severity = (
        Health.CRITICAL
        if polls == 0
        else _duration_health(last_polled, SLOW_WARN_NS, SLOW_CRIT_NS)
    )
    return NodeSummary(
        label=_label(node),
        display_name="Future",
        severity=severity,
        details={
            "state": first_string(node.attrs, aliases.STATE) or "waiting",
            "poll_count": polls,
            "last_polled_ns": last_polled,
        },
    )


def describe_oneshot(node: Node, context: DescribeContext) -> NodeSummary:
    state = first_string(node.attrs, aliases.STATE) or "pending"
    elapsed = first_int(node.attrs, aliases.ELAPSED_NS)
    severity = (
        Health.CRITICAL
        if state == "dropped"
        else _duration_health(elapsed, SLOW_WARN_NS, SLOW_CRIT_NS)
    )
    return NodeSummary(
        label=_label(node),
        display_name="Oneshot",
        severity=severity,
        details={"state": state, "elapsed_ns": elapsed},
    )


def describe_connection(node: Node, context: DescribeContext) -> NodeSummary:
    state = first_string(node.attrs, aliases.CONNECTION_STATE)
    return NodeSummary(
        label=_label(node, first_string(node.attrs, aliases.CONNECTION_TOKEN)),
        display_name="Connection",
        severity=Health.WARNING if state == "closed" else Health.HEALTHY,
        details={
            "state": state if state in ("open", "closed") else "unknown",
            "pending_requests": first_int(node.attrs, aliases.PENDING_REQUESTS),
            "pending_responses": first_int(node.attrs, aliases.PENDING_RESPONSES),
        },
    )


def describe_ghost(node: Node, context: DescribeContext) -> NodeSummary:
    return NodeSummary(
        label=node.id,
        display_name="Ghost",
        severity=Health.WARNING,
        details={
            "reason": first_string(node.attrs, aliases.GHOST_REASON) or "unresolved",
            "missing_side": first_string(node.attrs, aliases.GHOST_MISSING_SIDE),
            "incoming": context.incoming.get(node.id, 0),
            "outgoing": context.outgoing.get(node.id, 0),
        },
    )


class KindRegistry:
    """Maps a kind tag to its describer, with a mandatory fallback."""

    def __init__(self, default: Describer = describe_generic):
        self._default = default
        self._handlers: dict[str, Describer] = {}

    def register(self, kinds: str | Iterable[str], describer: Describer) -> None:
        """Register a describer for one or more kind tags."""
        if isinstance(kinds, str):
            kinds = [kinds]
        for kind in kinds:
            self._handlers[kind] = describer

    def handler_for(self, kind: str) -> Describer:
        return self._handlers.get(kind, self._default)

    def describe(self, node: Node, context: DescribeContext | None = None) -> NodeSummary:
        """Summarize a node using its kind's describer."""
        return self.handler_for(node.kind)(node, context or DescribeContext())

    @property
    def kinds(self) -> list[str]:
        return sorted(self._handlers)


def default_registry() -> KindRegistry:
    """Registry preloaded with the built-in kinds."""
    registry = KindRegistry()
    registry.register("request", describe_request)
    registry.register("response", describe_response)
    registry.register(("lock", "mutex"), describe_mutex)
    registry.register("rwlock", describe_rwlock)
    registry.register(("tx", "channel_tx", "mpsc_tx", "remote_tx"), describe_channel_tx)
    registry.register(("rx", "channel_rx", "mpsc_rx", "remote_rx"), describe_channel_rx)
    registry.register("semaphore", describe_semaphore)
    registry.register(("future", "task"), describe_future)
    registry.register(("oneshot", "oneshot_tx", "oneshot_rx"), describe_oneshot)
    registry.register("connection", describe_connection)
    registry.register("ghost", describe_ghost)
    return registry
