"""Tests for kind dispatch, node summaries and process colors."""

from snapinspect.graph import (
    DescribeContext,
    KindRegistry,
    NodeSummary,
    ProcessColorCache,
    build_graph,
    default_registry,
    describe_graph,
)
from snapinspect.models import Edge, Health, Node


def _node(node_id: str, kind: str, **attrs) -> Node:
    return Node(id=node_id, kind=kind, process="web", proc_key="web-1", attrs=attrs)


class TestKindRegistry:
    """Tests for KindRegistry."""

    def test_unknown_kind_uses_generic(self):
        """Test that an unregistered kind still renders."""
        registry = default_registry()
        summary = registry.describe(_node("w:1", "widget", label="My widget"))

        assert summary.display_name == "widget"
        assert summary.label == "My widget"
        assert summary.severity == Health.HEALTHY

    def test_generic_falls_back_to_id(self):
        """Test that a bare node is labelled by its id."""
        summary = KindRegistry().describe(_node("w:2", "widget"))

        assert summary.label == "w:2"

    def test_register_many_kinds(self):
        """Test registering one describer under several tags."""
        registry = KindRegistry()

        def describer(node, context):
            return NodeSummary(label="custom", display_name="Custom")

        registry.register(("a", "b"), describer)

        assert registry.kinds == ["a", "b"]
        assert registry.describe(_node("1", "b")).label == "custom"
        assert registry.describe(_node("2", "c")).label == "2"

    def test_default_registry_covers_builtin_kinds(self):
        """Test that built-in kinds are registered."""
        kinds = default_registry().kinds
        for kind in ("request", "response", "mutex", "rwlock", "future", "connection", "ghost"):
            assert kind in kinds


class TestDescribers:
    """Tests for the built-in describers."""

    def test_request_severity_by_elapsed(self):
        """Test slow request thresholds."""
        registry = default_registry()

        fast = registry.describe(_node("r1", "request", elapsed_ns=10))
        slow = registry.describe(_node("r2", "request", elapsed_ns=2_000_000_000))
        stuck = registry.describe(_node("r3", "request", elapsed_ns=6_000_000_000))

        assert fast.severity == Health.HEALTHY
        assert slow.severity == Health.WARNING
        assert stuck.severity == Health.CRITICAL

    def test_request_label_from_method_alias(self):
        """Test that a legacy method key still labels the request."""
        summary = default_registry().describe(
            _node("r", "request", **{"request.method": "Vfs.read"})
        )

        assert summary.label == "Vfs.read"
        assert summary.details["method"] == "Vfs.read"

    def test_request_queue_wait(self):
        """Test queue wait derived from queued and started timestamps."""
        summary = default_registry().describe(
            _node("r", "request", queued_at_ns=1_000_000_000_000_000_000,
                  started_at_ns=1_000_000_000_500_000_000)
        )

        assert summary.details["queue_wait_ns"] == 500_000_000

    def test_response_inherits_method_by_correlation(self):
        """Test response labels borrowed from the matching request."""
        nodes = [
            _node("req", "request", method="Db.query", correlation="c1"),
            _node("resp", "response", correlation="c1", status="in_flight"),
        ]
        context = DescribeContext.from_graph(nodes, [])
        summary = default_registry().describe(nodes[1], context)

        assert summary.label == "Db.query"
        assert summary.severity == Health.WARNING

    def test_mutex_contended_is_critical(self):
        """Test a held mutex with waiters."""
        registry = default_registry()

        contended = registry.describe(_node("m", "mutex", holder="task:1", waiters=2))
        held = registry.describe(_node("m", "lock", holder="task:1"))
        free = registry.describe(_node("m", "mutex"))

        assert contended.severity == Health.CRITICAL
        assert held.severity == Health.WARNING
        assert free.severity == Health.HEALTHY
        assert free.details["state"] == "free"

    def test_channel_tx_full(self):
        """Test a full bounded channel."""
        summary = default_registry().describe(_node("tx", "mpsc_tx", buffered=8, capacity=8))

        assert summary.severity == Health.CRITICAL
        assert summary.details["full"] is True

    def test_channel_rx_dead_receiver(self):
        """Test a dropped receiver."""
        summary = default_registry().describe(_node("rx", "rx", receiver_alive=False))

        assert summary.severity == Health.CRITICAL

    def test_semaphore_exhausted(self):
        """Test permit exhaustion with and without waiters."""
        registry = default_registry()

        assert registry.describe(
            _node("s", "semaphore", available_permits=0, waiters=1)
        ).severity == Health.CRITICAL
        assert registry.describe(
            _node("s", "semaphore", available_permits=0)
        ).severity == Health.WARNING

    def test_future_never_polled(self):
        """Test that an unpolled future is critical."""
        registry = default_registry()

        assert registry.describe(_node("f", "future", poll_count=0)).severity == Health.CRITICAL
        assert registry.describe(_node("f", "future", poll_count=5)).severity == Health.HEALTHY

    def test_connection_state(self):
        """Test connection summary state normalization."""
        registry = default_registry()

        closed = registry.describe(_node("c", "connection", state="closed"))
        odd = registry.describe(_node("c", "connection", state="half-open", pending=2))

        assert closed.severity == Health.WARNING
        assert odd.details["state"] == "unknown"
        assert odd.details["pending_requests"] == 2

    def test_ghost_summary_counts_edges(self):
        """Test ghost details include incoming and outgoing edge counts."""
        graph = build_graph(
            [_node("a", "future"), _node("b", "future")],
            [Edge("a", "g", "needs"), Edge("b", "g", "needs")],
        )
        context = DescribeContext.from_graph(graph.nodes, graph.edges)
        summary = default_registry().describe(graph.ghost_nodes[0], context)

        assert summary.display_name == "Ghost"
        assert summary.severity == Health.WARNING
        assert summary.details["incoming"] == 2
        assert summary.details["outgoing"] == 0
        assert summary.details["reason"] == "missing_dst"


class TestProcessColorCache:
    """Tests for ProcessColorCache."""

    def test_color_is_stable(self):
        """Test that a process maps to the same color every time."""
        cache = ProcessColorCache()
        color = cache.color_for("backend")

        assert cache.color_for("backend") == color
        assert ProcessColorCache().color_for("backend") == color
        assert color.startswith("hsl(")

    def test_reset_keeps_mapping(self):
        """Test that resetting only drops memoized entries."""
        cache = ProcessColorCache()
        color = cache.color_for("frontend")
        assert len(cache) == 1

        cache.reset()

        assert len(cache) == 0
        assert cache.color_for("frontend") == color

    def test_hue_in_range(self):
        """Test hue stays within the color wheel."""
        cache = ProcessColorCache()
        for name in ("", "a", "worker-with-a-very-long-name", "ζ"):
            hue = int(cache.color_for(name)[4:].split(",")[0])
            assert 0 <= hue < 360


class TestDescribeGraph:
    """Tests for describe_graph."""

    def test_views_follow_graph_order(self):
        """Test that every node including ghosts gets a view."""
        graph = build_graph([_node("a", "future", poll_count=1)], [Edge("a", "g", "needs")])
        views = describe_graph(graph, default_registry(), ProcessColorCache())

        assert [v.id for v in views] == ["a", "g"]
        assert views[1].is_ghost
        assert views[0].color == ProcessColorCache().color_for("web")
