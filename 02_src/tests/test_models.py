"""Tests for data models."""

import pytest

from snapinspect.models import (
    Graph,
    Health,
    Node,
    Relation,
    TimelineCursor,
    TimelineEvent,
)


class TestHealth:
    """Tests for Health ordering."""

    def test_worst(self):
        """Test maximum severity."""
        assert Health.worst() == Health.HEALTHY
        assert Health.worst(Health.HEALTHY, Health.WARNING) == Health.WARNING
        assert Health.worst(Health.CRITICAL, Health.WARNING) == Health.CRITICAL

    def test_values(self):
        """Test wire values."""
        assert Health("warning") is Health.WARNING
        assert Health.CRITICAL.rank > Health.WARNING.rank > Health.HEALTHY.rank


class TestRelation:
    """Tests for Relation.classify."""

    @pytest.mark.parametrize(
        "entity_id,parent_id,expected",
        [
            ("req:1", None, Relation.SELF),
            ("req:1", "req:1", Relation.SELF),
            ("frame:1", "req:1", Relation.PARENT),
            ("frame:1", "other", Relation.CHILD),
        ],
    )
    def test_classify(self, entity_id, parent_id, expected):
        """Test tagging against the target entity."""
        assert Relation.classify(entity_id, parent_id, "req:1") == expected


class TestTimelineCursor:
    """Tests for TimelineCursor ordering."""

    def test_orders_by_ts_then_id(self):
        """Test keyset ordering."""
        assert TimelineCursor(1, "b") < TimelineCursor(2, "a")
        assert TimelineCursor(2, "a") < TimelineCursor(2, "b")
        assert TimelineCursor(2, "a") == TimelineCursor(2, "a")

    def test_event_cursor(self):
        """Test cursor derived from an event."""
        event = TimelineEvent("e1", 5, "p", "x", None, "poll")

        assert event.cursor == TimelineCursor(5, "e1")
        assert event.attrs == {}


class TestGraph:
    """Tests for Graph helpers."""

    def test_node_index_and_kind(self):
        """Test lookups over nodes."""
        nodes = [Node("a", "mutex", "p", "p-1"), Node("b", "ghost", "", "")]
        graph = Graph(nodes=nodes, ghost_nodes=nodes[1:])

        assert graph.node_index()["a"] is nodes[0]
        assert graph.nodes_of_kind("ghost") == [nodes[1]]
        assert nodes[1].is_ghost
        assert not nodes[0].is_ghost
