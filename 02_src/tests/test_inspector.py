"""Tests for SnapshotInspector over the seeded demo snapshot."""

import pytest

from snapinspect.config import NS_PER_SECOND
from snapinspect.models import Health, SeverityFilter, SortDir, SortKey
from snapinspect.query import SnapshotNotFoundError

CAPTURED_AT_NS = 1_700_000_000_000_000_000


class TestInspectorGraph:
    """Tests for graph views."""

    @pytest.mark.asyncio
    async def test_graph_has_ghosts(self, inspector, seeded_snapshot):
        """Test ghost synthesis on fetched rows."""
        graph = await inspector.graph(seeded_snapshot)

        assert [node.id for node in graph.ghost_nodes] == ["response:1", "task:gone"]
        ids = {node.id for node in graph.nodes}
        assert all(edge.src_id in ids and edge.dst_id in ids for edge in graph.edges)

    @pytest.mark.asyncio
    async def test_graph_view_colors_by_process(self, inspector, seeded_snapshot):
        """Test that views share a color per process."""
        _, views = await inspector.graph_view(seeded_snapshot)

        frontend = {view.color for view in views if view.process == "frontend"}
        assert len(frontend) == 1
        assert len(inspector.colors) >= 2


class TestInspectorConnections:
    """Tests for the connections table."""

    @pytest.mark.asyncio
    async def test_connections(self, inspector, seeded_snapshot):
        """Test the reconciled demo connections."""
        table = await inspector.connections(seeded_snapshot)

        assert table.captured_at_ns == CAPTURED_AT_NS
        assert [row.key for row in table.rows] == ["backend<->frontend", "frontend<->worker"]

        stuck = table.rows[0]
        assert stuck.health == Health.WARNING
        assert stuck.pending_total == 3
        assert stuck.last_recv_age_ns == 20 * NS_PER_SECOND
        assert [leg.is_missing for leg in stuck.legs] == [True, False]

        healthy = table.rows[1]
        assert healthy.health == Health.HEALTHY
        assert len(healthy.legs) == 2
        assert not any(leg.is_missing for leg in healthy.legs)
        assert healthy.legs[0].pid == 4101

    @pytest.mark.asyncio
    async def test_filters(self, inspector, seeded_snapshot):
        """Test filter and sort options pass through."""
        table = await inspector.connections(
            seeded_snapshot,
            sort_key=SortKey.LAST_RECV,
            sort_dir=SortDir.ASC,
            severity=SeverityFilter.CRITICAL,
        )

        assert [row.key for row in table.rows] == ["frontend<->worker", "backend<->frontend"]
        assert table.visible_rows == []
        assert table.summary.total == 2

    @pytest.mark.asyncio
    async def test_unknown_snapshot(self, inspector, seeded_snapshot):
        """Test that a snapshot without capture row is not found."""
        with pytest.raises(SnapshotNotFoundError):
            await inspector.connections(seeded_snapshot + 1)


class TestInspectorTimeline:
    """Tests for timeline access."""

    @pytest.mark.asyncio
    async def test_timeline_page(self, inspector, seeded_snapshot):
        """Test that capture time is looked up for the page."""
        page = await inspector.timeline_page(seeded_snapshot, "frontend-4101", "request:1", 3)

        assert [row.id for row in page.rows] == ["s1-e06", "s1-e05", "s1-e04"]
        assert page.next_cursor is not None

    @pytest.mark.asyncio
    async def test_timeline_session(self, inspector, seeded_snapshot):
        """Test a session walking the whole timeline."""
        session = await inspector.timeline_session(seeded_snapshot, page_size=4)

        assert await session.select("request:1", "frontend-4101") is True
        assert len(session.rows) == 4
        assert await session.load_older() is True
        assert [row.id for row in session.rows][-2:] == ["s1-e02", "s1-e01"]
        assert not session.has_more
        assert session.origin_ns == CAPTURED_AT_NS - 42 * NS_PER_SECOND


class TestInspectorLookups:
    """Tests for stuck requests, process options and recent events."""

    @pytest.mark.asyncio
    async def test_stuck_requests_threshold(self, inspector, seeded_snapshot):
        """Test the elapsed threshold."""
        assert [r.id for r in await inspector.stuck_requests(seeded_snapshot, 0)] == ["request:1"]
        assert await inspector.stuck_requests(seeded_snapshot, 43 * NS_PER_SECOND) == []

    @pytest.mark.asyncio
    async def test_process_options(self, inspector, seeded_snapshot):
        """Test process options."""
        options = await inspector.process_options(seeded_snapshot)

        assert [option.proc_key for option in options] == [
            "backend-4102",
            "frontend-4101",
            "worker-4103",
        ]

    @pytest.mark.asyncio
    async def test_recent_events_by_process(self, inspector, seeded_snapshot):
        """Test filtering recent events by process."""
        assert await inspector.recent_events(seeded_snapshot, proc_key="worker-4103") == []
        events = await inspector.recent_events(seeded_snapshot, proc_key="frontend-4101", limit=2)
        assert [event.id for event in events] == ["s1-e06", "s1-e05"]
