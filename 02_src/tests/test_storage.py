"""Tests for the SQLite snapshot store."""

import pytest

from snapinspect.config import MAX_QUERY_ROWS
from snapinspect.models import Edge, Node, ProcessInfo, TimelineEvent
from snapinspect.query import SnapshotNotFoundError, QueryError, fetch_captured_at_ns
from snapinspect.storage import SnapshotStore
from snapinspect.storage.storage import first_keyword


async def _two_snapshots(store: SnapshotStore) -> tuple[int, int]:
    first = await store.allocate_snapshot_id()
    await store.save_snapshot(first, requested_at_ns=100, completed_at_ns=200)
    await store.save_nodes(first, [Node("n1", "mutex", "web", "web-1", {"holder": "t"})])
    await store.save_edges(first, [Edge("n1", "n2", "holds", {})])

    second = await store.allocate_snapshot_id()
    await store.save_snapshot(second, requested_at_ns=300)
    await store.save_nodes(
        second,
        [Node("n1", "future", "web", "web-1", {}), Node("n9", "task", "db", "db-1", {})],
    )
    return first, second


class TestSnapshotStore:
    """Tests for SnapshotStore."""

    @pytest.mark.asyncio
    async def test_allocate_snapshot_ids(self, store):
        """Test that ids increase as snapshots are saved."""
        assert await store.allocate_snapshot_id() == 1
        await store.save_snapshot(1, requested_at_ns=10)
        assert await store.allocate_snapshot_id() == 2

    @pytest.mark.asyncio
    async def test_queries_are_scoped_to_snapshot(self, store):
        """Test that per-snapshot tables only show the requested snapshot."""
        first, second = await _two_snapshots(store)

        one = await store.execute(first, "SELECT id, kind FROM nodes ORDER BY id")
        two = await store.execute(second, "SELECT id, kind FROM nodes ORDER BY id")

        assert one.rows == [["n1", "mutex"]]
        assert two.rows == [["n1", "future"], ["n9", "task"]]
        assert one.columns == ["id", "kind"]
        assert one.snapshot_id == first

    @pytest.mark.asyncio
    async def test_attrs_stored_as_json(self, store):
        """Test attrs round-trip through json_extract."""
        first, _ = await _two_snapshots(store)

        result = await store.execute(
            first, "SELECT json_extract(attrs_json, '$.holder') FROM nodes"
        )

        assert result.rows == [["t"]]

    @pytest.mark.asyncio
    async def test_numbered_params(self, store):
        """Test ?NNN parameters bound from a list."""
        first, _ = await _two_snapshots(store)

        result = await store.execute(
            first, "SELECT id FROM nodes WHERE kind = ?1 AND process = ?2", ["mutex", "web"]
        )

        assert result.rows == [["n1"]]

    @pytest.mark.asyncio
    async def test_with_statement_allowed(self, store):
        """Test that CTE queries are accepted."""
        first, _ = await _two_snapshots(store)

        result = await store.execute(
            first, "WITH k AS (SELECT kind FROM nodes) SELECT COUNT(*) FROM k"
        )

        assert result.rows == [[1]]

    @pytest.mark.asyncio
    async def test_events_are_shared(self, store):
        """Test that events are visible from any snapshot."""
        first, second = await _two_snapshots(store)
        await store.save_events([TimelineEvent("e1", 150, "web-1", "n1", None, "poll", {})])

        for snapshot_id in (first, second):
            result = await store.execute(snapshot_id, "SELECT id FROM events")
            assert result.rows == [["e1"]]

    @pytest.mark.asyncio
    async def test_processes_saved(self, store):
        """Test process metadata persistence."""
        first, _ = await _two_snapshots(store)
        await store.save_processes(
            first, [ProcessInfo("web", "web-1", pid=7, status=None, error_text="late")]
        )

        result = await store.execute(
            first, "SELECT process, pid, status, error_text FROM snapshot_processes"
        )

        assert result.rows == [["web", 7, "unknown", "late"]]

    @pytest.mark.parametrize(
        "sql",
        [
            "DELETE FROM nodes",
            "INSERT INTO events VALUES ('x', 1, 'p', 'e', 'n', NULL, '{}')",
            "DROP TABLE nodes",
            "PRAGMA table_info(nodes)",
            "SELECT * FROM main.nodes",
            "SELECT name FROM sqlite_master",
            "",
        ],
    )
    @pytest.mark.asyncio
    async def test_rejects_non_read_statements(self, store, sql):
        """Test that anything but a scoped read is a 400."""
        await _two_snapshots(store)

        with pytest.raises(QueryError) as exc_info:
            await store.execute(1, sql)

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_rejects_write_inside_with(self, store):
        """Test that a CTE-prefixed write is refused by the authorizer."""
        await _two_snapshots(store)

        with pytest.raises(QueryError) as exc_info:
            await store.execute(1, "WITH x AS (SELECT 1) DELETE FROM events")

        assert exc_info.value.status_code == 400
        result = await store.execute(1, "SELECT COUNT(*) FROM nodes")
        assert result.rows == [[1]]

    @pytest.mark.asyncio
    async def test_multiple_statements_rejected(self, store):
        """Test that only one statement may be run."""
        await _two_snapshots(store)

        with pytest.raises(QueryError) as exc_info:
            await store.execute(1, "SELECT 1; SELECT 2")

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_syntax_error(self, store):
        """Test that malformed SQL is a 400 with the sqlite message."""
        with pytest.raises(QueryError) as exc_info:
            await store.execute(1, "SELECT FROM WHERE")

        assert exc_info.value.status_code == 400
        assert "syntax error" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_truncation(self, store):
        """Test that results are capped with a truncated flag."""
        result = await store.execute(
            1,
            "WITH RECURSIVE n(i) AS (SELECT 1 UNION ALL SELECT i + 1 FROM n WHERE i < ?1) "
            "SELECT i FROM n",
            [MAX_QUERY_ROWS + 10],
        )

        assert result.truncated is True
        assert result.row_count == MAX_QUERY_ROWS
        assert len(result.rows) == MAX_QUERY_ROWS

    @pytest.mark.asyncio
    async def test_views_removed_after_query(self, store):
        """Test that scoping views do not outlive a query."""
        await _two_snapshots(store)
        await store.execute(1, "SELECT * FROM nodes")

        conn = store._require_conn()
        cursor = await conn.execute("SELECT name FROM sqlite_temp_master WHERE type = 'view'")
        assert await cursor.fetchall() == []

    @pytest.mark.asyncio
    async def test_clear(self, store):
        """Test clearing all data."""
        first, _ = await _two_snapshots(store)
        await store.clear()

        result = await store.execute(first, "SELECT COUNT(*) FROM nodes")
        assert result.rows == [[0]]
        assert await store.allocate_snapshot_id() == 1

    @pytest.mark.asyncio
    async def test_not_initialized(self):
        """Test that using an unopened store fails loudly."""
        st = SnapshotStore(":memory:")

        with pytest.raises(RuntimeError):
            await st.execute(1, "SELECT 1")


class TestCapturedAt:
    """Tests for resolving a snapshot's capture time."""

    @pytest.mark.asyncio
    async def test_completed_preferred(self, store, client):
        """Test completed_at over requested_at."""
        first, second = await _two_snapshots(store)

        assert await fetch_captured_at_ns(client, first) == 200
        assert await fetch_captured_at_ns(client, second) == 300

    @pytest.mark.asyncio
    async def test_unknown_snapshot(self, client):
        """Test 404 for a missing snapshot."""
        with pytest.raises(SnapshotNotFoundError) as exc_info:
            await fetch_captured_at_ns(client, 42)

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "snapshot 42 not found"


class TestFirstKeyword:
    """Tests for first_keyword."""

    def test_skips_comments(self):
        """Test leading comments and whitespace."""
        assert first_keyword("  -- note\n/* block */ SELECT 1") == "select"
        assert first_keyword("With x AS (SELECT 1) SELECT * FROM x") == "with"
        assert first_keyword("(SELECT 1)") == ""
