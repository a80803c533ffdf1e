"""SQLite snapshot store."""

import asyncio
import json
import re
import sqlite3
from pathlib import Path
from typing import Iterable, Protocol, Sequence

import aiosqlite

from ..config import MAX_QUERY_ROWS, resolve_db_path
from ..logging_config import get_logger
from ..models import Edge, Node, ProcessInfo, TimelineEvent
from ..query.client import QueryResult, SqlParam
from ..query.errors import QueryError

logger = get_logger(__name__)

# Per-snapshot tables, shadowed by TEMP VIEWs while a query runs.
SCOPED_TABLES = {
    "snapshots": "snapshot_id, requested_at_ns, completed_at_ns, timeout_ms",
    "snapshot_processes": (
        "snapshot_id, process, pid, proc_key, status, command, cmd_args_preview, "
        "recv_at_ns, error_text"
    ),
    "nodes": "snapshot_id, id, kind, process, proc_key, attrs_json",
    "edges": "snapshot_id, src_id, dst_id, kind, attrs_json",
}

_LEADING_COMMENTS = re.compile(r"^(?:\s+|--[^\n]*(?:\n|$)|/\*.*?\*/)*", re.DOTALL)
_MAIN_SCHEMA = re.compile(r"\bmain\s*\.|\bsqlite_(?:temp_)?master\b", re.IGNORECASE)

_READ_ONLY_ACTIONS = {
    sqlite3.SQLITE_READ,
    sqlite3.SQLITE_SELECT,
    sqlite3.SQLITE_FUNCTION,
    sqlite3.SQLITE_RECURSIVE,
}


def _read_only_authorizer(action, arg1, arg2, db_name, trigger_name):
    if action in _READ_ONLY_ACTIONS:
        return sqlite3.SQLITE_OK
    return sqlite3.SQLITE_DENY


def first_keyword(sql: str) -> str:
    """Leading SQL keyword, lowercased, ignoring comments."""
    body = _LEADING_COMMENTS.sub("", sql, count=1)
    match = re.match(r"[A-Za-z]+", body)
    return match.group(0).lower() if match else ""


class ISnapshotStore(Protocol):
    """Persistent storage for captured snapshots (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Writes
    async def allocate_snapshot_id(self) -> int:
        """Next unused snapshot id."""
        ...

    async def save_snapshot(
        self,
        snapshot_id: int,
        requested_at_ns: int,
        completed_at_ns: int | None = None,
        timeout_ms: int = 0,
    ) -> None:
        """Save the capture row of a snapshot."""
        ...

    async def save_processes(self, snapshot_id: int, processes: Iterable[ProcessInfo]) -> None:
        """Save per-snapshot process metadata."""
        ...

    async def save_nodes(self, snapshot_id: int, nodes: Iterable[Node]) -> None:
        """Save graph nodes of a snapshot."""
        ...

    async def save_edges(self, snapshot_id: int, edges: Iterable[Edge]) -> None:
        """Save graph edges of a snapshot."""
        ...

    async def save_events(self, events: Iterable[TimelineEvent]) -> None:
        """Save runtime events."""
        ...

    # Reads
    async def execute(
        self, snapshot_id: int, sql: str, params: Sequence[SqlParam] = ()
    ) -> QueryResult:
        """Run one read-only statement scoped to a snapshot."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class SnapshotStore:
    """SQLite snapshot store implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        # Read and execute schema
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Writes
    async def allocate_snapshot_id(self) -> int:
        """Next unused snapshot id."""
        conn = self._require_conn()
        async with self._lock:
            cursor = await conn.execute("SELECT COALESCE(MAX(snapshot_id), 0) + 1 FROM snapshots")
            row = await cursor.fetchone()
        return int(row[0])

    async def save_snapshot(
        self,
        snapshot_id: int,
        requested_at_ns: int,
        completed_at_ns: int | None = None,
        timeout_ms: int = 0,
    ) -> None:
        """Save the capture row of a snapshot."""
        conn = self._require_conn()
        async with self._lock:
            await conn.execute(
                """
                INSERT OR REPLACE INTO snapshots
                (snapshot_id, requested_at_ns, completed_at_ns, timeout_ms)
                VALUES (?, ?, ?, ?)
                """,
                (snapshot_id, requested_at_ns, completed_at_ns, timeout_ms),
            )
            await conn.commit()

    async def save_processes(self, snapshot_id: int, processes: Iterable[ProcessInfo]) -> None:
        """Save per-snapshot process metadata."""
        conn = self._require_conn()
        async with self._lock:
            await conn.executemany(
                """
                INSERT OR REPLACE INTO snapshot_processes
                (snapshot_id, process, pid, proc_key, status, command,
                 cmd_args_preview, recv_at_ns, error_text)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        snapshot_id,
                        info.process,
                        info.pid,
                        info.proc_key,
                        info.status or "unknown",
                        info.command,
                        info.cmd_args_preview,
                        info.recv_at_ns,
                        info.error_text,
                    )
                    for info in processes
                ],
            )
            await conn.commit()

    async def save_nodes(self, snapshot_id: int, nodes: Iterable[Node]) -> None:
        """Save graph nodes of a snapshot."""
        conn = self._require_conn()
        async with self._lock:
            await conn.executemany(
                """
                INSERT OR REPLACE INTO nodes
                (snapshot_id, id, kind, process, proc_key, attrs_json)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        snapshot_id,
                        node.id,
                        node.kind,
                        node.process,
                        node.proc_key,
                        json.dumps(node.attrs, default=str),
                    )
                    for node in nodes
                ],
            )
            await conn.commit()

    async def save_edges(self, snapshot_id: int, edges: Iterable[Edge]) -> None:
        """Save graph edges of a snapshot."""
        conn = self._require_conn()
        async with self._lock:
            await conn.executemany(
                """
                INSERT OR REPLACE INTO edges
                (snapshot_id, src_id, dst_id, kind, attrs_json)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (
                        snapshot_id,
                        edge.src_id,
                        edge.dst_id,
                        edge.kind,
                        json.dumps(edge.attrs, default=str),
                    )
                    for edge in edges
                ],
            )
            await conn.commit()

    async def save_events(self, events: Iterable[TimelineEvent]) -> None:
        """Save runtime events."""
        conn = self._require_conn()
        async with self._lock:
            await conn.executemany(
                """
                INSERT OR REPLACE INTO events
                (id, ts_ns, proc_key, entity_id, name, parent_entity_id, attrs_json)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        event.id,
                        event.ts_ns,
                        event.proc_key,
                        event.entity_id,
                        event.name,
                        event.parent_entity_id,
                        json.dumps(event.attrs, default=str),
                    )
                    for event in events
                ],
            )
            await conn.commit()

    # Reads
    async def execute(
        self, snapshot_id: int, sql: str, params: Sequence[SqlParam] = ()
    ) -> QueryResult:
        """Run one read-only statement against the tables of one snapshot.

        ``nodes``, ``edges``, ``snapshot_processes`` and ``snapshots`` resolve to
        views filtered to ``snapshot_id``; ``events`` is shared. At most
        MAX_QUERY_ROWS rows are returned, with ``truncated`` set past that.
        """
        conn = self._require_conn()
        statement = sql.strip()
        if not statement:
            raise QueryError("empty SQL", status_code=400)
        if first_keyword(statement) not in ("select", "with"):
            raise QueryError("only SELECT statements are allowed", status_code=400)
        if _MAIN_SCHEMA.search(statement):
            raise QueryError("direct main schema access is not allowed", status_code=400)

        async with self._lock:
            await self._create_scoped_views(int(snapshot_id))
            await conn.set_authorizer(_read_only_authorizer)
            try:
                cursor = await conn.execute(statement, list(params))
                rows = await cursor.fetchmany(MAX_QUERY_ROWS + 1)
                columns = [column[0] for column in cursor.description or ()]
                await cursor.close()
            except sqlite3.Warning as e:
                raise QueryError(f"query error: {e}", status_code=400) from e
            except sqlite3.Error as e:
                if "not authorized" in str(e):
                    raise QueryError("only read-only statements are allowed", status_code=400) from e
                bad_sql = isinstance(e, (sqlite3.OperationalError, sqlite3.ProgrammingError))
                raise QueryError(f"query error: {e}", status_code=400 if bad_sql else 500) from e
            finally:
                await conn.set_authorizer(None)
                await self._drop_scoped_views()

        truncated = len(rows) > MAX_QUERY_ROWS
        if truncated:
            logger.warning(f"Query result truncated at {MAX_QUERY_ROWS} rows")
            rows = rows[:MAX_QUERY_ROWS]
        return QueryResult(
            snapshot_id=snapshot_id,
            columns=columns,
            rows=[list(row) for row in rows],
            row_count=len(rows),
            truncated=truncated,
        )

    async def _create_scoped_views(self, snapshot_id: int) -> None:
        conn = self._require_conn()
        for table, columns in SCOPED_TABLES.items():
            await conn.execute(f"DROP VIEW IF EXISTS temp.{table}")
            await conn.execute(
                f"CREATE TEMP VIEW {table} AS SELECT {columns} "
                f"FROM main.{table} WHERE snapshot_id = {snapshot_id}"
            )

    async def _drop_scoped_views(self) -> None:
        conn = self._require_conn()
        for table in SCOPED_TABLES:
            await conn.execute(f"DROP VIEW IF EXISTS temp.{table}")
        await conn.commit()

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()
        async with self._lock:
            for table in ("events", "edges", "nodes", "snapshot_processes", "snapshots"):
                await conn.execute(f"DELETE FROM {table}")
            await conn.commit()
