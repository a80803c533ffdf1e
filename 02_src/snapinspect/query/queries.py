"""The logical queries the inspector issues, with typed fetchers.

Every fetcher depends on the exact column order of its SQL; keep the two in
sync when editing either.
"""

import asyncio
from typing import Any, Sequence

from ..attributes import parse_attrs_json
from ..config import DEFAULT_RECENT_WINDOW_SECONDS, NS_PER_SECOND, STUCK_REQUEST_LIMIT
from ..graph import build_graph, edge_from_row, node_from_row
from ..models import (
    Graph,
    ProcessInfo,
    ProcessOption,
    Relation,
    StuckRequest,
    TimelineCursor,
    TimelineEvent,
    TimelinePage,
    TimelineRow,
)
from .client import IQueryClient
from .errors import SnapshotNotFoundError

NODES_SQL = "SELECT id, kind, process, proc_key, attrs_json FROM nodes ORDER BY id"

EDGES_SQL = "SELECT src_id, dst_id, kind, attrs_json FROM edges ORDER BY src_id, dst_id"

STUCK_REQUESTS_SQL = f"""
SELECT
  r.id,
  COALESCE(
    json_extract(r.attrs_json, '$.method'),
    json_extract(r.attrs_json, '$."request.method"')
  ) AS method,
  r.process,
  CAST(COALESCE(
    json_extract(r.attrs_json, '$.elapsed_ns'),
    json_extract(r.attrs_json, '$."request.elapsed_ns"')
  ) AS INTEGER) AS elapsed_ns,
  COALESCE(
    json_extract(r.attrs_json, '$."rpc.connection"'),
    json_extract(r.attrs_json, '$.connection')
  ) AS connection,
  COALESCE(
    json_extract(r.attrs_json, '$.correlation'),
    json_extract(r.attrs_json, '$.correlation_key'),
    json_extract(r.attrs_json, '$."request.correlation_key"')
  ) AS correlation
FROM nodes r
WHERE r.kind = 'request'
  AND CAST(COALESCE(
    json_extract(r.attrs_json, '$.elapsed_ns'),
    json_extract(r.attrs_json, '$."request.elapsed_ns"')
  ) AS INTEGER) >= ?1
  AND NOT EXISTS (
    SELECT 1 FROM nodes resp
    WHERE resp.kind = 'response'
      AND COALESCE(json_extract(resp.attrs_json, '$.status'), '') != 'in_flight'
      AND COALESCE(
        json_extract(resp.attrs_json, '$.correlation'),
        json_extract(resp.attrs_json, '$.correlation_key'),
        json_extract(resp.attrs_json, '$."response.correlation_key"')
      ) = COALESCE(
        json_extract(r.attrs_json, '$.correlation'),
        json_extract(r.attrs_json, '$.correlation_key'),
        json_extract(r.attrs_json, '$."request.correlation_key"')
      )
  )
ORDER BY elapsed_ns DESC, r.id
LIMIT {STUCK_REQUEST_LIMIT}
"""

TIMELINE_PAGE_SQL = """
SELECT id, ts_ns, proc_key, entity_id, name, parent_entity_id, attrs_json
FROM events
WHERE proc_key = ?1
  AND (entity_id = ?2 OR parent_entity_id = ?2)
  AND ts_ns <= ?3
  AND (?4 IS NULL OR ts_ns < ?4 OR (ts_ns = ?4 AND id < ?5))
ORDER BY ts_ns DESC, id DESC
LIMIT ?6
"""

PROCESS_OPTIONS_SQL = """
SELECT proc_key, process FROM snapshot_processes ORDER BY process, proc_key
"""

RECENT_EVENTS_SQL = """
SELECT id, ts_ns, proc_key, entity_id, name, parent_entity_id, attrs_json
FROM events
WHERE ts_ns <= ?1
  AND ts_ns >= ?1 - ?2
  AND (?3 IS NULL OR proc_key = ?3)
ORDER BY ts_ns DESC, id DESC
LIMIT ?4
"""

SNAPSHOT_PROCESSES_SQL = """
SELECT process, proc_key, pid, status, command, cmd_args_preview, error_text, recv_at_ns
FROM snapshot_processes
ORDER BY process, proc_key
"""

CAPTURED_AT_SQL = """
SELECT COALESCE(completed_at_ns, requested_at_ns) FROM snapshots LIMIT 1
"""


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


def event_from_row(row: Sequence[Any]) -> TimelineEvent:
    """Build an event from an ``(id, ts_ns, proc_key, entity_id, name, parent_entity_id, attrs_json)`` row."""
    return TimelineEvent(
        id=str(row[0]),
        ts_ns=int(row[1]),
        proc_key=str(row[2] or ""),
        entity_id=str(row[3] or ""),
        name=str(row[4] or ""),
        parent_entity_id=_optional_str(row[5]),
        attrs=parse_attrs_json(row[6]),
    )


async def fetch_graph(client: IQueryClient, snapshot_id: int) -> Graph:
    """Fetch node and edge rows concurrently, then build the graph."""
    nodes_result, edges_result = await asyncio.gather(
        client.execute(snapshot_id, NODES_SQL),
        client.execute(snapshot_id, EDGES_SQL),
    )
    nodes = [node_from_row(row) for row in nodes_result.rows]
    edges = [edge_from_row(row) for row in edges_result.rows]
    return build_graph(nodes, edges)


async def fetch_stuck_requests(
    client: IQueryClient, snapshot_id: int, min_elapsed_ns: int
) -> list[StuckRequest]:
    result = await client.execute(snapshot_id, STUCK_REQUESTS_SQL, [min_elapsed_ns])
    return [
        StuckRequest(
            id=str(row[0]),
            method=_optional_str(row[1]),
            process=str(row[2] or ""),
            elapsed_ns=int(row[3] or 0),
            connection=_optional_str(row[4]),
            correlation=_optional_str(row[5]),
        )
        for row in result.rows
    ]


async def fetch_timeline_events(
    client: IQueryClient,
    snapshot_id: int,
    proc_key: str,
    entity_id: str,
    captured_at_ns: int,
    limit: int,
    cursor: TimelineCursor | None = None,
) -> list[TimelineEvent]:
    """Raw timeline page rows, newest first under ``(ts_ns, id)``."""
    params = [
        proc_key,
        entity_id,
        captured_at_ns,
        cursor.ts_ns if cursor else None,
        cursor.id if cursor else None,
        limit,
    ]
    result = await client.execute(snapshot_id, TIMELINE_PAGE_SQL, params)
    return [event_from_row(row) for row in result.rows]


async def fetch_timeline_page(
    client: IQueryClient,
    snapshot_id: int,
    proc_key: str,
    entity_id: str,
    captured_at_ns: int,
    limit: int,
    cursor: TimelineCursor | None = None,
) -> TimelinePage:
    """One keyset page for an entity; ``next_cursor`` is set only for a full page."""
    events = await fetch_timeline_events(
        client, snapshot_id, proc_key, entity_id, captured_at_ns, limit, cursor
    )
    rows = [
        TimelineRow(
            id=event.id,
            ts_ns=event.ts_ns,
            name=event.name,
            entity_id=event.entity_id,
            parent_entity_id=event.parent_entity_id,
            relation=Relation.classify(event.entity_id, event.parent_entity_id, entity_id),
            attrs=event.attrs,
        )
        for event in events
    ]
    next_cursor = rows[-1].cursor if rows and len(rows) == limit else None
    return TimelinePage(rows=rows, next_cursor=next_cursor)


async def fetch_process_options(client: IQueryClient, snapshot_id: int) -> list[ProcessOption]:
    result = await client.execute(snapshot_id, PROCESS_OPTIONS_SQL)
    return [ProcessOption(proc_key=str(row[0]), process=str(row[1])) for row in result.rows]


async def fetch_recent_events(
    client: IQueryClient,
    snapshot_id: int,
    captured_at_ns: int,
    window_seconds: int = DEFAULT_RECENT_WINDOW_SECONDS,
    proc_key: str | None = None,
    limit: int = 500,
) -> list[TimelineEvent]:
    params = [captured_at_ns, window_seconds * NS_PER_SECOND, proc_key, limit]
    result = await client.execute(snapshot_id, RECENT_EVENTS_SQL, params)
    return [event_from_row(row) for row in result.rows]


async def fetch_snapshot_processes(client: IQueryClient, snapshot_id: int) -> list[ProcessInfo]:
    result = await client.execute(snapshot_id, SNAPSHOT_PROCESSES_SQL)
    return [
        ProcessInfo(
            process=str(row[0]),
            proc_key=str(row[1]),
            pid=_optional_int(row[2]),
            status=_optional_str(row[3]),
            command=_optional_str(row[4]),
            cmd_args_preview=_optional_str(row[5]),
            error_text=_optional_str(row[6]),
            recv_at_ns=_optional_int(row[7]),
        )
        for row in result.rows
    ]


async def fetch_captured_at_ns(client: IQueryClient, snapshot_id: int) -> int:
    """Capture time of a snapshot; raises SnapshotNotFoundError when unknown."""
    result = await client.execute(snapshot_id, CAPTURED_AT_SQL)
    if not result.rows or result.rows[0][0] is None:
        raise SnapshotNotFoundError(snapshot_id)
    return int(result.rows[0][0])
