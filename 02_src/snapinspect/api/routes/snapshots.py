"""Snapshot view routes: graph, connections, timeline and lookups."""

from dataclasses import asdict
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...app import Application
from ...config import DEFAULT_RECENT_WINDOW_SECONDS, DEFAULT_TIMELINE_PAGE_SIZE, NS_PER_SECOND
from ...models import Health, Relation, SeverityFilter, SortDir, SortKey, TimelineCursor
from ...query import QueryError
from ...timeline import entity_created_at_ns, resolve_timeline_origin_ns

DEFAULT_STUCK_ELAPSED_NS = 5 * NS_PER_SECOND

E = TypeVar("E", bound=Enum)


class NodeResponse(BaseModel):
    """Response model for a graph node."""

    id: str
    kind: str
    process: str
    proc_key: str
    label: str
    display_name: str
    severity: Health
    color: str
    is_ghost: bool
    details: dict[str, Any]
    attrs: dict[str, Any]


class EdgeResponse(BaseModel):
    src_id: str
    dst_id: str
    kind: str
    attrs: dict[str, Any]


class GraphResponse(BaseModel):
    """Response model for a reconciled graph."""

    snapshot_id: int
    nodes: list[NodeResponse]
    edges: list[EdgeResponse]
    ghost_node_ids: list[str]


class LegResponse(BaseModel):
    node_id: str
    token: str
    pending_refs_key: str
    leg_label: str
    direction_from: str
    direction_to: str
    process: str
    proc_key: str
    state: str
    pending_requests: int
    pending_responses: int
    pending_request_ids: list[str]
    pending_response_ids: list[str]
    pid: int | None
    snapshot_status: str
    command: str | None
    cmd_args_preview: str | None
    error_text: str | None
    last_recv_age_ns: int | None
    last_sent_age_ns: int | None
    health: Health
    is_missing: bool


class DuplexResponse(BaseModel):
    key: str
    duplex_label: str
    endpoint_a: str
    endpoint_b: str
    legs: list[LegResponse]
    health: Health
    pending_requests: int
    pending_responses: int
    pending_total: int
    last_recv_age_ns: int | None
    last_sent_age_ns: int | None


class SummaryResponse(BaseModel):
    total: int
    warning_count: int
    critical_count: int


class FiltersResponse(BaseModel):
    severity: SeverityFilter
    process: str | None


class SortResponse(BaseModel):
    key: SortKey
    dir: SortDir


class ConnectionsResponse(BaseModel):
    """Response model for the connections table."""

    captured_at_ns: int | None
    summary: SummaryResponse
    filters: FiltersResponse
    sort: SortResponse
    rows: list[DuplexResponse]
    visible_rows: list[DuplexResponse]


class CursorResponse(BaseModel):
    ts_ns: int
    id: str


class TimelineRowResponse(BaseModel):
    id: str
    ts_ns: int
    name: str
    entity_id: str
    parent_entity_id: str | None
    relation: Relation
    attrs: dict[str, Any]


class TimelineResponse(BaseModel):
    """Response model for one timeline page."""

    rows: list[TimelineRowResponse]
    next_cursor: CursorResponse | None
    origin_ns: int | None


class StuckRequestResponse(BaseModel):
    id: str
    method: str | None
    process: str
    elapsed_ns: int
    connection: str | None
    correlation: str | None


class ProcessOptionResponse(BaseModel):
    proc_key: str
    process: str


class EventResponse(BaseModel):
    id: str
    ts_ns: int
    proc_key: str
    entity_id: str
    parent_entity_id: str | None
    name: str
    attrs: dict[str, Any]


def _query_error(e: QueryError) -> HTTPException:
    return HTTPException(status_code=e.status_code or 502, detail=e.message)


def _parse_enum(enum_type: type[E], value: str, name: str) -> E:
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise HTTPException(status_code=400, detail=f"Invalid {name} {value!r}; expected one of: {allowed}")


def create_snapshots_router(app: Application) -> APIRouter:
    """Create snapshot views router."""
    router = APIRouter(prefix="/api/snapshots", tags=["snapshots"])

    @router.get("/{snapshot_id}/graph", response_model=GraphResponse)
    async def get_graph(snapshot_id: int) -> dict:
        """Graph with ghost nodes for dangling edge endpoints."""
        try:
            graph, views = await app.inspector.graph_view(snapshot_id)
            return {
                "snapshot_id": snapshot_id,
                "nodes": [asdict(view) for view in views],
                "edges": [asdict(edge) for edge in graph.edges],
                "ghost_node_ids": [node.id for node in graph.ghost_nodes],
            }
        except QueryError as e:
            raise _query_error(e)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/{snapshot_id}/connections", response_model=ConnectionsResponse)
    async def get_connections(
        snapshot_id: int,
        sort: str = Query(SortKey.PENDING.value, description="Sort column"),
        dir: str = Query(SortDir.DESC.value, description="Sort direction"),
        severity: str = Query(SeverityFilter.ALL.value, description="Severity filter"),
        process: str | None = Query(None, description="Only rows touching this process"),
    ) -> dict:
        """Duplex connections, sorted, with the filtered subset."""
        try:
            table = await app.inspector.connections(
                snapshot_id,
                sort_key=_parse_enum(SortKey, sort, "sort"),
                sort_dir=_parse_enum(SortDir, dir, "dir"),
                severity=_parse_enum(SeverityFilter, severity, "severity"),
                process=process,
            )
            return {
                "captured_at_ns": table.captured_at_ns,
                "summary": asdict(table.summary),
                "filters": {"severity": table.severity, "process": table.process_filter},
                "sort": {"key": table.sort_key, "dir": table.sort_dir},
                "rows": [asdict(row) for row in table.rows],
                "visible_rows": [asdict(row) for row in table.visible_rows],
            }
        except QueryError as e:
            raise _query_error(e)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/{snapshot_id}/timeline", response_model=TimelineResponse)
    async def get_timeline(
        snapshot_id: int,
        proc_key: str = Query(..., description="Process key of the entity"),
        entity_id: str = Query(..., description="Entity to inspect"),
        limit: int = Query(DEFAULT_TIMELINE_PAGE_SIZE, description="Page size"),
        cursor_ts_ns: int | None = Query(None, description="Cursor timestamp"),
        cursor_id: str | None = Query(None, description="Cursor event id"),
        entity_created_at: int | None = Query(None, description="Entity creation time"),
    ) -> dict:
        """One page of an entity's events, newest first."""
        try:
            if (cursor_ts_ns is None) != (cursor_id is None):
                raise HTTPException(
                    status_code=400,
                    detail="cursor_ts_ns and cursor_id must be given together",
                )
            if limit <= 0:
                raise HTTPException(status_code=400, detail="limit must be positive")
            cursor = None
            if cursor_ts_ns is not None:
                cursor = TimelineCursor(ts_ns=cursor_ts_ns, id=cursor_id)

            page = await app.inspector.timeline_page(
                snapshot_id, proc_key, entity_id, limit, cursor
            )
            # older pages keep the origin the client got with the first page
            origin_ns = None
            if cursor is None:
                origin_ns = resolve_timeline_origin_ns(
                    (row.ts_ns for row in page.rows),
                    entity_created_at_ns({"created_at": entity_created_at}),
                )
            return {
                "rows": [asdict(row) for row in page.rows],
                "next_cursor": asdict(page.next_cursor) if page.next_cursor else None,
                "origin_ns": origin_ns,
            }
        except QueryError as e:
            raise _query_error(e)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/{snapshot_id}/stuck-requests", response_model=list[StuckRequestResponse])
    async def get_stuck_requests(
        snapshot_id: int,
        min_elapsed_ns: int = Query(DEFAULT_STUCK_ELAPSED_NS, ge=0),
    ) -> list[dict]:
        """Requests in flight for at least ``min_elapsed_ns``."""
        try:
            requests = await app.inspector.stuck_requests(snapshot_id, min_elapsed_ns)
            return [asdict(request) for request in requests]
        except QueryError as e:
            raise _query_error(e)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/{snapshot_id}/processes", response_model=list[ProcessOptionResponse])
    async def get_processes(snapshot_id: int) -> list[dict]:
        """Processes selectable as timeline filters."""
        try:
            options = await app.inspector.process_options(snapshot_id)
            return [asdict(option) for option in options]
        except QueryError as e:
            raise _query_error(e)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/{snapshot_id}/events/recent", response_model=list[EventResponse])
    async def get_recent_events(
        snapshot_id: int,
        window_seconds: int = Query(DEFAULT_RECENT_WINDOW_SECONDS, ge=1),
        proc_key: str | None = Query(None, description="Filter by process key"),
        limit: int = Query(500, ge=1, le=5000),
    ) -> list[dict]:
        """Events within a window before the capture time."""
        try:
            events = await app.inspector.recent_events(
                snapshot_id, window_seconds, proc_key, limit
            )
            return [asdict(event) for event in events]
        except QueryError as e:
            raise _query_error(e)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
