"""Query collaborator endpoint backed by the local snapshot store."""

from typing import Any

from pydantic import BaseModel, Field
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ...app import Application
from ...query import QueryError


class SqlRequest(BaseModel):
    """Request model for a snapshot-scoped query."""

    snapshot_id: int
    sql: str
    params: list[str | int | float | None] = Field(default_factory=list)


class SqlResponse(BaseModel):
    """Response model for query results."""

    snapshot_id: int
    columns: list[str]
    rows: list[list[Any]]
    row_count: int
    truncated: bool


def create_sql_router(app: Application) -> APIRouter:
    """Create query router."""
    router = APIRouter(prefix="/api", tags=["sql"])

    @router.post("/sql", response_model=SqlResponse)
    async def run_sql(request: SqlRequest):
        """Execute one read-only statement against a snapshot."""
        try:
            result = await app.store.execute(request.snapshot_id, request.sql, request.params)
        except QueryError as e:
            return JSONResponse(status_code=e.status_code or 500, content={"error": e.message})
        except Exception as e:
            return JSONResponse(status_code=500, content={"error": str(e)})
        return {
            "snapshot_id": result.snapshot_id,
            "columns": result.columns,
            "rows": result.rows,
            "row_count": result.row_count,
            "truncated": result.truncated,
        }

    return router
