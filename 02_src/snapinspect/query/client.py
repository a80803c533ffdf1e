"""Parameterized tabular query execution over one snapshot."""

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

import httpx

from ..logging_config import get_logger
from .errors import QueryError

logger = get_logger(__name__)

SqlParam = str | int | float | None


@dataclass
class QueryResult:
    snapshot_id: int
    columns: list[str] = field(default_factory=list)
    rows: list[list[Any]] = field(default_factory=list)
    row_count: int = 0
    truncated: bool = False

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> "QueryResult":
        rows = [list(row) for row in payload.get("rows") or []]
        return cls(
            snapshot_id=int(payload.get("snapshot_id", 0)),
            columns=list(payload.get("columns") or []),
            rows=rows,
            row_count=int(payload.get("row_count", len(rows))),
            truncated=bool(payload.get("truncated", False)),
        )


class IQueryClient(Protocol):
    """Runs read-only SQL against the tables of one snapshot."""

    async def execute(
        self, snapshot_id: int, sql: str, params: Sequence[SqlParam] = ()
    ) -> QueryResult:
        """Execute a query; raises QueryError on any failure."""
        ...


class ISnapshotExecutor(Protocol):
    async def execute(
        self, snapshot_id: int, sql: str, params: Sequence[SqlParam] = ()
    ) -> QueryResult: ...


def error_message(response: httpx.Response) -> str:
    """Prefer the body's ``error`` field, else ``"<status> <reason>"``."""
    fallback = f"{response.status_code} {response.reason_phrase}".strip()
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return fallback


class HttpQueryClient:
    """Query collaborator reached over HTTP at ``{base_url}/api/sql``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def execute(
        self, snapshot_id: int, sql: str, params: Sequence[SqlParam] = ()
    ) -> QueryResult:
        payload = {"snapshot_id": snapshot_id, "sql": sql, "params": list(params)}
        try:
            response = await self._client.post("/api/sql", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Query transport error: {e}")
            raise QueryError(f"query transport error: {e}") from e

        if response.is_error:
            message = error_message(response)
            logger.warning(f"Query failed ({response.status_code}): {message}")
            raise QueryError(message, status_code=response.status_code)

        try:
            return QueryResult.from_json(response.json())
        except (ValueError, TypeError) as e:
            raise QueryError(f"invalid query response: {e}", status_code=502) from e

    async def close(self) -> None:
        await self._client.aclose()


class LocalQueryClient:
    """Adapts an in-process snapshot store to the query client protocol."""

    def __init__(self, store: ISnapshotExecutor):
        self._store = store

    async def execute(
        self, snapshot_id: int, sql: str, params: Sequence[SqlParam] = ()
    ) -> QueryResult:
        return await self._store.execute(snapshot_id, sql, params)

    async def close(self) -> None:
        pass
