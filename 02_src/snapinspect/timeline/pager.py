"""Keyset-paginated timeline for one entity."""

from typing import Any, Iterable, Mapping

from ..attributes import aliases, first_timestamp_ns
from ..config import DEFAULT_TIMELINE_PAGE_SIZE, TIMELINE_ORIGIN_MAX_SKEW_NS
from ..models import TimelineCursor, TimelinePage
from ..query import IQueryClient, fetch_timeline_page


class TimelinePager:
    """Fetches ``(ts_ns DESC, id DESC)`` pages of an entity's events in one snapshot.

    Each call is parameterized entirely by its arguments, so concurrent
    fetches for different entities never interfere.
    """

    def __init__(self, client: IQueryClient, snapshot_id: int):
        self.client = client
        self.snapshot_id = snapshot_id

    async def fetch_page(
        self,
        proc_key: str,
        entity_id: str,
        captured_at_ns: int,
        limit: int = DEFAULT_TIMELINE_PAGE_SIZE,
        cursor: TimelineCursor | None = None,
    ) -> TimelinePage:
        """Rows at or before the capture time and strictly older than ``cursor``."""
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        return await fetch_timeline_page(
            self.client,
            self.snapshot_id,
            proc_key,
            entity_id,
            captured_at_ns,
            limit,
            cursor,
        )


def entity_created_at_ns(entity_attrs: Mapping[str, Any] | None) -> int | None:
    if not entity_attrs:
        return None
    return first_timestamp_ns(entity_attrs, aliases.CREATED_AT)


def resolve_timeline_origin_ns(
    event_ts_ns: Iterable[int],
    created_at_ns: int | None,
    max_skew_ns: int = TIMELINE_ORIGIN_MAX_SKEW_NS,
) -> int | None:
    """Anchor for relative times on an entity's timeline.

    The entity's creation time wins when it is not after the earliest event and
    not more than ``max_skew_ns`` before it; otherwise the earliest event is used.
    """
    earliest = min(event_ts_ns, default=None)
    if earliest is None:
        return created_at_ns
    if created_at_ns is not None and earliest - max_skew_ns <= created_at_ns <= earliest:
        return created_at_ns
    return earliest
