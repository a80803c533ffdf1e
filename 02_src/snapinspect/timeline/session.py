"""Timeline state for the currently selected entity."""

import asyncio
from typing import Any, Mapping

from ..config import DEFAULT_TIMELINE_PAGE_SIZE
from ..logging_config import get_logger
from ..models import TimelineCursor, TimelinePage, TimelineRow
from ..query import QueryError
from .pager import TimelinePager, entity_created_at_ns, resolve_timeline_origin_ns

logger = get_logger(__name__)


class TimelineSession:
    """Holds the loaded rows for one selected entity at a time.

    Selecting another entity bumps a generation counter and cancels whatever
    fetch is still running, so a late response never lands on the newer
    selection. ``load_older`` calls are serialized: while one is in flight,
    further calls return without fetching.

    Usage:
        session = TimelineSession(pager, captured_at_ns)
        await session.select("request:7", "proc-a", node.attrs)
        while await session.load_older():
            ...
    """

    def __init__(
        self,
        pager: TimelinePager,
        captured_at_ns: int,
        page_size: int = DEFAULT_TIMELINE_PAGE_SIZE,
    ):
        self.pager = pager
        self.captured_at_ns = captured_at_ns
        self.page_size = page_size

        self.entity_id: str | None = None
        self.proc_key: str | None = None
        self.rows: list[TimelineRow] = []
        self.next_cursor: TimelineCursor | None = None
        self.error: str | None = None
        self.origin_ns: int | None = None

        self._created_at_ns: int | None = None
        self._generation = 0
        self._select_task: asyncio.Task | None = None
        self._older_task: asyncio.Task | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def loading(self) -> bool:
        return self._select_task is not None

    @property
    def loading_older(self) -> bool:
        return self._older_task is not None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None

    def _cancel_in_flight(self) -> None:
        for task in (self._select_task, self._older_task):
            if task is not None and not task.done():
                task.cancel()
        self._select_task = None
        self._older_task = None

    async def select(
        self,
        entity_id: str,
        proc_key: str,
        entity_attrs: Mapping[str, Any] | None = None,
    ) -> bool:
        """Switch to an entity and load its newest page.

        Returns False when the result was discarded because another
        selection happened meanwhile.
        """
        self._generation += 1
        generation = self._generation
        self._cancel_in_flight()

        self.entity_id = entity_id
        self.proc_key = proc_key
        self.rows = []
        self.next_cursor = None
        self.error = None
        self._created_at_ns = entity_created_at_ns(entity_attrs)
        self.origin_ns = self._created_at_ns

        task = asyncio.create_task(
            self.pager.fetch_page(proc_key, entity_id, self.captured_at_ns, self.page_size)
        )
        self._select_task = task
        try:
            page = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                return False
            raise
        except QueryError as e:
            if generation != self._generation:
                return False
            logger.warning(f"Timeline fetch failed for {entity_id}: {e.message}")
            self.error = e.message
            return True
        finally:
            if self._select_task is task:
                self._select_task = None

        if generation != self._generation:
            logger.debug(f"Discarding stale timeline page for {entity_id}")
            return False
        self._apply(page, replace=True)
        return True

    async def load_older(self) -> bool:
        """Append the next older page; False when nothing was fetched or applied."""
        if self._older_task is not None or self.next_cursor is None or self.entity_id is None:
            return False

        generation = self._generation
        entity_id = self.entity_id
        task = asyncio.create_task(
            self.pager.fetch_page(
                self.proc_key or "",
                entity_id,
                self.captured_at_ns,
                self.page_size,
                self.next_cursor,
            )
        )
        self._older_task = task
        try:
            page = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                return False
            raise
        except QueryError as e:
            if generation == self._generation:
                logger.warning(f"Older timeline fetch failed for {entity_id}: {e.message}")
                self.error = e.message
            return False
        finally:
            if self._older_task is task:
                self._older_task = None

        if generation != self._generation:
            logger.debug(f"Discarding stale older page for {entity_id}")
            return False
        self._apply(page, replace=False)
        return True

    def _apply(self, page: TimelinePage, replace: bool) -> None:
        if replace:
            self.rows = list(page.rows)
        else:
            self.rows.extend(page.rows)
        self.next_cursor = page.next_cursor
        self.error = None
        self.origin_ns = resolve_timeline_origin_ns(
            (row.ts_ns for row in self.rows), self._created_at_ns
        )

    def close(self) -> None:
        """Cancel outstanding fetches."""
        self._generation += 1
        self._cancel_in_flight()
