"""Timeline paging module."""

from .pager import TimelinePager, entity_created_at_ns, resolve_timeline_origin_ns
from .session import TimelineSession

__all__ = [
    "TimelinePager",
    "TimelineSession",
    "entity_created_at_ns",
    "resolve_timeline_origin_ns",
]
