"""Timeline data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Relation(str, Enum):
    """How a timeline row relates to the inspected entity."""

    SELF = "self"
    PARENT = "parent"
    CHILD = "child"

    @classmethod
    def classify(
        cls, entity_id: str, parent_entity_id: str | None, target: str
    ) -> "Relation":
        """Tag a row matched by ``entity_id = target OR parent_entity_id = target``."""
        if entity_id == target:
            return cls.SELF
        if parent_entity_id == target:
            return cls.PARENT
        return cls.CHILD


@dataclass(frozen=True, order=True)
class TimelineCursor:
    """Keyset position; ordering matches the (ts_ns, id) page order."""

    ts_ns: int
    id: str


@dataclass
class TimelineEvent:
    """A runtime event row, as returned by the recent-events listing."""

    id: str
    ts_ns: int
    proc_key: str
    entity_id: str
    parent_entity_id: str | None
    name: str
    attrs: dict[str, Any] = field(default_factory=dict)

    @property
    def cursor(self) -> TimelineCursor:
        return TimelineCursor(ts_ns=self.ts_ns, id=self.id)


@dataclass
class TimelineRow:
    """An event tagged with its relation to the inspected entity."""

    id: str
    ts_ns: int
    name: str
    entity_id: str
    parent_entity_id: str | None
    relation: Relation
    attrs: dict[str, Any] = field(default_factory=dict)

    @property
    def cursor(self) -> TimelineCursor:
        return TimelineCursor(ts_ns=self.ts_ns, id=self.id)


@dataclass
class TimelinePage:
    rows: list[TimelineRow] = field(default_factory=list)
    next_cursor: TimelineCursor | None = None


@dataclass
class ProcessOption:
    """A selectable process for timeline filters."""

    proc_key: str
    process: str
