"""Connection and duplex data models."""

from dataclasses import dataclass, field
from enum import Enum


class Health(str, Enum):
    """Connection/node health, ordered by severity."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _HEALTH_RANK[self]

    @classmethod
    def worst(cls, *values: "Health") -> "Health":
        """Maximum severity across values (healthy when empty)."""
        result = cls.HEALTHY
        for value in values:
            if value.rank > result.rank:
                result = value
        return result


_HEALTH_RANK = {Health.HEALTHY: 0, Health.WARNING: 1, Health.CRITICAL: 2}


class SortKey(str, Enum):
    """Columns the connections table can be sorted by."""

    HEALTH = "health"
    CONNECTION = "connection"
    PENDING = "pending"
    LAST_RECV = "last_recv"
    LAST_SENT = "last_sent"


class SortDir(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SeverityFilter(str, Enum):
    ALL = "all"
    WARNING_PLUS = "warning_plus"
    CRITICAL = "critical"


@dataclass
class ProcessInfo:
    """Per-snapshot process metadata joined onto connection legs."""

    process: str
    proc_key: str
    pid: int | None = None
    status: str | None = None
    command: str | None = None
    cmd_args_preview: str | None = None
    error_text: str | None = None
    recv_at_ns: int | None = None


@dataclass
class PendingRefs:
    """Unresolved request/response node ids for one connection token."""

    request_ids: list[str] = field(default_factory=list)
    response_ids: list[str] = field(default_factory=list)


@dataclass
class ConnectionIdentity:
    """Parsed identity of one directional connection observation."""

    token: str
    src: str
    dst: str
    link: str
    endpoint_a: str
    endpoint_b: str
    duplex_key: str
    duplex_label: str
    leg_label: str
    pending_refs_key: str


@dataclass
class ConnectionLeg:
    """One side's report of a connection (or a synthesized placeholder)."""

    node_id: str
    token: str
    pending_refs_key: str
    leg_label: str
    direction_from: str
    direction_to: str
    process: str
    proc_key: str
    state: str  # open / closed / unknown / missing
    pending_requests: int
    pending_responses: int
    pending_request_ids: list[str] = field(default_factory=list)
    pending_response_ids: list[str] = field(default_factory=list)
    pid: int | None = None
    snapshot_status: str = "unknown"
    command: str | None = None
    cmd_args_preview: str | None = None
    error_text: str | None = None
    last_recv_age_ns: int | None = None
    last_sent_age_ns: int | None = None
    health: Health = Health.HEALTHY
    is_missing: bool = False


@dataclass
class DuplexConnection:
    """Order-independent merge of the legs sharing an unordered endpoint pair."""

    key: str
    duplex_label: str
    endpoint_a: str
    endpoint_b: str
    legs: list[ConnectionLeg] = field(default_factory=list)
    health: Health = Health.HEALTHY
    pending_requests: int = 0
    pending_responses: int = 0
    pending_total: int = 0
    last_recv_age_ns: int | None = None
    last_sent_age_ns: int | None = None


@dataclass
class ConnectionsSummary:
    total: int = 0
    warning_count: int = 0
    critical_count: int = 0


@dataclass
class ConnectionsTable:
    """Sorted duplex rows plus the filtered subset shown to the user."""

    captured_at_ns: int | None
    summary: ConnectionsSummary
    severity: SeverityFilter
    process_filter: str | None
    sort_key: SortKey
    sort_dir: SortDir
    rows: list[DuplexConnection] = field(default_factory=list)
    visible_rows: list[DuplexConnection] = field(default_factory=list)
