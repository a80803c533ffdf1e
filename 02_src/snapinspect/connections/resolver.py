"""Merge directional connection legs into duplex rows."""

from typing import Any, Iterable, Mapping

from ..attributes import age_ns, aliases, first_number, first_string, first_timestamp_ns
from ..config import DEFAULT_THRESHOLDS, HealthThresholds
from ..logging_config import get_logger
from ..models import (
    ConnectionIdentity,
    ConnectionLeg,
    DuplexConnection,
    Health,
    Node,
    PendingRefs,
    ProcessInfo,
)
from .identity import (
    LEG_LABEL_ARROW,
    pending_refs_key,
    resolve_identity,
)
from .pending import PendingRefsIndex

logger = get_logger(__name__)

MISSING_LEG_ERROR = "missing connection leg"
UNKNOWN_STATUS = "unknown"


def classify_health(
    pending_requests: int,
    pending_responses: int,
    last_recv_age_ns: int | None,
    thresholds: HealthThresholds = DEFAULT_THRESHOLDS,
) -> Health:
    """Per-leg health: pending backlog first, then receive staleness."""
    pending = max(pending_requests, pending_responses)
    if pending >= thresholds.crit_pending:
        return Health.CRITICAL
    if pending >= thresholds.warn_pending:
        return Health.WARNING
    if last_recv_age_ns is not None:
        if last_recv_age_ns >= thresholds.crit_stale_ns:
            return Health.CRITICAL
        if last_recv_age_ns >= thresholds.warn_stale_ns:
            return Health.WARNING
    return Health.HEALTHY


def connection_state(attrs: Mapping[str, Any]) -> str:
    state = (first_string(attrs, aliases.CONNECTION_STATE) or "").strip().lower()
    if state in ("open", "closed"):
        return state
    return "unknown"


def snapshot_status(value: str | None) -> str:
    normalized = (value or "").strip().lower()
    return normalized or UNKNOWN_STATUS


class ProcessLookup:
    """Process metadata keyed by proc_key, falling back to process name."""

    def __init__(self, processes: Iterable[ProcessInfo] = ()):
        self._by_proc_key: dict[str, ProcessInfo] = {}
        self._by_name: dict[str, ProcessInfo] = {}
        for info in processes:
            self._by_proc_key.setdefault(info.proc_key, info)
            self._by_name.setdefault(info.process, info)

    def get(self, process: str, proc_key: str = "") -> ProcessInfo | None:
        if proc_key and proc_key in self._by_proc_key:
            return self._by_proc_key[proc_key]
        if process:
            return self._by_name.get(process)
        return None


def _max_age(values: Iterable[int | None]) -> int | None:
    present = [value for value in values if value is not None]
    return max(present) if present else None


class DuplexResolver:
    """Builds duplex connection rows from one snapshot's nodes.

    Usage:
        resolver = DuplexResolver(captured_at_ns, processes, thresholds)
        rows = resolver.resolve(graph.nodes)
    """

    def __init__(
        self,
        captured_at_ns: int | None,
        processes: Iterable[ProcessInfo] = (),
        thresholds: HealthThresholds = DEFAULT_THRESHOLDS,
    ):
        self.captured_at_ns = captured_at_ns
        self.processes = ProcessLookup(processes)
        self.thresholds = thresholds

    def resolve(
        self,
        nodes: Iterable[Node],
        pending: PendingRefsIndex | None = None,
    ) -> list[DuplexConnection]:
        """Resolve open connection nodes into duplex rows, in first-seen order."""
        nodes = list(nodes)
        if pending is None:
            pending = PendingRefsIndex.from_nodes(nodes)

        grouped: dict[str, DuplexConnection] = {}
        legs_by_direction: dict[str, dict[tuple[str, str], ConnectionLeg]] = {}
        for node in nodes:
            if node.kind != "connection":
                continue
            if connection_state(node.attrs) == "closed":
                continue
            identity = resolve_identity(node.id, node.attrs)
            leg = self.build_leg(node, identity, pending)
            row = grouped.get(identity.duplex_key)
            if row is None:
                row = DuplexConnection(
                    key=identity.duplex_key,
                    duplex_label=identity.duplex_label,
                    endpoint_a=identity.endpoint_a,
                    endpoint_b=identity.endpoint_b,
                )
                grouped[identity.duplex_key] = row
            # one leg per direction; a later report replaces an earlier one
            legs_by_direction.setdefault(identity.duplex_key, {})[
                (leg.direction_from, leg.direction_to)
            ] = leg

        for key, row in grouped.items():
            row.legs = list(legs_by_direction[key].values())
        return [self._finalize(row, pending) for row in grouped.values()]

    def build_leg(
        self,
        node: Node,
        identity: ConnectionIdentity,
        pending: PendingRefsIndex,
    ) -> ConnectionLeg:
        """One observed leg; attribute counts win over the pending refs index."""
        refs = pending.lookup(identity.token, identity.src, identity.dst)

        pending_requests = first_number(node.attrs, aliases.PENDING_REQUESTS)
        pending_responses = first_number(node.attrs, aliases.PENDING_RESPONSES)
        requests = int(pending_requests) if pending_requests is not None else len(refs.request_ids)
        responses = (
            int(pending_responses) if pending_responses is not None else len(refs.response_ids)
        )

        last_recv_age = age_ns(
            self.captured_at_ns, first_timestamp_ns(node.attrs, aliases.LAST_RECV_AT)
        )
        last_sent_age = age_ns(
            self.captured_at_ns, first_timestamp_ns(node.attrs, aliases.LAST_SENT_AT)
        )
        info = self.processes.get(node.process, node.proc_key)

        return ConnectionLeg(
            node_id=node.id,
            token=identity.token,
            pending_refs_key=identity.pending_refs_key,
            leg_label=identity.leg_label,
            direction_from=identity.src,
            direction_to=identity.dst,
            process=node.process,
            proc_key=node.proc_key,
            state=connection_state(node.attrs),
            pending_requests=requests,
            pending_responses=responses,
            pending_request_ids=list(refs.request_ids),
            pending_response_ids=list(refs.response_ids),
            pid=info.pid if info else None,
            snapshot_status=snapshot_status(info.status if info else None),
            command=info.command if info else None,
            cmd_args_preview=info.cmd_args_preview if info else None,
            error_text=info.error_text if info else None,
            last_recv_age_ns=last_recv_age,
            last_sent_age_ns=last_sent_age,
            health=classify_health(requests, responses, last_recv_age, self.thresholds),
        )

    def missing_leg(
        self,
        row: DuplexConnection,
        src: str,
        dst: str,
        pending: PendingRefsIndex,
    ) -> ConnectionLeg:
        """Placeholder for a direction nobody reported, carrying what is known about it."""
        refs = self._missing_leg_refs(row, src, dst, pending)
        info = self.processes.get(src)
        requests = len(refs.request_ids)
        responses = len(refs.response_ids)
        logger.debug(
            "Synthesized missing connection leg",
            extra={"context": {"duplex": row.key, "direction": f"{src}->{dst}"}},
        )
        return ConnectionLeg(
            node_id=f"{row.key}:missing:{src}->{dst}",
            token=row.key,
            pending_refs_key=pending_refs_key(row.key, src, dst),
            leg_label=f"{src}{LEG_LABEL_ARROW}{dst}",
            direction_from=src,
            direction_to=dst,
            process=src,
            proc_key=info.proc_key if info else "",
            state="missing",
            pending_requests=requests,
            pending_responses=responses,
            pending_request_ids=list(refs.request_ids),
            pending_response_ids=list(refs.response_ids),
            pid=info.pid if info else None,
            snapshot_status=snapshot_status(info.status if info else None),
            command=info.command if info else None,
            cmd_args_preview=info.cmd_args_preview if info else None,
            error_text=(info.error_text if info else None) or MISSING_LEG_ERROR,
            health=Health.worst(
                Health.WARNING,
                classify_health(requests, responses, None, self.thresholds),
            ),
            is_missing=True,
        )

    def _missing_leg_refs(
        self,
        row: DuplexConnection,
        src: str,
        dst: str,
        pending: PendingRefsIndex,
    ) -> PendingRefs:
        # Pending nodes usually name the token of the observed leg, so try
        # those tokens for the missing direction before the duplex key.
        for leg in row.legs:
            refs = pending.for_direction(leg.token, src, dst)
            if refs is not None:
                return refs
        refs = pending.for_direction(row.key, src, dst) or pending.for_token(row.key)
        return refs or PendingRefs()

    def _finalize(self, row: DuplexConnection, pending: PendingRefsIndex) -> DuplexConnection:
        expected = [(row.endpoint_a, row.endpoint_b)]
        if row.endpoint_a != row.endpoint_b:
            expected.append((row.endpoint_b, row.endpoint_a))

        observed = {(leg.direction_from, leg.direction_to) for leg in row.legs}
        for src, dst in expected:
            if (src, dst) not in observed:
                row.legs.append(self.missing_leg(row, src, dst, pending))

        row.legs.sort(key=lambda leg: leg.direction_from)
        row.pending_requests = sum(leg.pending_requests for leg in row.legs)
        row.pending_responses = sum(leg.pending_responses for leg in row.legs)
        row.pending_total = row.pending_requests + row.pending_responses
        row.last_recv_age_ns = _max_age(leg.last_recv_age_ns for leg in row.legs)
        row.last_sent_age_ns = _max_age(leg.last_sent_age_ns for leg in row.legs)
        row.health = Health.worst(*(leg.health for leg in row.legs))
        return row


def resolve_duplex_connections(
    nodes: Iterable[Node],
    captured_at_ns: int | None,
    processes: Iterable[ProcessInfo] = (),
    thresholds: HealthThresholds = DEFAULT_THRESHOLDS,
) -> list[DuplexConnection]:
    """Convenience wrapper around DuplexResolver.resolve."""
    return DuplexResolver(captured_at_ns, processes, thresholds).resolve(nodes)
