"""Sorting, filtering and summary of duplex connection rows."""

from functools import cmp_to_key
from typing import Iterable

from ..models import (
    ConnectionsSummary,
    ConnectionsTable,
    DuplexConnection,
    Health,
    SeverityFilter,
    SortDir,
    SortKey,
)


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _cmp_missing_last(a: int | None, b: int | None, sign: int) -> int:
    # absent values trail in both directions
    if a is None and b is None:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1
    return _cmp(a, b) * sign


def _compare_rows(a: DuplexConnection, b: DuplexConnection, key: SortKey, sign: int) -> int:
    if key == SortKey.HEALTH:
        primary = _cmp(a.health.rank, b.health.rank) * sign
    elif key == SortKey.CONNECTION:
        primary = _cmp(a.duplex_label, b.duplex_label) * sign
    elif key == SortKey.PENDING:
        primary = _cmp_missing_last(a.pending_total, b.pending_total, sign)
    elif key == SortKey.LAST_RECV:
        primary = _cmp_missing_last(a.last_recv_age_ns, b.last_recv_age_ns, sign)
    else:
        primary = _cmp_missing_last(a.last_sent_age_ns, b.last_sent_age_ns, sign)
    if primary:
        return primary

    if key == SortKey.PENDING:
        # Equal backlog: the connection silent for longest goes first.
        by_age = _cmp_missing_last(a.last_recv_age_ns, b.last_recv_age_ns, -1)
        if by_age:
            return by_age
    return _cmp(a.key, b.key)


def sort_rows(
    rows: Iterable[DuplexConnection],
    key: SortKey = SortKey.PENDING,
    direction: SortDir = SortDir.DESC,
) -> list[DuplexConnection]:
    """Sorted copy of rows; ties always fall back to ascending duplex key."""
    sign = 1 if direction == SortDir.ASC else -1
    return sorted(rows, key=cmp_to_key(lambda a, b: _compare_rows(a, b, key, sign)))


def matches_severity(row: DuplexConnection, severity: SeverityFilter) -> bool:
    if severity == SeverityFilter.CRITICAL:
        return row.health == Health.CRITICAL
    if severity == SeverityFilter.WARNING_PLUS:
        return row.health in (Health.WARNING, Health.CRITICAL)
    return True


def matches_process(row: DuplexConnection, process: str | None) -> bool:
    if not process:
        return True
    if process in (row.endpoint_a, row.endpoint_b):
        return True
    return any(leg.process == process for leg in row.legs)


def summarize(rows: Iterable[DuplexConnection]) -> ConnectionsSummary:
    summary = ConnectionsSummary()
    for row in rows:
        summary.total += 1
        if row.health == Health.WARNING:
            summary.warning_count += 1
        elif row.health == Health.CRITICAL:
            summary.critical_count += 1
    return summary


def build_connections_table(
    rows: Iterable[DuplexConnection],
    captured_at_ns: int | None = None,
    sort_key: SortKey = SortKey.PENDING,
    sort_dir: SortDir = SortDir.DESC,
    severity: SeverityFilter = SeverityFilter.ALL,
    process: str | None = None,
) -> ConnectionsTable:
    """Sort every row, then derive the visible subset.

    The summary covers all rows so that filters never change the counts.
    """
    ordered = sort_rows(rows, sort_key, sort_dir)
    visible = [
        row for row in ordered if matches_severity(row, severity) and matches_process(row, process)
    ]
    return ConnectionsTable(
        captured_at_ns=captured_at_ns,
        summary=summarize(ordered),
        severity=severity,
        process_filter=process or None,
        sort_key=sort_key,
        sort_dir=sort_dir,
        rows=ordered,
        visible_rows=visible,
    )
