"""SIM implementation - hardcoded demo snapshot."""

import time
from typing import Protocol

from snapinspect.config import NS_PER_MS, NS_PER_SECOND
from snapinspect.logging_config import get_logger
from snapinspect.models import Edge, Node, ProcessInfo, TimelineEvent
from snapinspect.storage import ISnapshotStore

logger = get_logger(__name__)


class ISim(Protocol):
    """Generate test data: one hardcoded snapshot scenario."""

    async def seed(self, store: ISnapshotStore) -> int:
        """Write the scenario and return its snapshot id."""
        ...


class Sim:
    """Demo scenario: a stuck RPC over a half-reported connection.

    - frontend reports its leg of ``frontend->backend:link1`` with three pending
      requests; backend never reports the reverse leg
    - a request waits on a response node that was not captured (dangling edge)
    - two futures contend on one mutex, one held by a task missing from the snapshot
    - the stuck request's timeline has events sharing a timestamp
    """

    def __init__(self, captured_at_ns: int | None = None):
        self._captured_at_ns = captured_at_ns

    async def seed(self, store: ISnapshotStore) -> int:
        """Write the scenario and return its snapshot id."""
        captured = self._captured_at_ns or time.time_ns()
        snapshot_id = await store.allocate_snapshot_id()

        await store.save_snapshot(
            snapshot_id,
            requested_at_ns=captured - 50 * NS_PER_MS,
            completed_at_ns=captured,
            timeout_ms=1500,
        )
        await store.save_processes(snapshot_id, self._processes(captured))
        await store.save_nodes(snapshot_id, self._nodes(captured))
        await store.save_edges(snapshot_id, self._edges())
        await store.save_events(self._events(snapshot_id, captured))

        logger.info(f"SIM: seeded demo snapshot {snapshot_id}")
        return snapshot_id

    def _processes(self, captured: int) -> list[ProcessInfo]:
        return [
            ProcessInfo(
                process="frontend",
                proc_key="frontend-4101",
                pid=4101,
                status="responded",
                command="frontend",
                cmd_args_preview="--listen 0.0.0.0:8080",
                recv_at_ns=captured - 20 * NS_PER_MS,
            ),
            ProcessInfo(
                process="backend",
                proc_key="backend-4102",
                pid=4102,
                status="timeout",
                command="backend",
                cmd_args_preview="--workers 4",
                error_text="snapshot reply timed out",
            ),
            ProcessInfo(
                process="worker",
                proc_key="worker-4103",
                pid=4103,
                status="responded",
                command="worker",
                recv_at_ns=captured - 15 * NS_PER_MS,
            ),
        ]

    def _nodes(self, captured: int) -> list[Node]:
        link = "frontend->backend:link1"
        return [
            Node(
                id="connection:frontend->backend:link1",
                kind="connection",
                process="frontend",
                proc_key="frontend-4101",
                attrs={
                    "connection.state": "open",
                    "connection.pending_requests": 3,
                    "connection.last_frame_recv_at_ns": captured - 20 * NS_PER_SECOND,
                    "connection.last_frame_sent_at_ns": captured - 1 * NS_PER_SECOND,
                },
            ),
            Node(
                id="connection:frontend->worker:jobs",
                kind="connection",
                process="frontend",
                proc_key="frontend-4101",
                attrs={
                    "connection.state": "open",
                    "connection.pending_requests": 0,
                    "connection.last_frame_recv_at_ns": captured - 200 * NS_PER_MS,
                },
            ),
            Node(
                id="connection:worker->frontend:jobs",
                kind="connection",
                process="worker",
                proc_key="worker-4103",
                attrs={
                    "connection.state": "open",
                    "connection.pending_requests": 0,
                    "connection.last_frame_recv_at_ns": captured - 300 * NS_PER_MS,
                },
            ),
            Node(
                id="request:1",
                kind="request",
                process="frontend",
                proc_key="frontend-4101",
                attrs={
                    "method": "Backend.fetch_user",
                    "elapsed_ns": 42 * NS_PER_SECOND,
                    "rpc.connection": link,
                    "connection.src": "frontend",
                    "connection.dst": "backend",
                    "correlation_key": "corr-1",
                    "status": "in_flight",
                    "created_at": (captured - 42 * NS_PER_SECOND) // NS_PER_MS,
                },
            ),
            Node(
                id="request:2",
                kind="request",
                process="frontend",
                proc_key="frontend-4101",
                attrs={
                    "method": "Backend.list_items",
                    "elapsed_ns": 12 * NS_PER_SECOND,
                    "rpc.connection": link,
                    "correlation_key": "corr-2",
                    "status": "completed",
                },
            ),
            Node(
                id="response:2",
                kind="response",
                process="backend",
                proc_key="backend-4102",
                attrs={
                    "method": "Backend.list_items",
                    "correlation_key": "corr-2",
                    "status": "completed",
                },
            ),
            Node(
                id="mutex:cache",
                kind="mutex",
                process="frontend",
                proc_key="frontend-4101",
                attrs={"holder": "task:gone", "waiters": 2},
            ),
            Node(
                id="future:refresh",
                kind="future",
                process="frontend",
                proc_key="frontend-4101",
                attrs={"poll_count": 17, "last_polled_ns": captured - 8 * NS_PER_SECOND},
            ),
            Node(
                id="future:render",
                kind="future",
                process="frontend",
                proc_key="frontend-4101",
                attrs={"poll_count": 3},
            ),
        ]

    def _edges(self) -> list[Edge]:
        return [
            Edge(src_id="request:1", dst_id="response:1", kind="awaits", attrs={}),
            Edge(src_id="future:refresh", dst_id="mutex:cache", kind="waits_on", attrs={}),
            Edge(src_id="future:render", dst_id="mutex:cache", kind="waits_on", attrs={}),
            Edge(src_id="task:gone", dst_id="mutex:cache", kind="holds", attrs={}),
        ]

    def _events(self, snapshot_id: int, captured: int) -> list[TimelineEvent]:
        start = captured - 42 * NS_PER_SECOND
        prefix = f"s{snapshot_id}"
        specs = [
            (f"{prefix}-e01", start, "request:1", None, "request.created"),
            (f"{prefix}-e02", start, "request:1", None, "request.queued"),
            (f"{prefix}-e03", start + 2 * NS_PER_MS, "request:1", None, "request.send"),
            (f"{prefix}-e04", start + 2 * NS_PER_MS, "frame:1", "request:1", "frame.send"),
            (f"{prefix}-e05", start + 5 * NS_PER_SECOND, "request:1", None, "request.waiting"),
            (f"{prefix}-e06", start + 30 * NS_PER_SECOND, "request:1", None, "request.waiting"),
            (f"{prefix}-e07", start + 5 * NS_PER_MS, "future:refresh", None, "future.poll"),
            (f"{prefix}-e08", start + 6 * NS_PER_MS, "future:refresh", None, "mutex.blocked"),
        ]
        return [
            TimelineEvent(
                id=event_id,
                ts_ns=ts_ns,
                proc_key="frontend-4101",
                entity_id=entity_id,
                parent_entity_id=parent,
                name=name,
                attrs={},
            )
            for event_id, ts_ns, entity_id, parent, name in specs
        ]
