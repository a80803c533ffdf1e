"""Index of unresolved request/response nodes per connection token."""

from typing import Iterable

from ..attributes import aliases, first_string
from ..models import Node, PendingRefs
from .identity import pending_refs_key

_REQUEST_DONE = {"completed", "timed_out"}
_RESPONSE_DONE = {"completed", "delivered", "cancelled"}


def is_request_pending(status: str | None) -> bool:
    return (status or "").strip().lower() not in _REQUEST_DONE


def is_response_pending(status: str | None) -> bool:
    return (status or "").strip().lower() not in _RESPONSE_DONE


class PendingRefsIndex:
    """Pending request/response ids grouped by token and by (token, src, dst)."""

    def __init__(self):
        self._by_token: dict[str, PendingRefs] = {}
        self._by_direction: dict[str, PendingRefs] = {}

    @classmethod
    def from_nodes(cls, nodes: Iterable[Node]) -> "PendingRefsIndex":
        """Scan request/response nodes; everything else is ignored."""
        index = cls()
        for node in nodes:
            if node.kind not in ("request", "response"):
                continue
            token = (first_string(node.attrs, aliases.PENDING_REF_TOKEN) or "").strip()
            if not token:
                continue
            status = first_string(node.attrs, aliases.STATUS)
            if node.kind == "request" and not is_request_pending(status):
                continue
            if node.kind == "response" and not is_response_pending(status):
                continue
            src = (first_string(node.attrs, aliases.CONNECTION_SRC) or "").strip()
            dst = (first_string(node.attrs, aliases.CONNECTION_DST) or "").strip()
            index.add(node.kind, node.id, token, src, dst)
        return index

    def add(self, kind: str, node_id: str, token: str, src: str = "", dst: str = "") -> None:
        targets = [self._by_token.setdefault(token, PendingRefs())]
        if src and dst:
            directional = pending_refs_key(token, src, dst)
            targets.append(self._by_direction.setdefault(directional, PendingRefs()))
        for refs in targets:
            if kind == "request":
                refs.request_ids.append(node_id)
            else:
                refs.response_ids.append(node_id)

    def for_token(self, token: str) -> PendingRefs | None:
        return self._by_token.get(token)

    def for_direction(self, token: str, src: str, dst: str) -> PendingRefs | None:
        return self._by_direction.get(pending_refs_key(token, src, dst))

    def lookup(self, token: str, src: str, dst: str) -> PendingRefs:
        """Most specific refs for a leg: directional first, then the whole token."""
        return self.for_direction(token, src, dst) or self.for_token(token) or PendingRefs()

    def __len__(self) -> int:
        return len(self._by_token)
