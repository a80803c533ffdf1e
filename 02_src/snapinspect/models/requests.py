"""RPC request data models."""

from dataclasses import dataclass


@dataclass
class StuckRequest:
    """A request that has been in flight longer than a threshold."""

    id: str
    method: str | None
    process: str
    elapsed_ns: int
    connection: str | None
    correlation: str | None
