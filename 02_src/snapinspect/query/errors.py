"""Query collaborator errors."""


class QueryError(Exception):
    """A query failed; ``message`` is meant to be shown to a person."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SnapshotNotFoundError(QueryError):
    """The snapshot id has no capture row."""

    def __init__(self, snapshot_id: int):
        super().__init__(f"snapshot {snapshot_id} not found", status_code=404)
        self.snapshot_id = snapshot_id
