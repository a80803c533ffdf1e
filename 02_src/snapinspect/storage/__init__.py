from .storage import ISnapshotStore, SnapshotStore

__all__ = ["ISnapshotStore", "SnapshotStore"]
