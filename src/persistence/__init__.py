"""Snapshot persistence for the focus engine."""

from .errors import PersistenceCorrupt, PersistenceError, PersistenceWriteError
from .codec import SNAPSHOT_FORMAT_VERSION, decode_snapshot, encode_snapshot
from .file_store import JsonFileSnapshotStore
from .memory_store import InMemorySnapshotStore

__all__ = [
    "InMemorySnapshotStore",
    "JsonFileSnapshotStore",
    "PersistenceCorrupt",
    "PersistenceError",
    "PersistenceWriteError",
    "SNAPSHOT_FORMAT_VERSION",
    "decode_snapshot",
    "encode_snapshot",
]
