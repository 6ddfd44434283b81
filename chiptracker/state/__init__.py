"""State management module."""
from .redis_client import RedisClient
from .session_store import SnapshotStore, SaveResult
from .history_store import HistoryStore

__all__ = ["RedisClient", "SnapshotStore", "SaveResult", "HistoryStore"]
