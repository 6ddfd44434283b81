"""Session snapshot persistence."""
import json
from dataclasses import dataclass
from typing import Optional

from redis.exceptions import RedisError

from chiptracker.ledger.models import SessionState
from chiptracker.state.migrate import SnapshotFormatError, migrate, serialize
from chiptracker.state.redis_client import redis_client
from chiptracker.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SaveResult:
    """Whether the backing store acknowledged a save."""
    acknowledged: bool
    error_message: Optional[str] = None


class SnapshotStore:
    """Loads and saves whole-session snapshots in Redis.

    Store failures never propagate: saves report them in the result and
    loads return None, so the in-memory session keeps working.
    """

    def _snapshot_key(self, tracker_id: str) -> str:
        """Get Redis key for a session snapshot."""
        return f"tracker:{tracker_id}:snapshot"

    async def save_snapshot(self, state: SessionState) -> SaveResult:
        """Save a session.

        Args:
            state: Session to save.

        Returns:
            Whether the store acknowledged the write.
        """
        key = self._snapshot_key(state.tracker_id)
        try:
            await redis_client.set_json(key, serialize(state))
        except (RedisError, RuntimeError) as e:
            logger.error(f"Failed to save snapshot {state.tracker_id}: {e}")
            return SaveResult(acknowledged=False, error_message=str(e))

        logger.debug(f"Saved snapshot {state.tracker_id} ({len(state.transactions)} transactions)")
        return SaveResult(acknowledged=True)

    async def load_snapshot(self, tracker_id: str) -> Optional[SessionState]:
        """Load a session, migrating older snapshot formats.

        Args:
            tracker_id: Session identifier.

        Returns:
            The session, or None if absent, unreadable or the store failed.
        """
        key = self._snapshot_key(tracker_id)
        try:
            data = await redis_client.get_json(key)
        except (RedisError, RuntimeError) as e:
            logger.error(f"Failed to load snapshot {tracker_id}: {e}")
            return None
        except json.JSONDecodeError as e:
            logger.error(f"Snapshot {tracker_id} is not valid JSON: {e}")
            return None

        if data is None:
            return None

        try:
            state = migrate(data)
        except SnapshotFormatError as e:
            logger.error(f"Snapshot {tracker_id} is malformed: {e}")
            return None

        # The key is authoritative for legacy snapshots without a trackerId
        state.tracker_id = tracker_id
        return state

    async def delete_snapshot(self, tracker_id: str) -> bool:
        """Delete a stored session.

        Args:
            tracker_id: Session identifier.

        Returns:
            True if the store acknowledged the delete.
        """
        try:
            await redis_client.delete(self._snapshot_key(tracker_id))
        except (RedisError, RuntimeError) as e:
            logger.error(f"Failed to delete snapshot {tracker_id}: {e}")
            return False
        logger.info(f"Deleted snapshot {tracker_id}")
        return True


snapshot_store = SnapshotStore()
