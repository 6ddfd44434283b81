"""Per-owner archive of finished games."""
from typing import Optional

from chiptracker.history import GameSummary
from chiptracker.state.redis_client import redis_client
from chiptracker.utils.logger import get_logger

logger = get_logger(__name__)

INDEX_PREFIX = "index-"


class HistoryStore:
    """Persists game summaries to Redis as one JSON list per owner."""

    def _history_key(self, owner_id: str) -> str:
        """Get Redis key for an owner's game history."""
        return f"owner:{owner_id}:history"

    async def _load(self, owner_id: str) -> list[dict]:
        return await redis_client.get_json(self._history_key(owner_id)) or []

    async def record_game(self, owner_id: str, summary: GameSummary) -> None:
        """Add a game, replacing any earlier entry for the same session.

        Args:
            owner_id: Owner of the history.
            summary: Game to record.
        """
        entries = await self._load(owner_id)
        if summary.tracker_id:
            entries = [e for e in entries if e.get("trackerId") != summary.tracker_id]
        entries.append(summary.to_dict())
        await redis_client.set_json(self._history_key(owner_id), entries)
        logger.info(f"Recorded game {summary.tracker_id} for {owner_id} ({len(entries)} total)")

    async def list_games(self, owner_id: str) -> list[GameSummary]:
        """Get an owner's games in the order they were recorded.

        Args:
            owner_id: Owner of the history.

        Returns:
            List of game summaries.
        """
        return [GameSummary.from_dict(e) for e in await self._load(owner_id)]

    async def delete_game(self, owner_id: str, identifier: str) -> bool:
        """Delete one game from an owner's history.

        Args:
            owner_id: Owner of the history.
            identifier: Tracker id, or "index-N" for entries saved without one.

        Returns:
            True if an entry was removed.
        """
        entries = await self._load(owner_id)
        position = self._parse_index(identifier)

        if position is not None:
            remaining = [e for i, e in enumerate(entries) if i != position]
        else:
            remaining = [e for e in entries if e.get("trackerId") != identifier]

        if len(remaining) == len(entries):
            logger.info(f"No game {identifier} in history of {owner_id}")
            return False

        await redis_client.set_json(self._history_key(owner_id), remaining)
        logger.info(f"Deleted game {identifier} from history of {owner_id}")
        return True

    @staticmethod
    def _parse_index(identifier: str) -> Optional[int]:
        if not identifier.startswith(INDEX_PREFIX):
            return None
        try:
            return int(identifier[len(INDEX_PREFIX):])
        except ValueError:
            return None


history_store = HistoryStore()
