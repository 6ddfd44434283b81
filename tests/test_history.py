"""Tests for game summaries and the history store."""
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, patch

from chiptracker.history import GameSummary, summarize_session
from chiptracker.state.history_store import HistoryStore

PLAYED = datetime(2024, 1, 16, 2, 0, 0, tzinfo=timezone.utc)


def summary_dict(tracker_id):
    return GameSummary(
        tracker_id=tracker_id,
        played_at=PLAYED,
        total_buy_in=Decimal("100"),
        pot_remaining=Decimal("0"),
    ).to_dict()


class TestSummarizeSession:
    """Test building game summaries."""
    
    def test_summary(self, ledger):
        ledger.add_participant("A", 100)
        ledger.add_participant("", 100)
        ledger.record_return(0, 170)
        ledger.record_return(1, 20)
        
        summary = summarize_session(ledger.state, played_at=PLAYED)
        
        assert summary.tracker_id == "test-session"
        assert summary.total_buy_in == Decimal("200")
        assert summary.pot_remaining == Decimal("10")
        assert [r.player for r in summary.results] == ["A", "Person 2"]
        assert summary.biggest_winner.balance == Decimal("70")
    
    def test_no_winner(self, ledger):
        ledger.add_participant("A", 100)
        assert summarize_session(ledger.state).biggest_winner is None
    
    def test_dict_round_trip(self, ledger):
        ledger.add_participant("A", 100)
        ledger.record_return(0, 40)
        summary = summarize_session(ledger.state, played_at=PLAYED)
        
        assert GameSummary.from_dict(summary.to_dict()) == summary


class TestHistoryStore:
    """Test history store operations."""
    
    @pytest.fixture
    def store(self):
        """Create a history store."""
        return HistoryStore()
    
    @pytest.mark.asyncio
    async def test_record_game_replaces_same_tracker(self, store):
        existing = [summary_dict("game-1"), summary_dict("game-2")]
        new = GameSummary.from_dict(summary_dict("game-1"))
        new.total_buy_in = Decimal("500")
        
        with patch("chiptracker.state.history_store.redis_client") as mock_redis:
            mock_redis.get_json = AsyncMock(return_value=existing)
            mock_redis.set_json = AsyncMock()
            
            await store.record_game("owner1", new)
            
            key, saved = mock_redis.set_json.call_args[0]
        
        assert key == "owner:owner1:history"
        assert [e["trackerId"] for e in saved] == ["game-2", "game-1"]
        assert saved[-1]["totalBuyIn"] == "500"
    
    @pytest.mark.asyncio
    async def test_list_games_empty(self, store):
        with patch("chiptracker.state.history_store.redis_client") as mock_redis:
            mock_redis.get_json = AsyncMock(return_value=None)
            
            assert await store.list_games("owner1") == []
    
    @pytest.mark.asyncio
    async def test_delete_by_tracker_id(self, store):
        with patch("chiptracker.state.history_store.redis_client") as mock_redis:
            mock_redis.get_json = AsyncMock(return_value=[summary_dict("a"), summary_dict("b")])
            mock_redis.set_json = AsyncMock()
            
            assert await store.delete_game("owner1", "a")
            
            saved = mock_redis.set_json.call_args[0][1]
        
        assert [e["trackerId"] for e in saved] == ["b"]
    
    @pytest.mark.asyncio
    async def test_delete_by_index(self, store):
        """Test entries saved without a tracker id can be deleted by position."""
        with patch("chiptracker.state.history_store.redis_client") as mock_redis:
            mock_redis.get_json = AsyncMock(
                return_value=[summary_dict(None), summary_dict("b")]
            )
            mock_redis.set_json = AsyncMock()
            
            assert await store.delete_game("owner1", "index-0")
            
            saved = mock_redis.set_json.call_args[0][1]
        
        assert [e["trackerId"] for e in saved] == ["b"]
    
    @pytest.mark.asyncio
    async def test_delete_missing(self, store):
        with patch("chiptracker.state.history_store.redis_client") as mock_redis:
            mock_redis.get_json = AsyncMock(return_value=[summary_dict("a")])
            mock_redis.set_json = AsyncMock()
            
            assert not await store.delete_game("owner1", "zzz")
            assert not await store.delete_game("owner1", "index-5")
            mock_redis.set_json.assert_not_called()
