"""Tests for snapshot persistence."""
import json
import pytest
from unittest.mock import AsyncMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from chiptracker.config import config
from chiptracker.state.migrate import serialize
from chiptracker.state.redis_client import RedisClient
from chiptracker.state.session_store import SnapshotStore


class TestSnapshotStore:
    """Test snapshot store operations."""
    
    @pytest.fixture
    def store(self):
        """Create a snapshot store."""
        return SnapshotStore()
    
    @pytest.mark.asyncio
    async def test_save_snapshot(self, store, ledger):
        """Test saving writes the serialized session under the tracker key."""
        ledger.add_participant("alice", 100)
        
        with patch("chiptracker.state.session_store.redis_client") as mock_redis:
            mock_redis.set_json = AsyncMock()
            
            result = await store.save_snapshot(ledger.state)
            
            assert result.acknowledged
            mock_redis.set_json.assert_called_once_with(
                "tracker:test-session:snapshot", serialize(ledger.state)
            )
    
    @pytest.mark.asyncio
    async def test_save_failure_is_reported(self, store, ledger):
        """Test a Redis error is reported rather than raised."""
        ledger.add_participant("alice", 100)
        
        with patch("chiptracker.state.session_store.redis_client") as mock_redis:
            mock_redis.set_json = AsyncMock(side_effect=RedisConnectionError("down"))
            
            result = await store.save_snapshot(ledger.state)
        
        assert not result.acknowledged
        assert "down" in result.error_message
        assert len(ledger.state.participants) == 1
    
    @pytest.mark.asyncio
    async def test_save_when_not_connected(self, store, ledger):
        with patch("chiptracker.state.session_store.redis_client") as mock_redis:
            mock_redis.set_json = AsyncMock(side_effect=RuntimeError("Redis not connected"))
            
            result = await store.save_snapshot(ledger.state)
        
        assert not result.acknowledged
    
    @pytest.mark.asyncio
    async def test_load_snapshot(self, store, ledger):
        ledger.add_participant("alice", 100)
        ledger.record_return(0, 30)
        
        with patch("chiptracker.state.session_store.redis_client") as mock_redis:
            mock_redis.get_json = AsyncMock(return_value=serialize(ledger.state))
            
            state = await store.load_snapshot("test-session")
            
            mock_redis.get_json.assert_called_once_with("tracker:test-session:snapshot")
        
        assert state.participants == ledger.state.participants
        assert state.transactions == ledger.state.transactions
    
    @pytest.mark.asyncio
    async def test_load_missing(self, store):
        with patch("chiptracker.state.session_store.redis_client") as mock_redis:
            mock_redis.get_json = AsyncMock(return_value=None)
            
            assert await store.load_snapshot("nope") is None
    
    @pytest.mark.asyncio
    async def test_load_legacy_uses_key_as_tracker_id(self, store):
        legacy = {"participants": [{"id": 0, "name": "alice", "initialMoney": 100}]}
        
        with patch("chiptracker.state.session_store.redis_client") as mock_redis:
            mock_redis.get_json = AsyncMock(return_value=legacy)
            
            state = await store.load_snapshot("old-game")
        
        assert state.tracker_id == "old-game"
        assert state.participants[0].money_put_in == 100
    
    @pytest.mark.asyncio
    async def test_load_malformed_returns_none(self, store):
        with patch("chiptracker.state.session_store.redis_client") as mock_redis:
            mock_redis.get_json = AsyncMock(return_value={"participants": "broken"})
            
            assert await store.load_snapshot("bad") is None
    
    @pytest.mark.asyncio
    async def test_load_invalid_json_returns_none(self, store):
        with patch("chiptracker.state.session_store.redis_client") as mock_redis:
            mock_redis.get_json = AsyncMock(side_effect=json.JSONDecodeError("bad", "{", 0))
            
            assert await store.load_snapshot("bad") is None
    
    @pytest.mark.asyncio
    async def test_load_negative_settings_returns_none(self, store):
        """Test a snapshot with a negative stack value is treated as absent."""
        raw = {
            "config": {"stackUnitValue": "-20", "chipsPerStack": 20},
            "participants": [{"id": 0, "name": "a", "moneyPutIn": "0"}],
        }
        with patch("chiptracker.state.session_store.redis_client") as mock_redis:
            mock_redis.get_json = AsyncMock(return_value=raw)

            assert await store.load_snapshot("negative") is None

    @pytest.mark.asyncio
    async def test_load_store_failure_returns_none(self, store):
        with patch("chiptracker.state.session_store.redis_client") as mock_redis:
            mock_redis.get_json = AsyncMock(side_effect=RedisConnectionError("down"))
            
            assert await store.load_snapshot("x") is None
    
    @pytest.mark.asyncio
    async def test_delete_snapshot(self, store):
        with patch("chiptracker.state.session_store.redis_client") as mock_redis:
            mock_redis.delete = AsyncMock()
            
            assert await store.delete_snapshot("x")
            mock_redis.delete.assert_called_once_with("tracker:x:snapshot")


class TestRedisClient:
    """Test the Redis connection lifecycle."""
    
    @pytest.mark.asyncio
    async def test_connect_uses_configured_url(self):
        client = RedisClient()
        client._redis = None
        
        with patch("chiptracker.state.redis_client.from_url") as mock_from_url:
            connection = AsyncMock()
            mock_from_url.return_value = connection
            
            await client.connect()
            await client.disconnect()
        
        mock_from_url.assert_called_once_with(
            config.redis_url, encoding="utf-8", decode_responses=True
        )
        connection.aclose.assert_awaited_once()
        assert client._redis is None
