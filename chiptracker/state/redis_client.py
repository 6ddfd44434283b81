"""Async Redis client wrapper."""
from __future__ import annotations
import json
from typing import Any, Optional
from redis.asyncio import Redis, from_url

from chiptracker.config import config
from chiptracker.utils.logger import get_logger

logger = get_logger(__name__)


class RedisClient:
    """Async Redis client wrapper with JSON serialization."""
    
    _instance: Optional["RedisClient"] = None
    _redis: Optional[Redis] = None
    
    def __new__(cls) -> "RedisClient":
        """Singleton pattern for Redis client."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance
    
    async def connect(self) -> None:
        """Connect to Redis at REDIS_URL."""
        if self._redis is None:
            self._redis = from_url(config.redis_url, encoding="utf-8", decode_responses=True)
            logger.info(f"Connected to Redis at {config.redis_url}")
    
    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Disconnected from Redis")
    
    @property
    def redis(self) -> Redis:
        """Get Redis connection, raise if not connected."""
        if self._redis is None:
            raise RuntimeError("Redis not connected. Call connect() first.")
        return self._redis
    
    # Basic operations
    async def get(self, key: str) -> Optional[str]:
        """Get a string value."""
        return await self.redis.get(key)
    
    async def set(self, key: str, value: str, ex: Optional[int] = None) -> None:
        """Set a string value with optional expiry in seconds."""
        await self.redis.set(key, value, ex=ex)
    
    async def delete(self, key: str) -> None:
        """Delete a key."""
        await self.redis.delete(key)
    
    # JSON operations
    async def get_json(self, key: str) -> Optional[Any]:
        """Get and deserialize JSON value."""
        value = await self.get(key)
        if value is None:
            return None
        return json.loads(value)
    
    async def set_json(self, key: str, value: Any, ex: Optional[int] = None) -> None:
        """Serialize and set JSON value."""
        await self.set(key, json.dumps(value), ex=ex)


# Global instance
redis_client = RedisClient()
