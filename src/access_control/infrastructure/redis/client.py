"""Redis Client for the Access Control Engine

Provides async Redis client management for the key-value catalog backend.
"""

import logging
from typing import Optional

import redis.asyncio as redis

from access_control.config.settings import Settings

logger = logging.getLogger(__name__)


class RedisClient:
    """Async Redis client wrapper"""

    def __init__(self, settings: Settings):
        """Initialize Redis client

        Args:
            settings: Settings carrying the Redis connection parameters
        """
        self.settings = settings
        self._client: Optional[redis.Redis] = None

    async def connect(self):
        """Establish Redis connection"""
        if not self._client:
            self._client = redis.from_url(self.settings.redis_url, decode_responses=True)
            await self._client.ping()
            logger.info(
                f"Connected to Redis: "
                f"{self.settings.redis_host}:{self.settings.redis_port}/{self.settings.redis_db}"
            )

    async def disconnect(self):
        """Close Redis connection"""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from Redis")

    def get_client(self) -> redis.Redis:
        """Get the underlying Redis client

        Returns:
            Redis client instance

        Raises:
            RuntimeError: If client not connected
        """
        if not self._client:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self._client
