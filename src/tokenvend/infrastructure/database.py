"""Redis connection shared by every repository."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class HasDatabaseSettings(Protocol):
    database_url: str


class DatabaseClient:
    """Lazily connected async Redis client (one pool per process)."""

    def __init__(self, settings: HasDatabaseSettings):
        self.settings = settings
        self._redis: Optional[redis.Redis] = None

    def initialize_database(self) -> None:
        # Expecting URL like: redis://host:port/0
        self._redis = redis.from_url(
            self.settings.database_url,
            decode_responses=True,
            health_check_interval=30,
        )
        logger.info("Redis client created for %s", self.settings.database_url)

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[redis.Redis, None]:
        if self._redis is None:
            self.initialize_database()
        assert self._redis is not None
        # Pooled connection stays open after the block
        yield self._redis

    async def ping(self) -> bool:
        """True when Redis answers PING; connection faults are logged, not raised."""
        try:
            async with self.get_connection() as conn:
                return bool(await conn.ping())
        except (RedisError, OSError):
            logger.warning("Redis ping failed", exc_info=True)
            return False

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("Redis client closed")


_db_client: Optional[DatabaseClient] = None


def get_database_client(settings: HasDatabaseSettings) -> DatabaseClient:
    """Get or create the process-wide client."""
    global _db_client
    if _db_client is None:
        _db_client = DatabaseClient(settings)
    return _db_client
