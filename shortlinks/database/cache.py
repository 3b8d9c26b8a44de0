"""Redis cache layer for encoded link records."""

import logging
from typing import Optional

import redis.asyncio as redis


class RedisCache:
    """Read-through Redis cache for encoded link records.

    Records are immutable once written, so cached entries never go stale; the TTL
    only bounds memory use. Cache failures are logged and reported as misses.
    """

    KEY_PREFIX = "shortlinks:link:"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 3600,
        logger: Optional[logging.Logger] = None,
        client: Optional[redis.Redis] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            ttl_seconds: Default TTL for cached items
            logger: Optional logger instance
            client: Already connected client (skips ``connect``)
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.client: Optional[redis.Redis] = client
        self.enabled = redis_url is not None or client is not None

        if self.enabled:
            self.logger.info(f"Redis cache enabled with TTL={ttl_seconds}s")

    async def connect(self) -> None:
        """Connect to Redis."""
        if not self.enabled or self.client is not None:
            return

        try:
            # Values are raw record bytes; keep responses undecoded.
            self.client = redis.from_url(self.redis_url, decode_responses=False)
            await self.client.ping()
            self.logger.info("Connected to Redis")
        except Exception as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            self.client = None
            self.enabled = False

    async def get(self, short_code: str) -> Optional[bytes]:
        """Get an encoded record from cache.

        Args:
            short_code: The short code

        Returns:
            Cached bytes or None
        """
        if not self.enabled or not self.client:
            return None

        try:
            return await self.client.get(self.get_cache_key(short_code))
        except Exception as e:
            self.logger.error(f"Cache get error: {e}")
            return None

    async def set(
        self,
        short_code: str,
        value: bytes,
        ttl: Optional[int] = None,
    ) -> bool:
        """Cache an encoded record.

        Args:
            short_code: The short code
            value: Encoded record
            ttl: Optional TTL override (seconds)

        Returns:
            True if successful
        """
        if not self.enabled or not self.client:
            return False

        try:
            ttl = ttl or self.ttl_seconds
            await self.client.setex(self.get_cache_key(short_code), ttl, value)
            return True
        except Exception as e:
            self.logger.error(f"Cache set error: {e}")
            return False

    async def delete(self, short_code: str) -> bool:
        """Drop a cached record.

        Args:
            short_code: The short code

        Returns:
            True if deleted
        """
        if not self.enabled or not self.client:
            return False

        try:
            result = await self.client.delete(self.get_cache_key(short_code))
            return result > 0
        except Exception as e:
            self.logger.error(f"Cache delete error: {e}")
            return False

    async def ping(self) -> bool:
        """Check the Redis connection.

        Returns:
            True if Redis answered
        """
        if not self.enabled or not self.client:
            return False

        try:
            await self.client.ping()
            return True
        except Exception as e:
            self.logger.error(f"Cache ping error: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.client = None
            self.logger.info("Redis connection closed")

    def get_cache_key(self, short_code: str) -> str:
        """Generate cache key for short code.

        Args:
            short_code: The short code

        Returns:
            Cache key
        """
        return f"{self.KEY_PREFIX}{short_code}"
