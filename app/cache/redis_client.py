"""
Redis client used for the token revocation list and event read caching.

Every operation degrades to a miss/no-op when Redis is unreachable so a
cache outage never fails a request.
"""
import json
from typing import Optional, Any
import redis
from redis.connection import ConnectionPool
from app.core.config import settings
from app.core.logging import logger


class RedisCache:
    """Redis cache client with connection pooling and JSON values."""

    def __init__(self, url: str):
        self.url = url
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    def _get_client(self) -> redis.Redis:
        """Get or create the pooled Redis client."""
        if self._client is None:
            self._pool = redis.ConnectionPool.from_url(
                self.url,
                decode_responses=True,
                max_connections=20,
                socket_connect_timeout=2,
            )
            self._client = redis.Redis(connection_pool=self._pool)
            logger.info("Redis connection pool created")
        return self._client

    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value stored under key, or None."""
        try:
            value = self._get_client().get(key)
        except redis.RedisError as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None
        if value is None:
            return None
        return json.loads(value)

    async def set(self, key: str, value: Any, expire: int = 300) -> bool:
        """
        Store value as JSON with a TTL.

        Args:
            key: Cache key
            value: JSON-serialisable value
            expire: Time to live in seconds

        Returns:
            True if stored
        """
        try:
            self._get_client().setex(key, expire, json.dumps(value, default=str))
            return True
        except redis.RedisError as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            self._get_client().delete(key)
            return True
        except redis.RedisError as e:
            logger.error(f"Redis DELETE error for key {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a glob pattern such as 'events:*'.

        Returns:
            Number of keys deleted
        """
        try:
            client = self._get_client()
            keys = list(client.scan_iter(match=pattern))
            if keys:
                return client.delete(*keys)
            return 0
        except redis.RedisError as e:
            logger.error(f"Redis DELETE_PATTERN error for pattern {pattern}: {e}")
            return 0

    async def exists(self, key: str) -> bool:
        try:
            return self._get_client().exists(key) > 0
        except redis.RedisError as e:
            logger.error(f"Redis EXISTS error for key {key}: {e}")
            return False

    def close(self):
        """Close the Redis connection pool."""
        if self._client:
            self._client.close()
            self._client = None
            logger.info("Redis connection pool closed")


cache = RedisCache(settings.REDIS_URL)
