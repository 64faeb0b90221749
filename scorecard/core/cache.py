import logging
from typing import Optional

from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class CacheService:
    """Thin wrapper around an async Redis client.

    If *redis_client* is ``None`` (Redis unavailable), every operation
    degrades to a no-op, so callers never need to check for ``None``.
    """

    def __init__(self, redis_client: Optional[Redis] = None) -> None:
        self._redis: Optional[Redis] = redis_client

    # ------------------------------------------------------------------
    # Core get / set / delete
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Optional[str]:
        """Return the raw string value for *key*, or ``None``."""
        if self._redis is None:
            return None
        try:
            return await self._redis.get(key)
        except Exception:
            logger.warning("Redis GET failed for key %s", key)
            return None

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store a raw string value, optionally with a TTL (seconds)."""
        if self._redis is None:
            return
        try:
            if ttl:
                await self._redis.setex(key, ttl, value)
            else:
                await self._redis.set(key, value)
        except Exception:
            logger.warning("Redis SET failed for key %s", key)

    async def delete(self, key: str) -> None:
        """Remove *key* from the cache (best-effort)."""
        if self._redis is None:
            return
        try:
            await self._redis.delete(key)
        except Exception:
            logger.warning("Redis DELETE failed for key %s", key)

    # ------------------------------------------------------------------
    # Atomic claim, used by refresh-token rotation
    # ------------------------------------------------------------------

    async def claim(self, key: str, ttl: int) -> Optional[bool]:
        """Atomically set *key* only if it does not exist yet.

        Returns ``True`` when this call created the key, ``False`` when
        it was already present, and ``None`` if Redis is unavailable so
        the caller can decide how to degrade.
        """
        if self._redis is None:
            return None
        try:
            created = await self._redis.set(key, "1", ex=ttl, nx=True)
            return bool(created)
        except Exception:
            logger.warning("Redis SET NX failed for key %s", key)
            return None


async def connect_redis(url: str) -> Optional[Redis]:
    """Open the shared Redis client, or return ``None`` if it is unreachable."""
    client = Redis.from_url(url, decode_responses=True)
    try:
        await client.ping()
    except Exception:
        logger.warning("Redis unavailable - duplicate cache and refresh claims disabled")
        await client.aclose()
        return None
    return client
