import json
import logging

import redis.asyncio as redis

from app.config import settings

logger = logging.getLogger(__name__)

FEED_KEY_PREFIX = "posts:feed"

# Session.info key set by feed writes; read by get_db after the commit.
FEED_STALE_FLAG = "feed_stale"


class CacheManager:
    """
    Cache-aside manager backed by Redis, used for feed pages.

    All public methods are safe to call even when Redis is unavailable:
    read operations return None and write operations are skipped, so the
    feed is served straight from the database without raising to callers.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self._hits: int = 0
        self._misses: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        # Ping to surface mis-configuration early (non-fatal).
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed, feed cache disabled: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> dict | list | None:
        """Return the cached value for *key*, or None on a miss / error."""
        if not self._redis:
            self._misses += 1
            return None
        try:
            data = await self._redis.get(key)
            if data is not None:
                self._hits += 1
                return json.loads(data)
            self._misses += 1
            return None
        except Exception as exc:
            logger.debug("Cache GET error for key=%r: %s", key, exc)
            self._misses += 1
            return None

    async def set(self, key: str, value: dict | list, ttl: int | None = None) -> None:
        """
        Persist *value* under *key* with an optional TTL (seconds).

        Serialisation errors and Redis failures are logged, never raised.
        """
        if not self._redis:
            return
        try:
            serialised = json.dumps(value, default=str)
            await self._redis.set(key, serialised, ex=ttl)
        except Exception as exc:
            logger.debug("Cache SET error for key=%r: %s", key, exc)

    async def delete_pattern(self, pattern: str) -> None:
        """Delete all keys matching *pattern* using SCAN (avoids blocking KEYS)."""
        if not self._redis:
            return
        try:
            keys: list[str] = []
            async for key in self._redis.scan_iter(match=pattern):
                keys.append(key)
            if keys:
                await self._redis.delete(*keys)
                logger.debug("Cache invalidated %d key(s) matching %r", len(keys), pattern)
        except Exception as exc:
            logger.debug("Cache DELETE_PATTERN error for pattern=%r: %s", pattern, exc)

    # ------------------------------------------------------------------
    # Feed helpers
    # ------------------------------------------------------------------

    @staticmethod
    def feed_key(page: int) -> str:
        return f"{FEED_KEY_PREFIX}:{page}"

    async def invalidate_feed(self) -> None:
        """
        Drop every cached feed page.

        A new post shifts every page and a new comment or reply changes the
        page that embeds it.
        """
        await self.delete_pattern(f"{FEED_KEY_PREFIX}:*")

    @staticmethod
    def mark_feed_stale(session) -> None:
        """
        Record that *session* wrote a post, comment or reply.

        The pages are dropped only once the transaction commits; dropping
        them earlier lets a concurrent read cache the pre-commit feed.
        """
        session.info[FEED_STALE_FLAG] = True

    async def invalidate_if_stale(self, session) -> None:
        """Drop the feed pages if *session* was marked; call after commit."""
        if session.info.pop(FEED_STALE_FLAG, False):
            await self.invalidate_feed()

    @property
    def stats(self) -> dict:
        """Snapshot of hit/miss counters."""
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


# Module-level singleton shared across all request handlers.
cache = CacheManager()
