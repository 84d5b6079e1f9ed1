import asyncio
import json
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.config import settings
from app.errors import CacheUnavailableError

logger = logging.getLogger(__name__)


class CacheManager:
    """
    Cache-aside manager backed by Redis.

    All public methods are safe to call even when Redis is unavailable or
    slow.  Every round trip is bounded by *timeout* seconds; a failure or
    timeout is recorded and reported as a soft outcome instead of raised:
    ``get`` returns None (a miss) and ``set`` / ``delete`` return False.
    Callers decide what a soft failure means for them; nothing here ever
    propagates an exception.
    """

    def __init__(
        self,
        url: str | None = None,
        client: redis.Redis | None = None,
        timeout: float | None = None,
    ) -> None:
        self._url = url or settings.REDIS_URL
        self._redis: redis.Redis | None = client
        self._timeout = timeout if timeout is not None else settings.CACHE_OP_TIMEOUT
        self._hits: int = 0
        self._misses: int = 0
        self._errors: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            self._url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        # Ping to surface mis-configuration early (non-fatal).
        try:
            await self._call("PING", "-", self._redis.ping())
            logger.info("Redis connected: %s", self._url)
        except CacheUnavailableError as exc:
            logger.warning("Redis ping failed, reads will fall back to the store: %s", exc)

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    @property
    def connected(self) -> bool:
        return self._redis is not None

    # ------------------------------------------------------------------
    # Bounded round trip
    # ------------------------------------------------------------------

    async def _call(self, operation: str, key: str, awaitable):
        """
        Await a single Redis command with the configured timeout.

        Connection errors, protocol errors and timeouts are all folded
        into ``CacheUnavailableError``.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError:
            raise CacheUnavailableError(operation, key, f"timed out after {self._timeout}s") from None
        except (RedisError, OSError) as exc:
            raise CacheUnavailableError(operation, key, str(exc)) from exc

    def _record_failure(self, exc: CacheUnavailableError) -> None:
        self._errors += 1
        logger.warning("Cache unavailable: %s", exc)

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> dict | list | None:
        """
        Return the cached value for *key*, or None on a miss / error.

        An undecodable payload is treated like any other cache failure.
        """
        if not self._redis:
            self._misses += 1
            return None
        try:
            data = await self._call("GET", key, self._redis.get(key))
            if data is None:
                self._misses += 1
                return None
            try:
                value = json.loads(data)
            except ValueError as exc:
                raise CacheUnavailableError("GET", key, f"undecodable payload: {exc}") from exc
        except CacheUnavailableError as exc:
            self._record_failure(exc)
            self._misses += 1
            return None
        self._hits += 1
        return value

    async def set(self, key: str, value: dict | list, ttl: int | None = None) -> bool:
        """
        Replace the entry under *key* with *value*, expiring after *ttl*
        seconds.  Returns False when the write could not be performed.
        """
        if not self._redis:
            return False
        try:
            serialised = json.dumps(value, default=str)
            await self._call("SET", key, self._redis.set(key, serialised, ex=ttl))
        except (TypeError, ValueError) as exc:
            self._record_failure(CacheUnavailableError("SET", key, f"unserialisable value: {exc}"))
            return False
        except CacheUnavailableError as exc:
            self._record_failure(exc)
            return False
        return True

    async def delete(self, *keys: str) -> bool:
        """
        Remove every key in *keys* with a single ``DEL``.  Returns False
        when the keys could not be removed.
        """
        if not keys:
            return True
        if not self._redis:
            return False
        try:
            await self._call("DEL", ",".join(keys), self._redis.delete(*keys))
        except CacheUnavailableError as exc:
            self._record_failure(exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def stats(self) -> dict:
        """Return a snapshot of hit/miss/error counters for metrics endpoints."""
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "errors": self._errors,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }

    def reset_stats(self) -> None:
        self._hits = self._misses = self._errors = 0


# Module-level instance connected by the application lifespan.  Request
# handlers receive it through ``get_cache`` so tests can substitute their own.
cache = CacheManager()


def get_cache() -> CacheManager:
    return cache
