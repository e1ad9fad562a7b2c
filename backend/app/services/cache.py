"""
RecipeBox Backend - Recipe Cache Adapter
==========================================

What:  Key/value cache contract (RecipeCache) and its Redis implementation.
Why:   The repository keeps one serialized snapshot of the recipe list in the
       cache. It needs three things from the backend: get, set, delete.
How:   RedisRecipeCache wraps `redis.asyncio.Redis`. Every call goes through a
       CircuitBreaker and every backend failure becomes a CacheError.

Miss vs Error (the distinction the repository relies on):
    get() returns None   → the key is absent. The repository rebuilds from the store.
    get() raises         → the backend failed. The repository serves from the
                           store without writing the cache (degraded read).
    An empty list is cached as b"[]", which is present, not absent.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.exceptions import CacheError, CircuitBreakerOpenError
from app.services.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)


class RecipeCache(ABC):
    """Byte-oriented key/value cache with optional per-key expiry."""

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """
        Return the value stored under `key`, or None when the key is absent.

        Raises:
            CacheError: The backend failed (never raised for a missing key).
        """
        ...

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        """Store `value` under `key`. ttl=None means no expiry."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove `key`. Deleting an absent key is not an error."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Lightweight connectivity check. Returns False instead of raising."""
        ...

    async def close(self) -> None:
        """Release backend connections. No-op unless overridden."""
        return None


class RedisRecipeCache(RecipeCache):
    """
    RecipeCache on Redis.

    Timeouts:
        The client is built with socket connect/read timeouts so that a hung
        Redis surfaces as a CacheError instead of stalling the request.

    Circuit breaker:
        After `failure_threshold` consecutive failures the breaker opens and
        calls fail immediately with CacheError until the recovery timeout.
    """

    def __init__(self, client: Redis, circuit_breaker: Optional[CircuitBreaker] = None):
        self._client = client
        self.circuit_breaker = circuit_breaker or CircuitBreaker(name="cache")

    @classmethod
    def from_url(
        cls,
        url: str,
        socket_timeout: float = 2.0,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ) -> "RedisRecipeCache":
        """Build a cache from a redis:// URL. No connection is opened until first use."""
        client = Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client, circuit_breaker=circuit_breaker)

    async def get(self, key: str) -> Optional[bytes]:
        value = await self._execute("get", key, self._client.get, key)
        if isinstance(value, str):
            # Client built with decode_responses=True
            return value.encode("utf-8")
        return value

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        await self._execute("set", key, self._client.set, key, value, ex=ttl)

    async def delete(self, key: str) -> None:
        await self._execute("delete", key, self._client.delete, key)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as e:
            logger.warning("Cache ping failed: %s", str(e))
            return False

    async def close(self) -> None:
        await self._client.aclose()

    async def _execute(
        self,
        operation: str,
        key: str,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        try:
            self.circuit_breaker.can_execute()
        except CircuitBreakerOpenError as e:
            raise CacheError(
                message=e.message,
                operation=operation,
                context={"key": key, "circuit": "open"},
            ) from e

        try:
            result = await func(*args, **kwargs)
        except (RedisError, OSError) as e:
            self.circuit_breaker.record_failure()
            raise CacheError(
                message=f"Cache {operation} failed",
                operation=operation,
                context={"key": key, "error_type": type(e).__name__, "error": str(e)},
            ) from e

        self.circuit_breaker.record_success()
        return result
