"""Async key-value cache client with TTL, set and list operations.

Thin wrapper around redis.asyncio that gives the dedup core the narrow
contract it depends on:

- Every call has a bounded timeout (asyncio.wait_for)
- Connection errors and timeouts are retried with a linear backoff
  (50ms x attempt, capped at 2000ms) via tenacity
- Exhausted retries surface as CacheUnavailable so callers can fail open

The client is constructed explicitly and injected into services; there is no
module-level connection.
"""

import asyncio
import logging
import re
from typing import Awaitable, Callable, Optional, Set

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_incrementing

from ..config_loader import CacheSettings
from ..exceptions import CacheUnavailable

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (RedisConnectionError, RedisTimeoutError, asyncio.TimeoutError)

_GLOB_SPECIAL = re.compile(r"([\\*?\[\]])")


def escape_glob(text: str) -> str:
    """Escape Redis glob metacharacters so text matches literally."""
    return _GLOB_SPECIAL.sub(r"\\\1", text)


class CacheClient:
    """Redis-backed cache used for fingerprints, indexes and cooldown records."""

    def __init__(
        self,
        redis_client: aioredis.Redis,
        timeout_seconds: float = 2.0,
        max_retries: int = 3,
        backoff_ms: int = 50,
        backoff_cap_ms: int = 2000,
    ):
        """Initialize cache client.

        Args:
            redis_client: redis.asyncio client created with decode_responses=True
            timeout_seconds: Upper bound for a single cache call
            max_retries: Attempts per call before giving up
            backoff_ms: Backoff step; attempt N waits N * backoff_ms
            backoff_cap_ms: Maximum wait between attempts
        """
        self.redis = redis_client
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_ms / 1000
        self.backoff_cap_seconds = backoff_cap_ms / 1000

    @classmethod
    def from_settings(cls, settings: CacheSettings) -> "CacheClient":
        """Create a client connected to settings.REDIS_URL."""
        redis_client = aioredis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.SOCKET_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.SOCKET_TIMEOUT_SECONDS,
        )
        logger.info(f"Initialized cache client for {settings.REDIS_URL}")
        return cls(
            redis_client,
            timeout_seconds=settings.SOCKET_TIMEOUT_SECONDS,
            max_retries=settings.MAX_RETRIES,
            backoff_ms=settings.RETRY_BACKOFF_MS,
            backoff_cap_ms=settings.RETRY_BACKOFF_CAP_MS,
        )

    async def _call(self, operation: str, key: str, func: Callable[[], Awaitable]):
        """Run one cache call with timeout and retries."""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=wait_incrementing(
                    start=self.backoff_seconds,
                    increment=self.backoff_seconds,
                    max=self.backoff_cap_seconds,
                ),
                retry=retry_if_exception_type(RETRYABLE_ERRORS),
                reraise=True,
            ):
                with attempt:
                    return await asyncio.wait_for(func(), timeout=self.timeout_seconds)
        except RETRYABLE_ERRORS as e:
            logger.debug(f"Cache {operation} failed after {self.max_retries} attempts: {e}")
            raise CacheUnavailable(operation, key, e) from e
        except RedisError as e:
            raise CacheUnavailable(operation, key, e) from e

    async def get(self, key: str) -> Optional[str]:
        return await self._call("get", key, lambda: self.redis.get(key))

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Set key with expiration (overwrites, resets TTL)."""
        result = await self._call("set", key, lambda: self.redis.set(key, value, ex=ttl_seconds))
        return bool(result)

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Set key only if it does not exist. Returns True if written."""
        result = await self._call(
            "set_if_absent", key, lambda: self.redis.set(key, value, ex=ttl_seconds, nx=True)
        )
        return bool(result)

    async def exists(self, key: str) -> bool:
        return bool(await self._call("exists", key, lambda: self.redis.exists(key)))

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self._call("delete", ",".join(keys), lambda: self.redis.delete(*keys))

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        return bool(await self._call("expire", key, lambda: self.redis.expire(key, ttl_seconds)))

    async def ttl(self, key: str) -> int:
        """Remaining TTL in seconds (-1 no expiry, -2 missing key)."""
        return await self._call("ttl", key, lambda: self.redis.ttl(key))

    async def set_add(self, key: str, *members: str) -> int:
        return await self._call("set_add", key, lambda: self.redis.sadd(key, *members))

    async def set_remove(self, key: str, *members: str) -> int:
        if not members:
            return 0
        return await self._call("set_remove", key, lambda: self.redis.srem(key, *members))

    async def set_members(self, key: str) -> Set[str]:
        members = await self._call("set_members", key, lambda: self.redis.smembers(key))
        return set(members or ())

    async def list_push(self, key: str, value: str) -> int:
        """Push value to the head of a list."""
        return await self._call("list_push", key, lambda: self.redis.lpush(key, value))

    async def list_range(self, key: str, start: int, end: int) -> list[str]:
        return await self._call("list_range", key, lambda: self.redis.lrange(key, start, end))

    async def list_trim(self, key: str, start: int, end: int) -> bool:
        return bool(await self._call("list_trim", key, lambda: self.redis.ltrim(key, start, end)))

    async def keys_matching(self, pattern: str) -> list[str]:
        """All keys matching a glob pattern (cleanup only; uses SCAN)."""

        async def _scan():
            return [key async for key in self.redis.scan_iter(match=pattern)]

        return await self._call("keys_matching", pattern, _scan)

    async def keys_with_prefix(self, prefix: str) -> list[str]:
        """All keys starting with prefix, glob characters in prefix matched literally."""
        return await self.keys_matching(f"{escape_glob(prefix)}*")

    async def ping(self) -> bool:
        return bool(await self._call("ping", "", lambda: self.redis.ping()))

    async def close(self):
        """Close the underlying connection pool."""
        await self.redis.aclose()
