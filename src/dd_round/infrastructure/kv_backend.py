"""Key/value backends for the round store.

Two implementations of ``KeyValueBackend``:
  - InMemoryKeyValueBackend: single-process dict, for local dev and tests.
  - RedisKeyValueBackend: shared store; RMW via WATCH/MULTI, CAS via Lua.

Every Redis failure is re-raised as StorageUnavailableError at this
boundary so business code never sees driver exceptions.
"""

import logging
import time
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager

import redis.asyncio as aioredis
from redis.exceptions import RedisError, WatchError

from src.dd_common.enums import StorageBackend
from src.dd_common.errors import StorageUnavailableError
from src.dd_round.domain.repository import KeyValueBackend

logger = logging.getLogger("dd.storage")

_MAX_UPDATE_ATTEMPTS = 50

# Delete only if the key still holds the value we expect
_COMPARE_AND_DELETE_LUA = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


class InMemoryKeyValueBackend:
    """Process-local store. All methods run without awaiting between read and
    write, so each call is atomic with respect to the event loop."""

    def __init__(self, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._data: dict[str, str] = {}
        self._expires_at: dict[str, float] = {}
        self._monotonic = monotonic

    def _evict_if_expired(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and self._monotonic() >= deadline:
            self._data.pop(key, None)
            self._expires_at.pop(key, None)

    async def get(self, key: str) -> str | None:
        self._evict_if_expired(key)
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._expires_at.pop(key, None)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
        self._expires_at.pop(key, None)

    async def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        self._evict_if_expired(key)
        if key in self._data:
            return False
        self._data[key] = value
        self._expires_at[key] = self._monotonic() + ttl_ms / 1000
        return True

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        self._evict_if_expired(key)
        if self._data.get(key) != expected:
            return False
        await self.delete(key)
        return True

    async def update(
        self, key: str, fn: Callable[[str | None], str | None]
    ) -> str | None:
        self._evict_if_expired(key)
        new_value = fn(self._data.get(key))
        if new_value is not None:
            self._data[key] = new_value
        return new_value

    async def ping(self) -> None:
        return None


@contextmanager
def _storage_errors(op: str, key: str) -> Iterator[None]:
    try:
        yield
    except WatchError:
        raise
    except RedisError as e:
        logger.error("redis %s failed for %s: %s", op, key, e)
        raise StorageUnavailableError() from e


class RedisKeyValueBackend:
    def __init__(self, client_factory: Callable[[], Awaitable[aioredis.Redis]]) -> None:
        self._client_factory = client_factory

    async def get(self, key: str) -> str | None:
        with _storage_errors("GET", key):
            redis = await self._client_factory()
            return await redis.get(key)

    async def set(self, key: str, value: str) -> None:
        with _storage_errors("SET", key):
            redis = await self._client_factory()
            await redis.set(key, value)

    async def delete(self, key: str) -> None:
        with _storage_errors("DEL", key):
            redis = await self._client_factory()
            await redis.delete(key)

    async def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        with _storage_errors("SET NX", key):
            redis = await self._client_factory()
            return bool(await redis.set(key, value, nx=True, px=ttl_ms))

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        with _storage_errors("EVAL", key):
            redis = await self._client_factory()
            deleted = await redis.eval(_COMPARE_AND_DELETE_LUA, 1, key, expected)
            return bool(deleted)

    async def update(
        self, key: str, fn: Callable[[str | None], str | None]
    ) -> str | None:
        """Optimistic RMW: WATCH key, compute, MULTI/SET/EXEC; retry on conflict."""
        with _storage_errors("WATCH/MULTI", key):
            redis = await self._client_factory()
            async with redis.pipeline(transaction=True) as pipe:
                for attempt in range(_MAX_UPDATE_ATTEMPTS):
                    try:
                        await pipe.watch(key)
                        current = await pipe.get(key)
                        new_value = fn(current)
                        if new_value is None:
                            await pipe.unwatch()
                            return None
                        pipe.multi()
                        pipe.set(key, new_value)
                        await pipe.execute()
                        return new_value
                    except WatchError:
                        logger.debug("write conflict on %s (attempt %d)", key, attempt + 1)
                        continue
        raise StorageUnavailableError(f"Too much write contention on {key}")

    async def ping(self) -> None:
        with _storage_errors("PING", "-"):
            redis = await self._client_factory()
            await redis.ping()


def create_backend(
    backend: str,
    redis_factory: Callable[[], Awaitable[aioredis.Redis]] | None = None,
) -> KeyValueBackend:
    """Select the backend once at process start."""
    kind = StorageBackend(backend.lower())
    if kind is StorageBackend.REDIS:
        if redis_factory is None:
            raise ValueError("redis backend requires a client factory")
        logger.info("Using Redis round storage")
        return RedisKeyValueBackend(redis_factory)
    logger.info("Using in-memory round storage")
    return InMemoryKeyValueBackend()
