"""Redis implementation of the key-value store port."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from redis.exceptions import WatchError

from ..exceptions import KeyValueStoreError
from ..ports import IKeyValueStore

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger("matchmaking_auth.redis_store")

# INCRBY and set the TTL only when the key carries none (i.e. it was just
# created), in one round-trip so no other client can observe the gap.
_INCREMENT_SCRIPT = """
local value = redis.call('INCRBY', KEYS[1], ARGV[1])
local ttl = tonumber(ARGV[2])
if ttl > 0 and redis.call('TTL', KEYS[1]) == -1 then
    redis.call('EXPIRE', KEYS[1], ttl)
end
return value
"""


def _dumps(value: Any) -> str:
    if hasattr(value, "model_dump_json"):
        # Pydantic V2 optimized dumping
        return str(value.model_dump_json())
    return json.dumps(value, default=str)


def _loads(raw: Any) -> Any:
    if isinstance(raw, bytes):
        raw = raw.decode()
    return json.loads(raw)


class RedisKeyValueStore(IKeyValueStore):
    """
    Redis implementation of IKeyValueStore.
    Uses generic JSON serialization.

    Plain reads and writes degrade gracefully (logged, treated as a miss)
    like a cache. The atomic operations back security gates, so their
    failures raise KeyValueStoreError instead of failing open.
    """

    def __init__(self, redis_client: Redis[bytes]) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> Any | None:
        try:
            val = await self._redis.get(key)
            if val is None:
                return None
            return _loads(val)
        except Exception as e:  # noqa: BLE001
            logger.warning("Redis get failed for key %s: %s", key, e)
            return None

    async def put(self, key: str, value: Any, ttl: int | None = None) -> None:
        try:
            if ttl is not None and ttl <= 0:
                await self._redis.delete(key)
                return
            val = _dumps(value)
            if ttl:
                await self._redis.setex(key, ttl, val)
            else:
                await self._redis.set(key, val)
        except Exception as e:  # noqa: BLE001
            logger.warning("Redis set failed for key %s: %s", key, e)

    async def forget(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self._redis.delete(*keys)
        except Exception as e:  # noqa: BLE001
            logger.warning("Redis delete failed for keys %s: %s", keys, e)

    async def has(self, key: str) -> bool:
        try:
            return bool(await self._redis.exists(key))
        except Exception as e:  # noqa: BLE001
            logger.warning("Redis exists failed for key %s: %s", key, e)
            return False

    async def add(self, key: str, value: Any, ttl: int) -> bool:
        try:
            stored = await self._redis.set(key, _dumps(value), ex=ttl, nx=True)
        except Exception as e:
            raise KeyValueStoreError(f"Redis SET NX failed for key {key}") from e
        return bool(stored)

    async def increment(self, key: str, delta: int = 1, ttl: int | None = None) -> int:
        try:
            value = await self._redis.eval(_INCREMENT_SCRIPT, 1, key, delta, ttl or 0)
        except Exception as e:
            raise KeyValueStoreError(f"Redis INCRBY failed for key {key}") from e
        return int(value)

    async def compare_and_swap(
        self, key: str, expected: Any, new: Any, ttl: int
    ) -> bool:
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                current = await pipe.get(key)
                if current is None or _loads(current) != expected:
                    await pipe.unwatch()
                    return False
                pipe.multi()
                if ttl > 0:
                    pipe.setex(key, ttl, _dumps(new))
                else:
                    pipe.delete(key)
                await pipe.execute()
                return True
        except WatchError:
            # Another client touched the key between WATCH and EXEC
            return False
        except Exception as e:
            raise KeyValueStoreError(f"Redis compare-and-swap failed for key {key}") from e

    async def ttl(self, key: str) -> int | None:
        try:
            remaining = await self._redis.ttl(key)
        except Exception as e:  # noqa: BLE001
            logger.warning("Redis ttl failed for key %s: %s", key, e)
            return None
        if remaining is None or remaining < 0:
            return None
        return int(remaining)


__all__: list[str] = ["RedisKeyValueStore"]
