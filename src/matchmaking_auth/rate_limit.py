"""Credential throttle backed by the key-value store.

Two keys per throttle key:
    - ``throttle:<key>``: failed attempts in the current window.
    - ``throttle:<key>:timer``: unix timestamp at which the window ends.

The window opens on the first failed attempt and is not extended by later
ones, so a locked-out client waits at most ``decay_seconds``.
"""

from __future__ import annotations

import math
import time
from typing import TYPE_CHECKING

from .ports import ICredentialRateLimiter

if TYPE_CHECKING:
    from collections.abc import Callable

    from .ports import IKeyValueStore

THROTTLE_PREFIX = "throttle:"
TIMER_SUFFIX = ":timer"


class CacheCredentialRateLimiter(ICredentialRateLimiter):
    """ICredentialRateLimiter over an IKeyValueStore.

    Example:
        ```python
        limiter = CacheCredentialRateLimiter(RedisKeyValueStore(redis))

        if await limiter.too_many_attempts(key, 5):
            raise RateLimitedError(await limiter.available_in(key))
        ```
    """

    def __init__(
        self,
        store: IKeyValueStore,
        *,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.store = store
        self._clock = clock or time.time

    async def too_many_attempts(self, key: str, max_attempts: int) -> bool:
        if await self.attempts(key) >= max_attempts:
            if await self.store.has(self._timer_key(key)):
                return True
            # Window over; drop the stale counter.
            await self.store.forget(self._counter_key(key))
        return False

    async def hit(self, key: str, decay_seconds: int = 60) -> int:
        await self.store.add(
            self._timer_key(key), self._clock() + decay_seconds, decay_seconds
        )
        return await self.store.increment(
            self._counter_key(key), 1, ttl=decay_seconds
        )

    async def attempts(self, key: str) -> int:
        value = await self.store.get(self._counter_key(key))
        return int(value) if value is not None else 0

    async def available_in(self, key: str) -> int:
        available_at = await self.store.get(self._timer_key(key))
        if available_at is None:
            return 0
        return max(0, math.ceil(float(available_at) - self._clock()))

    async def clear(self, key: str) -> None:
        await self.store.forget(self._counter_key(key), self._timer_key(key))

    @staticmethod
    def _counter_key(key: str) -> str:
        return f"{THROTTLE_PREFIX}{key}"

    @staticmethod
    def _timer_key(key: str) -> str:
        return f"{THROTTLE_PREFIX}{key}{TIMER_SUFFIX}"


__all__: list[str] = ["CacheCredentialRateLimiter", "THROTTLE_PREFIX"]
