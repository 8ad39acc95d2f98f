"""In-memory key-value store for development and testing.

WARNING: This implementation is NOT suitable for production use.
It keeps data in a local dictionary and will NOT work with multiple workers.

Use RedisKeyValueStore in production.
"""

from __future__ import annotations

import copy
import math
import time
from typing import TYPE_CHECKING, Any

from ..ports import IKeyValueStore

if TYPE_CHECKING:
    from collections.abc import Callable


class InMemoryKeyValueStore(IKeyValueStore):
    """In-memory TTL cache for development and testing only.

    ⚠️ WARNING: Data lives in process memory and is lost on restart.

    None of the methods await, so each one runs to completion on the event
    loop without interleaving; that is what makes ``add``, ``increment`` and
    ``compare_and_swap`` atomic here.

    Example:
        ```python
        clock = FakeClock()
        store = InMemoryKeyValueStore(clock=clock)

        await store.put("otp:abc", {"code": "12345"}, ttl=600)
        clock.advance(601)
        assert await store.get("otp:abc") is None
        ```
    """

    def __init__(self, *, clock: Callable[[], float] | None = None) -> None:
        """Initialize the store.

        Args:
            clock: Returns the current time in seconds (default time.time).
        """
        self._clock = clock or time.time
        self._data: dict[str, tuple[Any, float | None]] = {}

    def _live(self, key: str) -> tuple[Any, float | None] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return entry

    def _expiry(self, ttl: int | None) -> float | None:
        if ttl is None:
            return None
        return self._clock() + ttl

    async def get(self, key: str) -> Any | None:
        entry = self._live(key)
        if entry is None:
            return None
        return copy.deepcopy(entry[0])

    async def put(self, key: str, value: Any, ttl: int | None = None) -> None:
        if ttl is not None and ttl <= 0:
            # A non-positive TTL means the value is already expired
            self._data.pop(key, None)
            return
        self._data[key] = (copy.deepcopy(value), self._expiry(ttl))

    async def forget(self, *keys: str) -> None:
        for key in keys:
            self._data.pop(key, None)

    async def has(self, key: str) -> bool:
        return self._live(key) is not None

    async def add(self, key: str, value: Any, ttl: int) -> bool:
        if self._live(key) is not None:
            return False
        await self.put(key, value, ttl)
        return True

    async def increment(self, key: str, delta: int = 1, ttl: int | None = None) -> int:
        entry = self._live(key)
        if entry is None:
            self._data[key] = (delta, self._expiry(ttl))
            return delta
        value, expires_at = entry
        new_value = int(value) + delta
        self._data[key] = (new_value, expires_at)
        return new_value

    async def compare_and_swap(
        self, key: str, expected: Any, new: Any, ttl: int
    ) -> bool:
        entry = self._live(key)
        if entry is None or entry[0] != expected:
            return False
        await self.put(key, new, ttl)
        return True

    async def ttl(self, key: str) -> int | None:
        entry = self._live(key)
        if entry is None or entry[1] is None:
            return None
        return max(0, math.ceil(entry[1] - self._clock()))

    def clear_all(self) -> None:
        """Clear all data.

        Useful for testing cleanup.
        """
        self._data.clear()


__all__: list[str] = ["InMemoryKeyValueStore"]
