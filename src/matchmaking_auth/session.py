"""In-memory session gateway for development and testing.

WARNING: This implementation is NOT suitable for production use.
It holds a single session in memory; adapt ISessionGateway to your web
framework's session in production.
"""

from __future__ import annotations

import secrets
from typing import Any

from .ports import ISessionGateway


class InMemorySessionGateway(ISessionGateway):
    """Single-session ISessionGateway for development and testing only.

    ⚠️ WARNING: This implementation models one browser session in a local
    dictionary. It will NOT work across requests or workers.

    Example:
        ```python
        session = InMemorySessionGateway()
        old_id = session.session_id

        await session.regenerate()
        assert session.session_id != old_id
        ```
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self.session_id = secrets.token_urlsafe(32)
        self.csrf_token = secrets.token_urlsafe(32)
        self.regenerations = 0

    async def regenerate(self) -> None:
        self.session_id = secrets.token_urlsafe(32)
        self.regenerations += 1

    async def invalidate(self) -> None:
        self._data.clear()
        self.session_id = secrets.token_urlsafe(32)

    async def regenerate_token(self) -> None:
        self.csrf_token = secrets.token_urlsafe(32)

    async def put(self, key: str, value: Any) -> None:
        self._data[key] = value

    async def get(self, key: str) -> Any | None:
        return self._data.get(key)

    async def forget(self, *keys: str) -> None:
        for key in keys:
            self._data.pop(key, None)

    @property
    def data(self) -> dict[str, Any]:
        """Snapshot of the session data."""
        return dict(self._data)


__all__: list[str] = ["InMemorySessionGateway"]
