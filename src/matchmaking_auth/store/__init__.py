"""Key-value store adapters."""

from __future__ import annotations

from .memory import InMemoryKeyValueStore

__all__: list[str] = ["InMemoryKeyValueStore"]
