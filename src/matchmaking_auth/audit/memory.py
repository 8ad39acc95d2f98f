"""In-memory audit log for testing and development."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..ports import IAuditLog

if TYPE_CHECKING:
    from .events import AuditAction, AuditEntry


class InMemoryAuditLog(IAuditLog):
    """In-memory implementation of IAuditLog.

    Note:
        Entries are stored in memory and will be lost on restart.
        Not suitable for production use.
    """

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

    async def record(self, entry: AuditEntry) -> None:
        self._entries.append(entry)

    @property
    def entries(self) -> list[AuditEntry]:
        """All recorded entries, oldest first."""
        return list(self._entries)

    def by_action(self, action: AuditAction) -> list[AuditEntry]:
        """Entries with the given action, oldest first."""
        return [e for e in self._entries if e.action is action]

    def count(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        """Clear all entries.

        Useful for testing cleanup.
        """
        self._entries.clear()


__all__: list[str] = ["InMemoryAuditLog"]
