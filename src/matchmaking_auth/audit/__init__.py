"""Authentication audit trail.

Provides audit entries, an in-memory log for tests and a logging-backed
sink for production.
"""

from __future__ import annotations

from .events import (
    AuditAction,
    AuditEntry,
    AuditOutcome,
    attempt_entry,
    authenticated_entry,
    failure_entry,
    logout_entry,
)
from .memory import InMemoryAuditLog
from .sink import LoggingAuditLog

__all__: list[str] = [
    "AuditAction",
    "AuditOutcome",
    "AuditEntry",
    "attempt_entry",
    "authenticated_entry",
    "failure_entry",
    "logout_entry",
    "InMemoryAuditLog",
    "LoggingAuditLog",
]
