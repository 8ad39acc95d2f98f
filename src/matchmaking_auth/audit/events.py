"""Audit entries for authentication operations.

The orchestrator records one entry per attempt, success, failure and
logout. Unlike the OTP logs, these entries carry the plaintext email: this
is the portal's own login audit trail.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class AuditAction(Enum):
    """Audit actions.

    Naming follows the pattern: `auth.<action>`
    """

    ATTEMPT = "auth.attempt"
    AUTHENTICATED = "auth.authenticated"
    FAILED = "auth.failed"
    LOGGED_OUT = "auth.logged_out"


class AuditOutcome(Enum):
    """Outcome of an audited operation."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class AuditEntry:
    """Authentication audit entry.

    Attributes:
        action: What happened.
        outcome: Whether it succeeded.
        category: Audit channel (always "auth" for this package).
        email: Email the operation concerned.
        method: Authentication method ("primary_credentials", "otp", provider name).
        ip_address: Client IP address (if available).
        user_agent: Client user agent string (if available).
        user_id: Local user id once known.
        request_id: Correlation id of the HTTP request (if available).
        reason: Failure reason (error code) if the operation failed.
        timestamp: When the entry was created (UTC).
        metadata: Additional entry-specific data.
    """

    action: AuditAction
    outcome: AuditOutcome
    category: str = "auth"
    email: str | None = None
    method: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    user_id: str | None = None
    request_id: str | None = None
    reason: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate entry data."""
        if self.outcome is AuditOutcome.FAILURE and not self.reason:
            object.__setattr__(self, "reason", "unknown_error")

    def to_dict(self) -> dict[str, Any]:
        """Convert entry to dictionary for serialization.

        Returns:
            Dictionary representation suitable for JSON serialization.
        """
        return {
            "category": self.category,
            "action": self.action.value,
            "outcome": self.outcome.value,
            "email": self.email,
            "method": self.method,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "user_id": self.user_id,
            "request_id": self.request_id,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


# ═══════════════════════════════════════════════════════════════
# ENTRY FACTORY FUNCTIONS
# ═══════════════════════════════════════════════════════════════


def attempt_entry(
    email: str | None,
    method: str,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuditEntry:
    """Create an authentication attempt entry."""
    return AuditEntry(
        action=AuditAction.ATTEMPT,
        outcome=AuditOutcome.PENDING,
        email=email,
        method=method,
        ip_address=ip_address,
        user_agent=user_agent,
    )


def authenticated_entry(
    email: str | None,
    method: str,
    *,
    user_id: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuditEntry:
    """Create a successful authentication entry."""
    return AuditEntry(
        action=AuditAction.AUTHENTICATED,
        outcome=AuditOutcome.SUCCESS,
        email=email,
        method=method,
        user_id=user_id,
        ip_address=ip_address,
        user_agent=user_agent,
    )


def failure_entry(
    email: str | None,
    method: str,
    reason: str,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditEntry:
    """Create a failed authentication entry."""
    return AuditEntry(
        action=AuditAction.FAILED,
        outcome=AuditOutcome.FAILURE,
        email=email,
        method=method,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        metadata=metadata or {},
    )


def logout_entry(
    *,
    email: str | None = None,
    user_id: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuditEntry:
    """Create a logout entry."""
    return AuditEntry(
        action=AuditAction.LOGGED_OUT,
        outcome=AuditOutcome.SUCCESS,
        email=email,
        user_id=user_id,
        ip_address=ip_address,
        user_agent=user_agent,
    )


__all__: list[str] = [
    "AuditAction",
    "AuditOutcome",
    "AuditEntry",
    "attempt_entry",
    "authenticated_entry",
    "failure_entry",
    "logout_entry",
]
