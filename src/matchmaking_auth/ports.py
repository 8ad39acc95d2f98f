"""Ports (protocols) for the collaborators of the authentication core.

The authentication core never reaches for framework globals: the cache,
user storage, mail queue, HTTP session, rate limiter, external identity
provider and audit sink are all injected through these protocols.
All ports use @runtime_checkable for isinstance checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from .audit.events import AuditEntry


# ═══════════════════════════════════════════════════════════════
# KEY-VALUE STORE PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IKeyValueStore(Protocol):
    """Protocol for a TTL-capable key-value cache.

    Values are JSON-serializable (or pydantic models). ``add``,
    ``increment`` and ``compare_and_swap`` must be atomic with respect to
    concurrent callers; the OTP gates and the attempt counter rely on it.
    """

    async def get(self, key: str) -> Any | None:
        """Return the value stored under key, or None if absent/expired."""
        ...

    async def put(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store value under key, overwriting it, with optional TTL in seconds."""
        ...

    async def forget(self, *keys: str) -> None:
        """Delete one or more keys."""
        ...

    async def has(self, key: str) -> bool:
        """Return True if key holds a live value."""
        ...

    async def add(self, key: str, value: Any, ttl: int) -> bool:
        """Store value only if key is absent.

        Returns:
            True if the value was stored, False if the key already existed.
        """
        ...

    async def increment(self, key: str, delta: int = 1, ttl: int | None = None) -> int:
        """Atomically add delta to an integer counter.

        The TTL is applied only when the increment creates the key; an
        existing key keeps its original expiry.

        Returns:
            The counter value after the increment.
        """
        ...

    async def compare_and_swap(
        self, key: str, expected: Any, new: Any, ttl: int
    ) -> bool:
        """Replace the value under key only if it still equals expected.

        A non-positive ttl deletes the key instead of rewriting it, which
        gives an atomic "consume if unchanged".

        Returns:
            True if the swap happened, False if the value changed meanwhile
            (or the key vanished).
        """
        ...

    async def ttl(self, key: str) -> int | None:
        """Return remaining seconds to live, or None if absent/persistent."""
        ...


# ═══════════════════════════════════════════════════════════════
# USER DIRECTORY PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class User(Protocol):
    """The portal user entity as seen by the authentication core."""

    id: str
    email: str
    name: str | None
    last_login_at: datetime | None

    def is_blocked(self) -> bool:
        """Return True if the account has been blocked by an administrator."""
        ...


@dataclass(frozen=True)
class OAuthUser:
    """User data returned by an OAuth provider SDK.

    Attributes:
        id: Provider-side user identifier.
        email: Email shared by the provider (may be missing).
        name: Display name.
        avatar: Avatar URL.
        token: Provider access token.
        refresh_token: Provider refresh token.
    """

    id: str
    email: str | None = None
    name: str | None = None
    avatar: str | None = None
    token: str | None = None
    refresh_token: str | None = None


@runtime_checkable
class IUserDirectory(Protocol):
    """Protocol for the portal's user storage.

    This is a PORT implemented by the application's data layer.
    """

    async def find_by_email(self, email: str) -> User | None:
        """Look up a user by normalized email."""
        ...

    async def update_last_login(self, user: User, when: datetime) -> None:
        """Persist the user's last login timestamp."""
        ...

    async def sync_profile(self, email: str, profile: dict[str, Any]) -> User:
        """Create or update a local user from an identity-provider profile."""
        ...

    async def upsert_oauth_user(self, provider_user: OAuthUser, provider: str) -> User:
        """Create or update a local user from an OAuth provider user."""
        ...


# ═══════════════════════════════════════════════════════════════
# PRIMARY IDENTITY PROVIDER PORT
# ═══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PrimaryAuthResponse:
    """Successful response of the external identity provider.

    Attributes:
        token: Session token issued by the external provider.
        profile: Profile data used to sync the local user.
    """

    token: str
    profile: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class IPrimaryIdentityProvider(Protocol):
    """Protocol for the external email/password identity provider.

    Password verification and storage live entirely behind this port.
    """

    async def authenticate(self, email: str, password: str) -> PrimaryAuthResponse:
        """Verify credentials with the provider.

        Raises:
            Exception: Any provider failure; the primary strategy maps it
                to PrimaryCredentialRejectedError.
        """
        ...


# ═══════════════════════════════════════════════════════════════
# NOTIFIER PORTS
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class INotifier(Protocol):
    """Protocol for the transactional email queue.

    ``enqueue`` must return without waiting for delivery.
    """

    def enqueue(
        self, template_key: str, recipient: User, variables: dict[str, Any]
    ) -> None:
        """Queue a templated email for asynchronous delivery."""
        ...


@runtime_checkable
class IEmailSender(Protocol):
    """Protocol for the mail transport used by the notifier worker."""

    async def send(
        self, template_key: str, recipient: User, variables: dict[str, Any]
    ) -> None:
        """Render and deliver a templated email."""
        ...


# ═══════════════════════════════════════════════════════════════
# SESSION GATEWAY PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class ISessionGateway(Protocol):
    """Protocol for the HTTP session of the current request."""

    async def regenerate(self) -> None:
        """Issue a new session identifier, keeping the session data."""
        ...

    async def invalidate(self) -> None:
        """Drop all session data and issue a new session identifier."""
        ...

    async def regenerate_token(self) -> None:
        """Rotate the CSRF token."""
        ...

    async def put(self, key: str, value: Any) -> None:
        """Store a value in the session."""
        ...

    async def get(self, key: str) -> Any | None:
        """Read a value from the session."""
        ...

    async def forget(self, *keys: str) -> None:
        """Remove values from the session."""
        ...


# ═══════════════════════════════════════════════════════════════
# CREDENTIAL RATE LIMITER PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class ICredentialRateLimiter(Protocol):
    """Protocol for the email/IP credential throttle."""

    async def too_many_attempts(self, key: str, max_attempts: int) -> bool:
        """Return True if the key reached max_attempts within its window."""
        ...

    async def hit(self, key: str, decay_seconds: int = 60) -> int:
        """Record a failed attempt and return the current count."""
        ...

    async def available_in(self, key: str) -> int:
        """Return seconds until the key's window resets."""
        ...

    async def clear(self, key: str) -> None:
        """Reset the key's attempts and window."""
        ...


# ═══════════════════════════════════════════════════════════════
# AUDIT PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IAuditLog(Protocol):
    """Protocol for the authentication audit sink."""

    async def record(self, entry: AuditEntry) -> None:
        """Record an audit entry."""
        ...


__all__: list[str] = [
    "IKeyValueStore",
    "User",
    "OAuthUser",
    "IUserDirectory",
    "PrimaryAuthResponse",
    "IPrimaryIdentityProvider",
    "INotifier",
    "IEmailSender",
    "ISessionGateway",
    "ICredentialRateLimiter",
    "IAuditLog",
]
