"""Authentication and one-time-password core for the matchmaking portal.

Provides:
- Polymorphic credential strategies (primary identity provider, OAuth, OTP)
- AuthenticationOrchestrator with credential throttling and
  session-fixation protection
- OtpEngine with per-email rate limiting and bounded, timing-safe verification
- Ports for the key-value store, user directory, notifier, session and audit
- In-memory and Redis adapters
"""

from __future__ import annotations

from .audit import InMemoryAuditLog, LoggingAuditLog
from .config import AuthConfig
from .directory import InMemoryUserDirectory, PortalUser
from .exceptions import (
    AccountBlockedError,
    AuthError,
    KeyValueStoreError,
    MatchmakingAuthError,
    OAuthAuthenticationError,
    OtpError,
    OtpInvalidCodeError,
    OtpMaxAttemptsExceededError,
    OtpNotFoundError,
    OtpRateLimitedError,
    PrimaryCredentialRejectedError,
    RateLimitedError,
    UnsupportedAuthenticationMethodError,
)
from .factory import create_orchestrator, create_otp_engine, default_strategies
from .identifiers import hash_email, mask_email, normalize_email, throttle_key
from .notifier import InMemoryNotifier, QueuedNotifier
from .orchestrator import AuthenticationOrchestrator
from .otp import OtpEngine, OtpRecord, OtpResponse
from .ports import (
    IAuditLog,
    ICredentialRateLimiter,
    IEmailSender,
    IKeyValueStore,
    INotifier,
    IPrimaryIdentityProvider,
    ISessionGateway,
    IUserDirectory,
    OAuthUser,
    PrimaryAuthResponse,
    User,
)
from .rate_limit import CacheCredentialRateLimiter
from .request_context import (
    RequestContext,
    get_request_context,
    get_request_id,
    reset_request_context,
    set_request_context,
)
from .session import InMemorySessionGateway
from .store import InMemoryKeyValueStore
from .strategies import (
    AuthenticationResult,
    IAuthStrategy,
    OAuthMetadata,
    OAuthStrategy,
    OtpStrategy,
    PrimaryCredentialStrategy,
)

__all__: list[str] = [
    # Config
    "AuthConfig",
    # Ports
    "IKeyValueStore",
    "IUserDirectory",
    "User",
    "OAuthUser",
    "IPrimaryIdentityProvider",
    "PrimaryAuthResponse",
    "INotifier",
    "IEmailSender",
    "ISessionGateway",
    "ICredentialRateLimiter",
    "IAuditLog",
    # Core
    "AuthenticationOrchestrator",
    "OtpEngine",
    "OtpRecord",
    "OtpResponse",
    # Strategies
    "IAuthStrategy",
    "AuthenticationResult",
    "OAuthMetadata",
    "PrimaryCredentialStrategy",
    "OAuthStrategy",
    "OtpStrategy",
    # Factory
    "create_orchestrator",
    "create_otp_engine",
    "default_strategies",
    # Adapters
    "InMemoryKeyValueStore",
    "InMemoryUserDirectory",
    "PortalUser",
    "InMemoryNotifier",
    "QueuedNotifier",
    "InMemorySessionGateway",
    "CacheCredentialRateLimiter",
    "InMemoryAuditLog",
    "LoggingAuditLog",
    # Request context
    "RequestContext",
    "get_request_context",
    "get_request_id",
    "set_request_context",
    "reset_request_context",
    # Helpers
    "normalize_email",
    "hash_email",
    "throttle_key",
    "mask_email",
    # Exceptions
    "MatchmakingAuthError",
    "AuthError",
    "UnsupportedAuthenticationMethodError",
    "AccountBlockedError",
    "RateLimitedError",
    "PrimaryCredentialRejectedError",
    "OAuthAuthenticationError",
    "OtpError",
    "OtpNotFoundError",
    "OtpInvalidCodeError",
    "OtpMaxAttemptsExceededError",
    "OtpRateLimitedError",
    "KeyValueStoreError",
]
