"""Authentication orchestrator.

Chooses a strategy for the supplied credentials, applies the credential
throttle, and turns a successful result into a session (fixation-safe
regeneration, token storage, last-login update, audit).
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from .audit.events import (
    attempt_entry,
    authenticated_entry,
    failure_entry,
    logout_entry,
)
from .config import AuthConfig
from .exceptions import (
    AccountBlockedError,
    AuthError,
    PrimaryCredentialRejectedError,
    RateLimitedError,
    UnsupportedAuthenticationMethodError,
)
from .identifiers import normalize_email, throttle_key
from .request_context import get_client_ip, get_request_id, get_user_agent
from .strategies.base import (
    EMAIL,
    IP_ADDRESS,
    OTP_CODE,
    PASSWORD,
    PROVIDER,
    PROVIDER_USER,
)
from .strategies.otp import AUTH_METHOD as OTP_METHOD
from .strategies.primary import AUTH_METHOD as PRIMARY_METHOD

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from .audit.events import AuditEntry
    from .ports import (
        IAuditLog,
        ICredentialRateLimiter,
        ISessionGateway,
        IUserDirectory,
        OAuthUser,
        User,
    )
    from .strategies.base import AuthenticationResult, IAuthStrategy

logger = logging.getLogger(__name__)

# Session keys
SESSION_USER_ID = "auth_user_id"
SESSION_EXTERNAL_TOKEN = "external_api_token"  # noqa: S105
SESSION_OAUTH_PROVIDER = "oauth_provider"
SESSION_OAUTH_ID = "oauth_id"
SESSION_OAUTH_TOKEN = "oauth_token"  # noqa: S105
SESSION_OAUTH_REFRESH_TOKEN = "oauth_refresh_token"  # noqa: S105

# Audit reason for failures that are not typed auth errors
INTERNAL_ERROR_REASON = "internal_error"

AUTH_SESSION_KEYS: tuple[str, ...] = (
    SESSION_USER_ID,
    SESSION_EXTERNAL_TOKEN,
    SESSION_OAUTH_PROVIDER,
    SESSION_OAUTH_ID,
    SESSION_OAUTH_TOKEN,
    SESSION_OAUTH_REFRESH_TOKEN,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthenticationOrchestrator:
    """Entry point for every login, social login, OTP login and logout.

    Strategies are tried in the order given; the first one whose
    ``supports()`` accepts the credentials handles them. Typed errors from
    strategies propagate unchanged; the orchestrator only intercepts them to
    update the credential throttle and the audit trail.

    Example:
        ```python
        orchestrator = AuthenticationOrchestrator(
            strategies=[primary, oauth, otp],
            users=user_directory,
            session=session_gateway,
            rate_limiter=CacheCredentialRateLimiter(store),
            audit=LoggingAuditLog(),
        )

        user = await orchestrator.authenticate_with_credentials(
            "jane@example.com", "s3cret", client_ip="10.0.0.1"
        )
        ```
    """

    def __init__(
        self,
        *,
        strategies: Sequence[IAuthStrategy],
        users: IUserDirectory,
        session: ISessionGateway,
        rate_limiter: ICredentialRateLimiter,
        audit: IAuditLog | None = None,
        config: AuthConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not strategies:
            raise ValueError("At least one strategy is required")

        self._strategies = list(strategies)
        self.users = users
        self.session = session
        self.rate_limiter = rate_limiter
        self.audit = audit
        self.config = config or AuthConfig()
        self._clock = clock or _utcnow

    @property
    def strategies(self) -> list[IAuthStrategy]:
        """Strategies in priority order."""
        return list(self._strategies)

    # ═══════════════════════════════════════════════════════════════
    # ENTRY POINTS
    # ═══════════════════════════════════════════════════════════════

    async def authenticate_with_credentials(
        self, email: str, password: str, client_ip: str | None = None
    ) -> User:
        """Email/password login, throttled per email and client IP.

        Raises:
            RateLimitedError: The email/IP pair is locked out; no strategy
                was invoked.
            PrimaryCredentialRejectedError: The identity provider rejected
                the credentials (counts toward the lockout).
            AccountBlockedError: The account is blocked.
        """
        client_ip = client_ip or get_client_ip()
        key = throttle_key(email, client_ip)

        if await self.rate_limiter.too_many_attempts(
            key, self.config.credential_max_attempts
        ):
            retry_after = await self.rate_limiter.available_in(key)
            await self._audit(
                failure_entry(
                    normalize_email(email),
                    PRIMARY_METHOD,
                    "rate_limited",
                    ip_address=client_ip,
                    user_agent=get_user_agent(),
                    metadata={"retry_after": retry_after},
                )
            )
            raise RateLimitedError(retry_after)

        try:
            result = await self._authenticate(
                {EMAIL: email, PASSWORD: password},
                email=email,
                method=PRIMARY_METHOD,
                client_ip=client_ip,
            )
        except PrimaryCredentialRejectedError:
            await self.rate_limiter.hit(key, self.config.credential_decay_seconds)
            raise

        await self.rate_limiter.clear(key)
        await self.complete_authentication(result.user, result, client_ip=client_ip)
        return result.user

    async def authenticate_with_oauth(
        self, provider_user: OAuthUser, provider: str
    ) -> User:
        """Social login for a user returned by the provider SDK.

        Raises:
            OAuthAuthenticationError: Missing input/email or directory failure.
            AccountBlockedError: The account is blocked.
        """
        client_ip = get_client_ip()
        result = await self._authenticate(
            {PROVIDER_USER: provider_user, PROVIDER: provider},
            email=getattr(provider_user, "email", None),
            method=provider,
            client_ip=client_ip,
        )
        await self.complete_authentication(result.user, result, client_ip=client_ip)
        return result.user

    async def authenticate_with_otp(
        self, email: str, code: str, client_ip: str | None = None
    ) -> User:
        """Passwordless login with an emailed one-time code.

        Attempts are bounded by the OTP engine itself, so this path is not
        subject to the credential throttle.

        Raises:
            OtpError: Any OTP verification failure.
            AccountBlockedError: The account is blocked.
        """
        client_ip = client_ip or get_client_ip()
        result = await self._authenticate(
            {EMAIL: email, OTP_CODE: code, IP_ADDRESS: client_ip},
            email=email,
            method=OTP_METHOD,
            client_ip=client_ip,
        )
        await self.complete_authentication(result.user, result, client_ip=client_ip)
        return result.user

    # ═══════════════════════════════════════════════════════════════
    # STRATEGY DISPATCH
    # ═══════════════════════════════════════════════════════════════

    async def _authenticate(
        self,
        credentials: Mapping[str, Any],
        *,
        email: str | None = None,
        method: str | None = None,
        client_ip: str | None = None,
    ) -> AuthenticationResult:
        """Run the first strategy that supports the credentials.

        Raises:
            UnsupportedAuthenticationMethodError: No strategy matched.
        """
        email = normalize_email(email) if email else None
        user_agent = get_user_agent()
        strategy = self._select_strategy(credentials)

        if strategy is None:
            error = UnsupportedAuthenticationMethodError()
            await self._audit(
                failure_entry(
                    email,
                    method or "unknown",
                    error.error_code,
                    ip_address=client_ip,
                    user_agent=user_agent,
                )
            )
            raise error

        method = method or type(strategy).__name__
        await self._audit(
            attempt_entry(email, method, ip_address=client_ip, user_agent=user_agent)
        )

        try:
            return await strategy.authenticate(credentials)
        except AuthError as e:
            await self._audit(
                failure_entry(
                    email,
                    method,
                    e.error_code,
                    ip_address=client_ip,
                    user_agent=user_agent,
                )
            )
            raise
        except Exception:
            await self._audit(
                failure_entry(
                    email,
                    method,
                    INTERNAL_ERROR_REASON,
                    ip_address=client_ip,
                    user_agent=user_agent,
                )
            )
            raise

    def _select_strategy(self, credentials: Mapping[str, Any]) -> IAuthStrategy | None:
        for strategy in self._strategies:
            if strategy.supports(credentials):
                return strategy
        return None

    # ═══════════════════════════════════════════════════════════════
    # SESSION
    # ═══════════════════════════════════════════════════════════════

    async def complete_authentication(
        self,
        user: User,
        result: AuthenticationResult,
        *,
        client_ip: str | None = None,
    ) -> None:
        """Establish the session for an authenticated user.

        A blocked user is rejected before the session is touched.

        Raises:
            AccountBlockedError: The account is blocked.
        """
        client_ip = client_ip or get_client_ip()

        if user.is_blocked():
            error = AccountBlockedError()
            await self._audit(
                failure_entry(
                    user.email,
                    result.auth_method,
                    error.error_code,
                    ip_address=client_ip,
                    user_agent=get_user_agent(),
                )
            )
            raise error

        # New session id before anything identifying is stored.
        await self.session.regenerate()
        await self.session.put(SESSION_USER_ID, user.id)

        if result.has_external_token:
            await self.session.put(SESSION_EXTERNAL_TOKEN, result.external_token)

        if result.oauth is not None:
            await self.session.put(SESSION_OAUTH_PROVIDER, result.oauth.provider)
            await self.session.put(SESSION_OAUTH_ID, result.oauth.provider_id)
            await self.session.put(SESSION_OAUTH_TOKEN, result.oauth.access_token)
            await self.session.put(
                SESSION_OAUTH_REFRESH_TOKEN, result.oauth.refresh_token
            )

        await self.users.update_last_login(user, self._clock())

        await self._audit(
            authenticated_entry(
                user.email,
                result.auth_method,
                user_id=user.id,
                ip_address=client_ip,
                user_agent=get_user_agent(),
            )
        )

    async def logout(self) -> None:
        """Clear authentication state and rotate the session and CSRF token."""
        user_id = await self.session.get(SESSION_USER_ID)

        await self.session.forget(*AUTH_SESSION_KEYS)
        await self.session.invalidate()
        await self.session.regenerate_token()

        await self._audit(
            logout_entry(
                user_id=user_id,
                ip_address=get_client_ip(),
                user_agent=get_user_agent(),
            )
        )

    async def _audit(self, entry: AuditEntry) -> None:
        if self.audit is None:
            return
        if entry.request_id is None:
            entry = dataclasses.replace(entry, request_id=get_request_id())
        try:
            await self.audit.record(entry)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Failed to record audit entry %s: %s", entry.action, exc)


__all__: list[str] = [
    "AuthenticationOrchestrator",
    "AUTH_SESSION_KEYS",
    "INTERNAL_ERROR_REASON",
    "SESSION_USER_ID",
    "SESSION_EXTERNAL_TOKEN",
    "SESSION_OAUTH_PROVIDER",
    "SESSION_OAUTH_ID",
    "SESSION_OAUTH_TOKEN",
    "SESSION_OAUTH_REFRESH_TOKEN",
]
