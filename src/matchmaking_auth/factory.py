"""Factory functions for wiring the authentication core.

The strategy order is fixed: primary credentials, then OAuth, then OTP.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import AuthConfig
from .orchestrator import AuthenticationOrchestrator
from .otp.engine import OtpEngine
from .rate_limit import CacheCredentialRateLimiter
from .strategies import OAuthStrategy, OtpStrategy, PrimaryCredentialStrategy

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from .ports import (
        IAuditLog,
        ICredentialRateLimiter,
        IKeyValueStore,
        INotifier,
        IPrimaryIdentityProvider,
        ISessionGateway,
        IUserDirectory,
    )
    from .strategies.base import IAuthStrategy


def create_otp_engine(
    *,
    store: IKeyValueStore,
    users: IUserDirectory,
    notifier: INotifier,
    config: AuthConfig | None = None,
    clock: Callable[[], datetime] | None = None,
) -> OtpEngine:
    """Create an OtpEngine."""
    return OtpEngine(
        store=store,
        users=users,
        notifier=notifier,
        config=config,
        clock=clock,
    )


def default_strategies(
    *,
    identity_provider: IPrimaryIdentityProvider,
    users: IUserDirectory,
    otp_engine: OtpEngine,
) -> list[IAuthStrategy]:
    """Build the strategies in priority order: primary, OAuth, OTP."""
    return [
        PrimaryCredentialStrategy(identity_provider=identity_provider, users=users),
        OAuthStrategy(users=users),
        OtpStrategy(engine=otp_engine),
    ]


def create_orchestrator(
    *,
    store: IKeyValueStore,
    users: IUserDirectory,
    identity_provider: IPrimaryIdentityProvider,
    session: ISessionGateway,
    notifier: INotifier | None = None,
    otp_engine: OtpEngine | None = None,
    rate_limiter: ICredentialRateLimiter | None = None,
    audit: IAuditLog | None = None,
    config: AuthConfig | None = None,
) -> AuthenticationOrchestrator:
    """Create an AuthenticationOrchestrator with the default strategies.

    Either ``otp_engine`` or ``notifier`` must be given; the engine is
    built from the store, users and notifier when absent. The credential
    throttle defaults to one backed by the same store.

    Example:
        ```python
        orchestrator = create_orchestrator(
            store=RedisKeyValueStore(redis),
            users=user_directory,
            identity_provider=idp_client,
            session=session_gateway,
            notifier=notifier,
            audit=LoggingAuditLog(),
        )
        ```

    Raises:
        ValueError: Neither an OTP engine nor a notifier was supplied.
    """
    config = config or AuthConfig()

    if otp_engine is None:
        if notifier is None:
            raise ValueError("Either 'otp_engine' or 'notifier' must be provided")
        otp_engine = create_otp_engine(
            store=store, users=users, notifier=notifier, config=config
        )

    return AuthenticationOrchestrator(
        strategies=default_strategies(
            identity_provider=identity_provider,
            users=users,
            otp_engine=otp_engine,
        ),
        users=users,
        session=session,
        rate_limiter=rate_limiter or CacheCredentialRateLimiter(store),
        audit=audit,
        config=config,
    )


__all__: list[str] = [
    "create_otp_engine",
    "default_strategies",
    "create_orchestrator",
]
