"""Test configuration and fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from matchmaking_auth import (
    AuthConfig,
    AuthenticationOrchestrator,
    CacheCredentialRateLimiter,
    InMemoryAuditLog,
    InMemoryKeyValueStore,
    InMemoryNotifier,
    InMemorySessionGateway,
    InMemoryUserDirectory,
    OtpEngine,
    PortalUser,
    PrimaryAuthResponse,
    PrimaryCredentialRejectedError,
)
from matchmaking_auth.factory import default_strategies

START = datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable clock shared by the store (epoch seconds) and the
    engine/orchestrator (aware datetimes)."""

    def __init__(self, start: datetime = START) -> None:
        self._now = start

    def now(self) -> datetime:
        return self._now

    def time(self) -> float:
        return self._now.timestamp()

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)


class FakeIdentityProvider:
    """External identity provider double.

    Accepts ``accounts`` (email -> password); raises ``error`` if set.
    """

    def __init__(self, accounts: dict[str, str] | None = None) -> None:
        self.accounts = dict(accounts or {})
        self.error: Exception | None = None
        self.calls: list[tuple[str, str]] = []

    async def authenticate(self, email: str, password: str) -> PrimaryAuthResponse:
        self.calls.append((email, password))
        if self.error is not None:
            raise self.error
        if self.accounts.get(email) != password:
            raise PrimaryCredentialRejectedError.invalid_credentials()
        return PrimaryAuthResponse(
            token=f"idp-token-{email}",
            profile={"name": email.split("@")[0].title()},
        )


def pytest_configure(config: Any) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests that require external services",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> AuthConfig:
    return AuthConfig()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock.time)


@pytest.fixture
def jane() -> PortalUser:
    return PortalUser(email="jane@example.com", name="Jane", id="user-jane")


@pytest.fixture
def blocked_user() -> PortalUser:
    return PortalUser(
        email="blocked@example.com", name="Blocked", id="user-blocked", blocked=True
    )


@pytest.fixture
def users(jane: PortalUser, blocked_user: PortalUser) -> InMemoryUserDirectory:
    return InMemoryUserDirectory([jane, blocked_user])


@pytest.fixture
def notifier() -> InMemoryNotifier:
    return InMemoryNotifier()


@pytest.fixture
def engine(
    store: InMemoryKeyValueStore,
    users: InMemoryUserDirectory,
    notifier: InMemoryNotifier,
    config: AuthConfig,
    clock: FakeClock,
) -> OtpEngine:
    return OtpEngine(
        store=store,
        users=users,
        notifier=notifier,
        config=config,
        clock=clock.now,
    )


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider(
        {"jane@example.com": "correct-horse", "blocked@example.com": "pw"}
    )


@pytest.fixture
def session() -> InMemorySessionGateway:
    return InMemorySessionGateway()


@pytest.fixture
def audit() -> InMemoryAuditLog:
    return InMemoryAuditLog()


@pytest.fixture
def rate_limiter(
    store: InMemoryKeyValueStore, clock: FakeClock
) -> CacheCredentialRateLimiter:
    return CacheCredentialRateLimiter(store, clock=clock.time)


@pytest.fixture
def orchestrator(
    engine: OtpEngine,
    users: InMemoryUserDirectory,
    identity_provider: FakeIdentityProvider,
    session: InMemorySessionGateway,
    rate_limiter: CacheCredentialRateLimiter,
    audit: InMemoryAuditLog,
    config: AuthConfig,
    clock: FakeClock,
) -> AuthenticationOrchestrator:
    return AuthenticationOrchestrator(
        strategies=default_strategies(
            identity_provider=identity_provider, users=users, otp_engine=engine
        ),
        users=users,
        session=session,
        rate_limiter=rate_limiter,
        audit=audit,
        config=config,
        clock=clock.now,
    )
