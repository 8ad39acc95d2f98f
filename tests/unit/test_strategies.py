"""Tests for the authentication strategies."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from matchmaking_auth import (
    AuthError,
    InMemoryNotifier,
    InMemoryUserDirectory,
    OAuthAuthenticationError,
    OAuthStrategy,
    OAuthUser,
    OtpEngine,
    OtpNotFoundError,
    OtpStrategy,
    PortalUser,
    PrimaryAuthResponse,
    PrimaryCredentialRejectedError,
    PrimaryCredentialStrategy,
)


class TestPrimaryCredentialStrategy:
    @pytest.fixture
    def strategy(
        self, identity_provider, users: InMemoryUserDirectory
    ) -> PrimaryCredentialStrategy:
        return PrimaryCredentialStrategy(
            identity_provider=identity_provider, users=users
        )

    def test_supports(self, strategy: PrimaryCredentialStrategy) -> None:
        assert strategy.supports({"email": "a@b.c", "password": "x"}) is True
        assert strategy.supports({"email": "a@b.c", "otp_code": "12345"}) is False
        assert strategy.supports({"email": "a@b.c", "password": None}) is False
        assert (
            strategy.supports(
                {"email": "a@b.c", "password": "x", "provider_user": object()}
            )
            is False
        )

    @pytest.mark.asyncio
    async def test_success_syncs_profile_and_returns_token(
        self, strategy: PrimaryCredentialStrategy, jane: PortalUser
    ) -> None:
        result = await strategy.authenticate(
            {"email": " JANE@example.com", "password": "correct-horse"}
        )

        assert result.user is jane
        assert result.auth_method == "primary_credentials"
        assert result.external_token == "idp-token-jane@example.com"
        assert result.has_external_token is True
        assert result.oauth is None

    @pytest.mark.asyncio
    async def test_first_login_creates_local_user(
        self, users: InMemoryUserDirectory
    ) -> None:
        idp = MagicMock()
        idp.authenticate = AsyncMock(
            return_value=PrimaryAuthResponse(token="tok", profile={"name": "Sam"})
        )
        strategy = PrimaryCredentialStrategy(identity_provider=idp, users=users)

        result = await strategy.authenticate(
            {"email": "sam@example.com", "password": "pw"}
        )

        assert result.user.name == "Sam"
        assert await users.find_by_email("sam@example.com") is result.user

    @pytest.mark.asyncio
    async def test_missing_password(self, strategy: PrimaryCredentialStrategy) -> None:
        with pytest.raises(PrimaryCredentialRejectedError) as exc_info:
            await strategy.authenticate({"email": "jane@example.com"})

        assert exc_info.value.error_code == "invalid_credentials"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("message", "error_code", "status_code"),
        [
            ("Service Unavailable", "service_unavailable", 503),
            ("Invalid credentials", "invalid_credentials", 401),
            ("boom", "api_error", 502),
        ],
    )
    async def test_provider_errors_are_mapped(
        self,
        users: InMemoryUserDirectory,
        message: str,
        error_code: str,
        status_code: int,
    ) -> None:
        idp = MagicMock()
        idp.authenticate = AsyncMock(side_effect=RuntimeError(message))
        strategy = PrimaryCredentialStrategy(identity_provider=idp, users=users)

        with pytest.raises(PrimaryCredentialRejectedError) as exc_info:
            await strategy.authenticate({"email": "jane@example.com", "password": "x"})

        assert exc_info.value.error_code == error_code
        assert exc_info.value.status_code == status_code
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestOAuthStrategy:
    @pytest.fixture
    def strategy(self, users: InMemoryUserDirectory) -> OAuthStrategy:
        return OAuthStrategy(users=users)

    def test_supports(self, strategy: OAuthStrategy) -> None:
        user = OAuthUser(id="1", email="a@b.c")
        assert strategy.supports({"provider_user": user, "provider": "google"}) is True
        assert strategy.supports({"provider_user": user}) is False
        assert strategy.supports({"email": "a@b.c", "password": "x"}) is False

    @pytest.mark.asyncio
    async def test_success_carries_oauth_metadata(
        self, strategy: OAuthStrategy, jane: PortalUser
    ) -> None:
        result = await strategy.authenticate(
            {
                "provider_user": OAuthUser(
                    id="li-7",
                    email="jane@example.com",
                    avatar="https://img/jane.png",
                    token="at",
                    refresh_token="rt",
                ),
                "provider": "linkedin",
            }
        )

        assert result.user is jane
        assert result.auth_method == "linkedin"
        assert result.oauth is not None
        assert result.oauth.provider == "linkedin"
        assert result.oauth.provider_id == "li-7"
        assert result.oauth.access_token == "at"
        assert result.oauth.refresh_token == "rt"
        assert jane.provider == "linkedin"
        assert jane.avatar == "https://img/jane.png"

    @pytest.mark.asyncio
    async def test_missing_credentials(self, strategy: OAuthStrategy) -> None:
        with pytest.raises(OAuthAuthenticationError) as exc_info:
            await strategy.authenticate({"provider": "google"})

        assert exc_info.value.error_code == "missing_credentials"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_provider_user_of_wrong_type(self, strategy: OAuthStrategy) -> None:
        with pytest.raises(OAuthAuthenticationError) as exc_info:
            await strategy.authenticate(
                {"provider_user": {"email": "a@b.c"}, "provider": "google"}
            )

        assert exc_info.value.error_code == "missing_credentials"

    @pytest.mark.asyncio
    async def test_missing_email(self, strategy: OAuthStrategy) -> None:
        with pytest.raises(OAuthAuthenticationError) as exc_info:
            await strategy.authenticate(
                {"provider_user": OAuthUser(id="1"), "provider": "google"}
            )

        assert exc_info.value.error_code == "missing_email"
        assert exc_info.value.status_code == 422
        assert "google" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_directory_failure_becomes_provider_error(self) -> None:
        users = MagicMock()
        users.upsert_oauth_user = AsyncMock(side_effect=RuntimeError("db down"))
        strategy = OAuthStrategy(users=users)

        with pytest.raises(OAuthAuthenticationError) as exc_info:
            await strategy.authenticate(
                {
                    "provider_user": OAuthUser(id="1", email="a@b.c"),
                    "provider": "google",
                }
            )

        assert exc_info.value.error_code == "provider_error"
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_typed_directory_errors_pass_through(self) -> None:
        users = MagicMock()
        users.upsert_oauth_user = AsyncMock(
            side_effect=AuthError("nope", error_code="custom", status_code=409)
        )
        strategy = OAuthStrategy(users=users)

        with pytest.raises(AuthError) as exc_info:
            await strategy.authenticate(
                {
                    "provider_user": OAuthUser(id="1", email="a@b.c"),
                    "provider": "google",
                }
            )

        assert exc_info.value.error_code == "custom"


class TestOtpStrategy:
    @pytest.fixture
    def strategy(self, engine: OtpEngine) -> OtpStrategy:
        return OtpStrategy(engine=engine)

    def test_supports(self, strategy: OtpStrategy) -> None:
        assert strategy.supports({"email": "a@b.c", "otp_code": "12345"}) is True
        assert (
            strategy.supports({"email": "a@b.c", "otp_code": "1", "password": "x"})
            is False
        )
        assert strategy.supports({"email": "a@b.c"}) is False

    @pytest.mark.asyncio
    async def test_delegates_to_engine(
        self,
        strategy: OtpStrategy,
        engine: OtpEngine,
        notifier: InMemoryNotifier,
        jane: PortalUser,
    ) -> None:
        await engine.send_otp("jane@example.com")
        code = notifier.last().variables["otp_code"]

        result = await strategy.authenticate(
            {"email": "jane@example.com", "otp_code": code, "ip_address": "10.0.0.1"}
        )

        assert result.user is jane
        assert result.auth_method == "otp"

    @pytest.mark.asyncio
    async def test_missing_code(self, strategy: OtpStrategy) -> None:
        with pytest.raises(OtpNotFoundError):
            await strategy.authenticate({"email": "jane@example.com"})
