"""Authentication strategy contract.

A strategy claims a credential shape through ``supports()`` and turns a
claimed input into an AuthenticationResult. The orchestrator tries its
strategies in a fixed, explicit order and the first match wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..ports import User

# Credential input keys
EMAIL = "email"
PASSWORD = "password"  # noqa: S105
OTP_CODE = "otp_code"
IP_ADDRESS = "ip_address"
PROVIDER_USER = "provider_user"
PROVIDER = "provider"


@dataclass(frozen=True)
class OAuthMetadata:
    """OAuth data kept in the session after a social login.

    Attributes:
        provider: Provider name (e.g. "google", "linkedin").
        provider_id: Provider-side user id.
        access_token: Provider access token, if shared.
        refresh_token: Provider refresh token, if shared.
    """

    provider: str
    provider_id: str
    access_token: str | None = None
    refresh_token: str | None = None


@dataclass(frozen=True)
class AuthenticationResult:
    """Outcome of a successful strategy.

    Attributes:
        user: The authenticated user.
        auth_method: Method name recorded in the audit trail.
        external_token: Session token issued by the external identity provider.
        oauth: OAuth metadata for social logins.
        metadata: Any further strategy-specific data.
    """

    user: User
    auth_method: str
    external_token: str | None = None
    oauth: OAuthMetadata | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def has_external_token(self) -> bool:
        return bool(self.external_token)


@runtime_checkable
class IAuthStrategy(Protocol):
    """Protocol for polymorphic authentication strategies."""

    async def authenticate(self, credentials: Mapping[str, Any]) -> AuthenticationResult:
        """Authenticate the credentials.

        Raises:
            AuthError: A typed error specific to the strategy.
        """
        ...

    def supports(self, credentials: Mapping[str, Any]) -> bool:
        """Return True if this strategy handles the credential shape."""
        ...


def has_keys(credentials: Mapping[str, Any], *keys: str) -> bool:
    """Return True if every key is present with a non-None value."""
    return all(credentials.get(key) is not None for key in keys)


__all__: list[str] = [
    "AuthenticationResult",
    "OAuthMetadata",
    "IAuthStrategy",
    "has_keys",
    "EMAIL",
    "PASSWORD",
    "OTP_CODE",
    "IP_ADDRESS",
    "PROVIDER_USER",
    "PROVIDER",
]
