"""Email OTP strategy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..exceptions import OtpNotFoundError
from .base import (
    EMAIL,
    IP_ADDRESS,
    OTP_CODE,
    PASSWORD,
    PROVIDER_USER,
    AuthenticationResult,
    has_keys,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..otp.engine import OtpEngine

AUTH_METHOD = "otp"


class OtpStrategy:
    """Authenticates an email + OTP code by delegating to the OtpEngine."""

    def __init__(self, *, engine: OtpEngine) -> None:
        self.engine = engine

    def supports(self, credentials: Mapping[str, Any]) -> bool:
        return (
            has_keys(credentials, EMAIL, OTP_CODE)
            and not has_keys(credentials, PASSWORD)
            and not has_keys(credentials, PROVIDER_USER)
        )

    async def authenticate(self, credentials: Mapping[str, Any]) -> AuthenticationResult:
        if not has_keys(credentials, EMAIL, OTP_CODE):
            raise OtpNotFoundError()

        user = await self.engine.verify_otp(
            str(credentials[EMAIL]),
            str(credentials[OTP_CODE]),
            credentials.get(IP_ADDRESS),
        )
        return AuthenticationResult(user=user, auth_method=AUTH_METHOD)


__all__: list[str] = ["OtpStrategy", "AUTH_METHOD"]
