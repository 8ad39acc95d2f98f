"""Email/password strategy backed by the external identity provider."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..exceptions import PrimaryCredentialRejectedError
from ..identifiers import normalize_email
from .base import EMAIL, PASSWORD, PROVIDER_USER, AuthenticationResult, has_keys

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..ports import IPrimaryIdentityProvider, IUserDirectory

logger = logging.getLogger(__name__)

AUTH_METHOD = "primary_credentials"


class PrimaryCredentialStrategy:
    """Authenticates email/password against the external identity provider.

    Passwords are never verified or stored locally. On success the local
    user is created or refreshed from the provider profile and the
    provider's session token travels back in the result.

    Every failure surfaces as PrimaryCredentialRejectedError; the error
    code distinguishes wrong credentials from provider outages.
    """

    def __init__(
        self,
        *,
        identity_provider: IPrimaryIdentityProvider,
        users: IUserDirectory,
    ) -> None:
        self.identity_provider = identity_provider
        self.users = users

    def supports(self, credentials: Mapping[str, Any]) -> bool:
        return has_keys(credentials, EMAIL, PASSWORD) and not has_keys(
            credentials, PROVIDER_USER
        )

    async def authenticate(self, credentials: Mapping[str, Any]) -> AuthenticationResult:
        """Authenticate with the external identity provider.

        Raises:
            PrimaryCredentialRejectedError: Credentials missing or rejected,
                or the provider failed.
        """
        if not has_keys(credentials, EMAIL, PASSWORD):
            raise PrimaryCredentialRejectedError.invalid_credentials()

        email = normalize_email(str(credentials[EMAIL]))
        password = str(credentials[PASSWORD])

        try:
            response = await self.identity_provider.authenticate(email, password)
            user = await self.users.sync_profile(email, response.profile)
        except PrimaryCredentialRejectedError:
            raise
        except Exception as e:
            logger.error(
                "Primary identity provider authentication failed for %s: %s",
                email,
                e,
            )
            raise self._map_error(e) from e

        return AuthenticationResult(
            user=user,
            auth_method=AUTH_METHOD,
            external_token=response.token,
        )

    @staticmethod
    def _map_error(error: Exception) -> PrimaryCredentialRejectedError:
        message = str(error)
        if "unavailable" in message.lower():
            return PrimaryCredentialRejectedError.service_unavailable()
        if "invalid credentials" in message.lower():
            return PrimaryCredentialRejectedError.invalid_credentials()
        return PrimaryCredentialRejectedError.api_error(message)


__all__: list[str] = ["PrimaryCredentialStrategy", "AUTH_METHOD"]
