"""Social login strategy for users returned by an OAuth provider SDK."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..exceptions import AuthError, OAuthAuthenticationError
from ..ports import OAuthUser
from .base import PROVIDER, PROVIDER_USER, AuthenticationResult, OAuthMetadata, has_keys

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..ports import IUserDirectory

logger = logging.getLogger(__name__)


class OAuthStrategy:
    """Authenticates a provider user already obtained by the OAuth SDK.

    The token exchange happened upstream; this strategy only links the
    provider identity to a local user (creating it on first login) and
    carries the provider tokens back for the session.
    """

    def __init__(self, *, users: IUserDirectory) -> None:
        self.users = users

    def supports(self, credentials: Mapping[str, Any]) -> bool:
        return has_keys(credentials, PROVIDER_USER, PROVIDER)

    async def authenticate(self, credentials: Mapping[str, Any]) -> AuthenticationResult:
        """Link the provider user to a local user.

        Raises:
            OAuthAuthenticationError: Missing input, missing email, or the
                user directory failed.
        """
        if not has_keys(credentials, PROVIDER_USER, PROVIDER):
            raise OAuthAuthenticationError.missing_credentials()

        provider_user = credentials[PROVIDER_USER]
        provider = str(credentials[PROVIDER])

        if not isinstance(provider_user, OAuthUser):
            raise OAuthAuthenticationError.missing_credentials()

        if not provider_user.email:
            raise OAuthAuthenticationError.missing_email(provider)

        try:
            user = await self.users.upsert_oauth_user(provider_user, provider)
        except AuthError:
            raise
        except Exception as e:
            logger.error(
                "OAuth authentication failed for provider %s (%s): %s",
                provider,
                provider_user.email,
                e,
            )
            raise OAuthAuthenticationError.provider_error(provider) from e

        return AuthenticationResult(
            user=user,
            auth_method=provider,
            oauth=OAuthMetadata(
                provider=provider,
                provider_id=provider_user.id,
                access_token=provider_user.token,
                refresh_token=provider_user.refresh_token,
            ),
        )


__all__: list[str] = ["OAuthStrategy"]
