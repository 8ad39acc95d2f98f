"""Authentication strategies, tried in a fixed order by the orchestrator."""

from __future__ import annotations

from .base import AuthenticationResult, IAuthStrategy, OAuthMetadata
from .oauth import OAuthStrategy
from .otp import OtpStrategy
from .primary import PrimaryCredentialStrategy

__all__: list[str] = [
    "AuthenticationResult",
    "OAuthMetadata",
    "IAuthStrategy",
    "PrimaryCredentialStrategy",
    "OAuthStrategy",
    "OtpStrategy",
]
