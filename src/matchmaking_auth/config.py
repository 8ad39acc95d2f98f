"""Immutable authentication settings shared by the orchestrator and OTP engine."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

# Flat configuration keys accepted by AuthConfig.from_mapping()
_MAPPING_KEYS: dict[str, str] = {
    "auth.otp.code_length": "code_length",
    "auth.otp.expiration_minutes": "expiration_minutes",
    "auth.otp.max_requests_per_hour": "max_requests_per_hour",
    "auth.otp.max_attempts": "max_attempts",
    "auth.otp.cooldown_seconds": "cooldown_seconds",
    "auth.credentials.max_attempts": "credential_max_attempts",
    "auth.credentials.decay_seconds": "credential_decay_seconds",
}


@dataclass(frozen=True)
class AuthConfig:
    """Authentication configuration.

    Attributes:
        code_length: Number of digits in an OTP code.
        expiration_minutes: OTP lifetime in minutes.
        max_requests_per_hour: OTP sends allowed per address per hour.
        max_attempts: Verification attempts allowed per issued OTP.
        cooldown_seconds: Minimum spacing between two sends to one address.
        credential_max_attempts: Failed password logins allowed per email/IP
            before the throttle locks.
        credential_decay_seconds: Length of the credential lockout window.
    """

    code_length: int = 5
    expiration_minutes: int = 10
    max_requests_per_hour: int = 5
    max_attempts: int = 5
    cooldown_seconds: int = 60  # 1 minute between sends
    credential_max_attempts: int = 5
    credential_decay_seconds: int = 60

    def __post_init__(self) -> None:
        """Validate settings."""
        if not 1 <= self.code_length <= 12:
            raise ValueError("code_length must be between 1 and 12")
        if self.expiration_minutes <= 0:
            raise ValueError("expiration_minutes must be positive")
        if self.max_requests_per_hour <= 0:
            raise ValueError("max_requests_per_hour must be positive")
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if self.cooldown_seconds < 0:
            raise ValueError("cooldown_seconds cannot be negative")
        if self.credential_max_attempts <= 0:
            raise ValueError("credential_max_attempts must be positive")
        if self.credential_decay_seconds <= 0:
            raise ValueError("credential_decay_seconds must be positive")

    @property
    def otp_ttl_seconds(self) -> int:
        """OTP record lifetime in seconds."""
        return self.expiration_minutes * 60

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> AuthConfig:
        """Build settings from a flat mapping.

        Accepts both dotted keys (``auth.otp.code_length``) and plain field
        names (``code_length``). Unknown keys are ignored; missing keys keep
        their defaults.

        Args:
            values: Configuration values, e.g. loaded from a settings file.

        Returns:
            AuthConfig instance.

        Raises:
            ValueError: If a value is not an integer or fails validation.
        """
        field_names = {f.name for f in fields(cls)}
        kwargs: dict[str, int] = {}
        for key, raw in values.items():
            name = _MAPPING_KEYS.get(key, key)
            if name not in field_names:
                continue
            try:
                kwargs[name] = int(raw)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from e
        return cls(**kwargs)


__all__: list[str] = ["AuthConfig"]
