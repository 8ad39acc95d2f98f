"""Authentication and OTP exceptions.

All caller-facing errors inherit from AuthError, which carries a short,
non-leaking message, a machine-readable ``error_code`` and the HTTP status
the error maps to. Infrastructure failures use KeyValueStoreError instead.
"""

from __future__ import annotations

from typing import Any

# ═══════════════════════════════════════════════════════════════
# BASE ERRORS
# ═══════════════════════════════════════════════════════════════


class MatchmakingAuthError(Exception):
    """Root exception for the matchmaking-auth package."""


class AuthError(MatchmakingAuthError):
    """Base class for all caller-facing authentication errors.

    Attributes:
        message: Human-readable message safe to return to the caller.
        error_code: Stable machine-readable code.
        status_code: HTTP status the error renders with.
    """

    default_message = "Authentication failed."
    default_error_code = "authentication_failed"
    default_status_code = 401

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.error_code = error_code or self.default_error_code
        self.status_code = status_code or self.default_status_code
        super().__init__(self.message)

    def to_response(self) -> dict[str, Any]:
        """Render the error as a caller-facing payload."""
        return {
            "success": False,
            "message": self.message,
            "error_code": self.error_code,
        }


# ═══════════════════════════════════════════════════════════════
# STRATEGY SELECTION / ACCOUNT STATE
# ═══════════════════════════════════════════════════════════════


class UnsupportedAuthenticationMethodError(AuthError):
    """Raised when no strategy claims the supplied credentials."""

    default_message = "No authentication method available for the provided credentials."
    default_error_code = "unsupported_method"
    default_status_code = 400


class AccountBlockedError(AuthError):
    """Raised when a blocked account tries to establish a session."""

    default_message = "Your account has been blocked. Please contact support."
    default_error_code = "user_blocked"
    default_status_code = 403


class RateLimitedError(AuthError):
    """Raised when too many credential attempts were made for an email/IP pair.

    Attributes:
        retry_after: Seconds until another attempt is accepted.
    """

    default_message = "Too many login attempts. Please try again later."
    default_error_code = "rate_limited"
    default_status_code = 429

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        self.retry_after = retry_after
        if message is None:
            minutes = -(-retry_after // 60)
            message = (
                f"Too many login attempts. Please try again in {retry_after} "
                f"seconds ({minutes} minute{'s' if minutes != 1 else ''})."
            )
        super().__init__(message)

    def to_response(self) -> dict[str, Any]:
        data = super().to_response()
        data["retry_after"] = self.retry_after
        return data


# ═══════════════════════════════════════════════════════════════
# STRATEGY ERRORS
# ═══════════════════════════════════════════════════════════════


class PrimaryCredentialRejectedError(AuthError):
    """Raised by the primary credential strategy.

    Every failure of the external identity provider surfaces as this type;
    the ``error_code`` tells the reasons apart. Only this error counts
    toward the credential lockout.
    """

    default_message = "Invalid email or password."
    default_error_code = "invalid_credentials"
    default_status_code = 401

    # Provider-side detail for logs only, never rendered
    detail: str | None = None

    @classmethod
    def invalid_credentials(cls) -> PrimaryCredentialRejectedError:
        return cls()

    @classmethod
    def service_unavailable(cls) -> PrimaryCredentialRejectedError:
        return cls(
            "The authentication service is temporarily unavailable.",
            error_code="service_unavailable",
            status_code=503,
        )

    @classmethod
    def api_error(cls, detail: str | None = None) -> PrimaryCredentialRejectedError:
        error = cls(
            "Authentication could not be completed. Please try again.",
            error_code="api_error",
            status_code=502,
        )
        error.detail = detail
        return error


class OAuthAuthenticationError(AuthError):
    """Raised by the OAuth strategy."""

    default_message = "Social login failed."
    default_error_code = "oauth_failed"
    default_status_code = 400

    @classmethod
    def missing_credentials(cls) -> OAuthAuthenticationError:
        return cls(
            "Social login data is incomplete.",
            error_code="missing_credentials",
        )

    @classmethod
    def missing_email(cls, provider: str) -> OAuthAuthenticationError:
        return cls(
            f"Your {provider} account did not share an email address.",
            error_code="missing_email",
            status_code=422,
        )

    @classmethod
    def provider_error(cls, provider: str) -> OAuthAuthenticationError:
        return cls(
            f"Login with {provider} failed. Please try again.",
            error_code="provider_error",
            status_code=502,
        )


# ═══════════════════════════════════════════════════════════════
# OTP ERRORS
# ═══════════════════════════════════════════════════════════════


class OtpError(AuthError):
    """Base class for OTP verification errors."""

    default_message = "Authentication failed."
    default_error_code = "otp_error"
    default_status_code = 422


class OtpNotFoundError(OtpError):
    """No live OTP for the address (never sent, expired or consumed)."""

    default_message = "No OTP request found. Please request a new code."
    default_error_code = "not_found"
    default_status_code = 404


class OtpInvalidCodeError(OtpError):
    """The supplied code is malformed or wrong.

    Attributes:
        remaining_attempts: Verification attempts left for the live OTP.
    """

    default_message = "Invalid OTP code."
    default_error_code = "invalid_code"
    default_status_code = 422

    def __init__(self, remaining_attempts: int) -> None:
        self.remaining_attempts = remaining_attempts
        super().__init__()

    def to_response(self) -> dict[str, Any]:
        data = super().to_response()
        data["remaining_attempts"] = self.remaining_attempts
        return data


class OtpMaxAttemptsExceededError(OtpError):
    """The attempt budget is spent; a new OTP must be requested."""

    default_message = "Maximum verification attempts exceeded. Please request a new code."
    default_error_code = "max_attempts"
    default_status_code = 400

    remaining_attempts = 0

    def to_response(self) -> dict[str, Any]:
        data = super().to_response()
        data["remaining_attempts"] = 0
        return data


class OtpRateLimitedError(OtpError):
    """Too many OTP requests for an address.

    Attributes:
        retry_after: Seconds until another request is accepted.
    """

    default_message = "Too many OTP requests. Please try again later."
    default_error_code = "rate_limited"
    default_status_code = 429

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__()

    def to_response(self) -> dict[str, Any]:
        data = super().to_response()
        data["retry_after"] = self.retry_after
        return data


# ═══════════════════════════════════════════════════════════════
# INFRASTRUCTURE ERRORS
# ═══════════════════════════════════════════════════════════════


class KeyValueStoreError(MatchmakingAuthError):
    """Raised when an atomic key-value operation cannot be completed."""


__all__: list[str] = [
    "MatchmakingAuthError",
    "AuthError",
    "UnsupportedAuthenticationMethodError",
    "AccountBlockedError",
    "RateLimitedError",
    "PrimaryCredentialRejectedError",
    "OAuthAuthenticationError",
    "OtpError",
    "OtpNotFoundError",
    "OtpInvalidCodeError",
    "OtpMaxAttemptsExceededError",
    "OtpRateLimitedError",
    "KeyValueStoreError",
]
