"""OTP cache record and caller-facing OTP response."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

GENERIC_SENT_MESSAGE = "If an account exists with this email, an OTP has been sent."


class OtpRecord(BaseModel):
    """A live one-time password, stored under ``otp:<sha256(email)>``.

    Immutable: attempt increments produce a new record via with_attempt().
    """

    model_config = ConfigDict(frozen=True)

    code: str
    attempts: int = Field(default=0, ge=0)
    created_at: datetime
    request_ip: str | None = None

    def with_attempt(self) -> OtpRecord:
        """Return a copy with one more failed attempt recorded."""
        return self.model_copy(update={"attempts": self.attempts + 1})

    def to_cache(self) -> dict[str, Any]:
        """Serialize for the key-value store."""
        return self.model_dump(mode="json")

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> OtpRecord:
        """Deserialize a value read from the key-value store."""
        return cls.model_validate(data)


@dataclass(frozen=True)
class OtpResponse:
    """Result of an OTP send/resend request.

    Attributes:
        success: Whether the request was accepted (or looks accepted).
        message: Caller-facing message.
        error: Machine-readable error code on rejection.
        retry_after: Seconds to wait before retrying, when rate limited.
    """

    success: bool
    message: str
    error: str | None = None
    retry_after: int | None = None

    @classmethod
    def sent(cls) -> OtpResponse:
        # Identical for known and unknown addresses
        return cls(success=True, message=GENERIC_SENT_MESSAGE)

    @classmethod
    def rate_limited(cls, retry_after: int) -> OtpResponse:
        return cls(
            success=False,
            message="Too many OTP requests. Please try again later.",
            error="rate_limited",
            retry_after=retry_after,
        )

    @classmethod
    def blocked(cls) -> OtpResponse:
        return cls(
            success=False,
            message="This account has been blocked. Please contact support.",
            error="user_blocked",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the caller-facing payload, omitting absent keys."""
        data: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.error is not None:
            data["error"] = self.error
        if self.retry_after is not None:
            data["retry_after"] = self.retry_after
        return data


__all__: list[str] = ["GENERIC_SENT_MESSAGE", "OtpRecord", "OtpResponse"]
