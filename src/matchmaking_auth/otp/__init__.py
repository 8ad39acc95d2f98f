"""Email one-time-password issuance and verification."""

from __future__ import annotations

from .engine import OtpEngine
from .records import GENERIC_SENT_MESSAGE, OtpRecord, OtpResponse

__all__: list[str] = [
    "OtpEngine",
    "OtpRecord",
    "OtpResponse",
    "GENERIC_SENT_MESSAGE",
]
