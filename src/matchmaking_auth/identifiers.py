"""Email normalization, hashing and throttle-key helpers."""

from __future__ import annotations

import hashlib
import unicodedata


def normalize_email(email: str) -> str:
    """Trim and lowercase an email address.

    Args:
        email: Raw email as typed by the user.

    Returns:
        Normalized email used for lookups and cache keys.
    """
    return email.strip().lower()


def hash_email(normalized_email: str) -> str:
    """Hash a normalized email for use in cache keys and OTP logs.

    Uses SHA-256 (hex). The raw address never appears in an OTP key.

    Args:
        normalized_email: Output of normalize_email().

    Returns:
        Hex-encoded SHA-256 digest.
    """
    return hashlib.sha256(normalized_email.encode("utf-8")).hexdigest()


def throttle_key(email: str, client_ip: str | None) -> str:
    """Build the credential throttle key ``<email>|<ip>``.

    The email is normalized and transliterated to ASCII so visually
    equivalent addresses share one throttle bucket.
    """
    normalized = unicodedata.normalize("NFKD", normalize_email(email))
    ascii_email = normalized.encode("ascii", "ignore").decode("ascii")
    return f"{ascii_email}|{client_ip or 'unknown'}"


def mask_email(email: str) -> str:
    """Mask the local part of an email for display, keeping up to three
    leading characters.

    Example:
        ``mask_email("jane.doe@example.com") == "jan*****@example.com"``
    """
    local, sep, domain = email.partition("@")
    if not sep:
        return email
    visible = local[:3]
    return f"{visible}{'*' * (len(local) - len(visible))}@{domain}"


__all__: list[str] = [
    "normalize_email",
    "hash_email",
    "throttle_key",
    "mask_email",
]
