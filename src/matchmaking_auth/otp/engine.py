"""Email OTP engine: issuance, rate limiting and bounded verification.

Lifecycle per hashed email::

    NoRecord ──send──▶ Issued ──verify ok──▶ Verified  (record deleted)
                         │ ├──attempts spent──▶ Exhausted (record deleted)
                         │ └──TTL elapsed────▶ Expired   (record gone)
                         └──send again──▶ Issued (record overwritten)

Delivery is delegated to an INotifier queue; the engine never waits on mail.
"""

from __future__ import annotations

import json
import logging
import re
import secrets
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from ..config import AuthConfig
from ..exceptions import (
    KeyValueStoreError,
    OtpInvalidCodeError,
    OtpMaxAttemptsExceededError,
    OtpNotFoundError,
    OtpRateLimitedError,
)
from ..identifiers import hash_email, normalize_email
from .records import OtpRecord, OtpResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..ports import IKeyValueStore, INotifier, IUserDirectory, User

logger = logging.getLogger("matchmaking_auth.otp")

CACHE_PREFIX = "otp:"
REQUEST_LIMIT_PREFIX = "otp:request_limit:"
COOLDOWN_PREFIX = "otp:cooldown:"

HOURLY_WINDOW_SECONDS = 3600
OTP_EMAIL_TEMPLATE = "auth.otp"

# Optimistic-update retries before giving up under contention
_MAX_CAS_RETRIES = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OtpEngine:
    """Generates, stores, rate-limits and verifies email OTP codes.

    Keys (all derived from sha256 of the normalized email):
        - ``otp:<hash>``: the OtpRecord, TTL = expiration_minutes.
        - ``otp:request_limit:<hash>``: accepted sends this hour.
        - ``otp:cooldown:<hash>``: present while a resend is not allowed.

    Example:
        ```python
        engine = OtpEngine(
            store=RedisKeyValueStore(redis),
            users=user_directory,
            notifier=QueuedNotifier(sender=mail_sender),
            config=AuthConfig(),
        )

        response = await engine.send_otp("jane@example.com", ip_address="10.0.0.1")
        user = await engine.verify_otp("jane@example.com", "48213")
        ```
    """

    def __init__(
        self,
        *,
        store: IKeyValueStore,
        users: IUserDirectory,
        notifier: INotifier,
        config: AuthConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the OTP engine.

        Args:
            store: TTL cache holding records, counters and cooldown flags.
            users: User directory used to resolve the email.
            notifier: Queue for the OTP email.
            config: Authentication settings.
            clock: Returns the current UTC time (default datetime.now(UTC)).
        """
        self.store = store
        self.users = users
        self.notifier = notifier
        self.config = config or AuthConfig()
        self._clock = clock or _utcnow
        self._code_pattern = re.compile(rf"[0-9]{{{self.config.code_length}}}")

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    async def send_otp(self, email: str, ip_address: str | None = None) -> OtpResponse:
        """Generate an OTP and queue it to the user's email.

        Unknown addresses get the same response as a successful send and
        leave no trace in the store. Blocked accounts are told so.

        Args:
            email: Email as typed by the user.
            ip_address: Client IP, recorded on the OTP and in logs.

        Returns:
            OtpResponse describing the outcome.
        """
        normalized = normalize_email(email)
        hashed = hash_email(normalized)

        try:
            await self._check_send_gates(hashed)
        except OtpRateLimitedError as e:
            self._log_action(hashed, "rate_limited", ip_address, retry_after=e.retry_after)
            return OtpResponse.rate_limited(e.retry_after)

        user = await self.users.find_by_email(normalized)

        if user is None:
            self._log_action(hashed, "user_not_found", ip_address)
            return OtpResponse.sent()

        if user.is_blocked():
            self._log_action(hashed, "user_blocked", ip_address)
            return OtpResponse.blocked()

        try:
            await self._reserve_send_slot(hashed)
        except OtpRateLimitedError as e:
            self._log_action(hashed, "rate_limited", ip_address, retry_after=e.retry_after)
            return OtpResponse.rate_limited(e.retry_after)

        code = self._generate_code()
        record = OtpRecord(
            code=code,
            attempts=0,
            created_at=self._clock(),
            request_ip=ip_address,
        )
        await self.store.put(
            self._record_key(hashed),
            record.to_cache(),
            ttl=self.config.otp_ttl_seconds,
        )

        self._send_otp_email(user, code)
        self._log_action(hashed, "requested", ip_address)

        return OtpResponse.sent()

    async def resend_otp(self, email: str, ip_address: str | None = None) -> OtpResponse:
        """Resend an OTP. Subject to exactly the same gates as send_otp()."""
        return await self.send_otp(email, ip_address)

    async def verify_otp(
        self, email: str, code: str, ip_address: str | None = None
    ) -> User:
        """Verify an OTP code and return the user it belongs to.

        Every wrong (or malformed) code consumes one attempt of the live
        OTP. A successful verification deletes the OTP and resets the send
        rate limits for the address.

        Args:
            email: Email the OTP was sent to.
            code: Code typed by the user.
            ip_address: Client IP for logging.

        Returns:
            The verified user.

        Raises:
            OtpInvalidCodeError: Wrong or malformed code; attempts remain.
            OtpMaxAttemptsExceededError: Attempt budget spent.
            OtpNotFoundError: No live OTP, or the user no longer exists.
        """
        normalized = normalize_email(email)
        hashed = hash_email(normalized)

        if not self._is_valid_code_format(code):
            remaining = await self._record_failed_attempt(hashed)
            self._log_action(
                hashed, "invalid_format", ip_address, remaining_attempts=remaining
            )
            if remaining is None:
                raise OtpInvalidCodeError(0)
            if remaining <= 0:
                await self._invalidate(hashed)
                raise OtpMaxAttemptsExceededError()
            raise OtpInvalidCodeError(remaining)

        key = self._record_key(hashed)
        for _ in range(_MAX_CAS_RETRIES):
            raw = await self.store.get(key)
            if raw is None:
                self._log_action(hashed, "not_found", ip_address)
                raise OtpNotFoundError()

            record = OtpRecord.from_cache(raw)

            if record.attempts >= self.config.max_attempts:
                await self._invalidate(hashed)
                self._log_action(hashed, "max_attempts", ip_address)
                raise OtpMaxAttemptsExceededError()

            if not secrets.compare_digest(record.code.encode(), code.encode()):
                remaining = await self._record_failed_attempt(hashed)
                if remaining is None:
                    # Consumed or expired by a concurrent request
                    self._log_action(hashed, "not_found", ip_address)
                    raise OtpNotFoundError()
                self._log_action(
                    hashed, "invalid_code", ip_address, remaining_attempts=remaining
                )
                if remaining <= 0:
                    await self._invalidate(hashed)
                    raise OtpMaxAttemptsExceededError()
                raise OtpInvalidCodeError(remaining)

            user = await self.users.find_by_email(normalized)
            if user is None:
                self._log_action(hashed, "user_not_found_on_verify", ip_address)
                raise OtpNotFoundError()

            # Single use: delete only if nobody touched the record meanwhile
            if not await self.store.compare_and_swap(key, raw, None, 0):
                continue

            await self._clear_rate_limits(hashed)
            self._log_action(hashed, "verified", ip_address)
            return user

        raise KeyValueStoreError("OTP record is under heavy contention")

    # ─────────────────────────────────────────────────────────────
    # Rate limiting
    # ─────────────────────────────────────────────────────────────

    async def _check_send_gates(self, hashed: str) -> None:
        """Read-only gate checks; raise OtpRateLimitedError when closed."""
        if await self.store.has(self._cooldown_key(hashed)):
            raise OtpRateLimitedError(self.config.cooldown_seconds)

        count = await self.store.get(self._request_limit_key(hashed))
        if int(count or 0) >= self.config.max_requests_per_hour:
            raise OtpRateLimitedError(HOURLY_WINDOW_SECONDS)

    async def _reserve_send_slot(self, hashed: str) -> None:
        """Atomically claim the cooldown flag and one hourly slot.

        Two concurrent sends that both passed the read-only gates cannot
        both get here: only one SET NX on the cooldown key succeeds, and the
        counter is bumped with an atomic increment and rolled back when the
        hourly limit would be exceeded.
        """
        cooldown_key = self._cooldown_key(hashed)
        limit_key = self._request_limit_key(hashed)

        holds_cooldown = False
        if self.config.cooldown_seconds > 0:
            if not await self.store.add(cooldown_key, True, self.config.cooldown_seconds):
                raise OtpRateLimitedError(self.config.cooldown_seconds)
            holds_cooldown = True

        count = await self.store.increment(limit_key, 1, ttl=HOURLY_WINDOW_SECONDS)
        if count > self.config.max_requests_per_hour:
            await self.store.increment(limit_key, -1)
            if holds_cooldown:
                await self.store.forget(cooldown_key)
            raise OtpRateLimitedError(HOURLY_WINDOW_SECONDS)

    async def _clear_rate_limits(self, hashed: str) -> None:
        await self.store.forget(
            self._request_limit_key(hashed),
            self._cooldown_key(hashed),
        )

    # ─────────────────────────────────────────────────────────────
    # Records
    # ─────────────────────────────────────────────────────────────

    async def _record_failed_attempt(self, hashed: str) -> int | None:
        """Count one failed attempt against the live OTP.

        The record is rewritten with its *remaining* lifetime so the
        absolute expiry never moves. A record that is already past its
        lifetime is left alone.

        Returns:
            Attempts remaining after this one, or None if no OTP exists.
        """
        key = self._record_key(hashed)
        for _ in range(_MAX_CAS_RETRIES):
            raw = await self.store.get(key)
            if raw is None:
                return None

            record = OtpRecord.from_cache(raw)
            if record.attempts >= self.config.max_attempts:
                return 0

            updated = record.with_attempt()
            remaining = self.config.max_attempts - updated.attempts

            remaining_ttl = self._remaining_ttl(record)
            if remaining_ttl <= 0:
                return remaining

            if await self.store.compare_and_swap(
                key, raw, updated.to_cache(), remaining_ttl
            ):
                return remaining

        raise KeyValueStoreError("OTP attempt counter is under heavy contention")

    def _remaining_ttl(self, record: OtpRecord) -> int:
        created_at = record.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        elapsed = (self._clock() - created_at).total_seconds()
        return int(self.config.otp_ttl_seconds - elapsed)

    async def _invalidate(self, hashed: str) -> None:
        await self.store.forget(self._record_key(hashed))

    def _generate_code(self) -> str:
        """Generate a code of exactly code_length digits (no leading zero)."""
        low = 10 ** (self.config.code_length - 1)
        high = 10**self.config.code_length - 1
        return str(low + secrets.randbelow(high - low + 1))

    def _is_valid_code_format(self, code: str) -> bool:
        return self._code_pattern.fullmatch(code) is not None

    # ─────────────────────────────────────────────────────────────
    # Delivery / logging
    # ─────────────────────────────────────────────────────────────

    def _send_otp_email(self, user: User, code: str) -> None:
        self.notifier.enqueue(
            OTP_EMAIL_TEMPLATE,
            user,
            {
                "user_name": user.name or "User",
                "otp_code": code,
                "expires_in_minutes": self.config.expiration_minutes,
            },
        )

    def _log_action(
        self,
        hashed: str,
        action: str,
        ip_address: str | None,
        **metadata: Any,
    ) -> None:
        entry: dict[str, Any] = {
            "event": "otp_action",
            "email_hash": hashed,
            "action": action,
            "ip_address": ip_address,
        }
        entry.update({k: v for k, v in metadata.items() if v is not None})
        logger.info(json.dumps(entry))

    @staticmethod
    def _record_key(hashed: str) -> str:
        return f"{CACHE_PREFIX}{hashed}"

    @staticmethod
    def _request_limit_key(hashed: str) -> str:
        return f"{REQUEST_LIMIT_PREFIX}{hashed}"

    @staticmethod
    def _cooldown_key(hashed: str) -> str:
        return f"{COOLDOWN_PREFIX}{hashed}"


__all__: list[str] = [
    "OtpEngine",
    "CACHE_PREFIX",
    "REQUEST_LIMIT_PREFIX",
    "COOLDOWN_PREFIX",
    "HOURLY_WINDOW_SECONDS",
    "OTP_EMAIL_TEMPLATE",
]
