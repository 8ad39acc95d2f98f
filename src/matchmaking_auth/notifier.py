"""Transactional email notifiers.

``QueuedNotifier`` is the production INotifier: ``enqueue`` drops the
message on an asyncio queue and returns at once; a background worker
drains the queue through an IEmailSender.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .ports import INotifier

if TYPE_CHECKING:
    from .ports import IEmailSender, User

logger = logging.getLogger("matchmaking_auth.notifier")


@dataclass(frozen=True)
class EmailMessage:
    """A queued templated email."""

    template_key: str
    recipient: User
    variables: dict[str, Any] = field(default_factory=dict)


class QueuedNotifier(INotifier):
    """Fire-and-forget notifier backed by an asyncio queue.

    Delivery failures are logged and dropped; they never reach the caller
    that enqueued the message.

    Usage::

        notifier = QueuedNotifier(sender=smtp_sender)
        await notifier.start()

        notifier.enqueue("auth.otp", user, {"otp_code": "48213"})

        await notifier.stop()
    """

    def __init__(self, sender: IEmailSender, *, max_size: int = 0) -> None:
        self._sender = sender
        self._queue: asyncio.Queue[EmailMessage] = asyncio.Queue(maxsize=max_size)
        self._task: asyncio.Task[None] | None = None

    # ── Notifier API ─────────────────────────────────────────────────

    def enqueue(
        self, template_key: str, recipient: User, variables: dict[str, Any]
    ) -> None:
        message = EmailMessage(template_key, recipient, dict(variables))
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.error(
                "Email queue full, dropping %s for user %s",
                template_key,
                getattr(recipient, "id", None),
            )

    @property
    def pending(self) -> int:
        """Number of messages waiting for delivery."""
        return self._queue.qsize()

    # ── Worker Lifecycle ─────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background delivery loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run_loop())
        logger.info("QueuedNotifier started")

    async def drain(self) -> None:
        """Wait until every queued message has been handled."""
        await self._queue.join()

    async def stop(self) -> None:
        """Stop the background loop; undelivered messages stay queued."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("QueuedNotifier stopped")

    # ── Internal loop ────────────────────────────────────────────────

    async def _run_loop(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                await self._sender.send(
                    message.template_key, message.recipient, message.variables
                )
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Email delivery failed for %s: %s",
                    message.template_key,
                    exc,
                    exc_info=True,
                )
            finally:
                self._queue.task_done()


class InMemoryNotifier(INotifier):
    """Notifier that records messages instead of sending them.

    ⚠️ WARNING: For testing only.
    """

    def __init__(self) -> None:
        self.messages: list[EmailMessage] = []

    def enqueue(
        self, template_key: str, recipient: User, variables: dict[str, Any]
    ) -> None:
        self.messages.append(EmailMessage(template_key, recipient, dict(variables)))

    def last(self) -> EmailMessage | None:
        return self.messages[-1] if self.messages else None

    def clear(self) -> None:
        self.messages.clear()


__all__: list[str] = ["EmailMessage", "QueuedNotifier", "InMemoryNotifier"]
