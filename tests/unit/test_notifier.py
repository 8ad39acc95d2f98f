"""Tests for the queued and in-memory notifiers."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from matchmaking_auth import INotifier, InMemoryNotifier, PortalUser, QueuedNotifier


@pytest.fixture
def sender() -> MagicMock:
    s = MagicMock()
    s.send = AsyncMock()
    return s


class TestQueuedNotifier:
    def test_implements_port(self, sender: MagicMock) -> None:
        assert isinstance(QueuedNotifier(sender), INotifier)

    @pytest.mark.asyncio
    async def test_enqueue_does_not_send_inline(
        self, sender: MagicMock, jane: PortalUser
    ) -> None:
        notifier = QueuedNotifier(sender)

        notifier.enqueue("auth.otp", jane, {"otp_code": "12345"})

        assert notifier.pending == 1
        sender.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_worker_delivers(self, sender: MagicMock, jane: PortalUser) -> None:
        notifier = QueuedNotifier(sender)
        await notifier.start()
        try:
            notifier.enqueue("auth.otp", jane, {"otp_code": "12345"})
            await notifier.drain()
        finally:
            await notifier.stop()

        sender.send.assert_awaited_once_with("auth.otp", jane, {"otp_code": "12345"})
        assert notifier.running is False

    @pytest.mark.asyncio
    async def test_delivery_failure_is_logged_and_worker_continues(
        self,
        sender: MagicMock,
        jane: PortalUser,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        sender.send.side_effect = [RuntimeError("smtp down"), None]
        notifier = QueuedNotifier(sender)
        await notifier.start()
        try:
            with caplog.at_level(logging.ERROR, logger="matchmaking_auth.notifier"):
                notifier.enqueue("auth.otp", jane, {"otp_code": "1"})
                notifier.enqueue("auth.otp", jane, {"otp_code": "2"})
                await notifier.drain()
        finally:
            await notifier.stop()

        assert sender.send.await_count == 2
        assert "Email delivery failed" in caplog.text

    @pytest.mark.asyncio
    async def test_full_queue_drops_message(
        self,
        sender: MagicMock,
        jane: PortalUser,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        notifier = QueuedNotifier(sender, max_size=1)

        with caplog.at_level(logging.ERROR, logger="matchmaking_auth.notifier"):
            notifier.enqueue("auth.otp", jane, {})
            notifier.enqueue("auth.otp", jane, {})

        assert notifier.pending == 1
        assert "Email queue full" in caplog.text

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, sender: MagicMock) -> None:
        notifier = QueuedNotifier(sender)
        await notifier.start()
        task = notifier._task
        await notifier.start()

        assert notifier._task is task
        await notifier.stop()


class TestInMemoryNotifier:
    def test_records_messages(self, jane: PortalUser) -> None:
        notifier = InMemoryNotifier()
        assert notifier.last() is None

        notifier.enqueue("auth.otp", jane, {"otp_code": "12345"})

        message = notifier.last()
        assert message is not None
        assert message.recipient is jane
        assert message.variables == {"otp_code": "12345"}

        notifier.clear()
        assert notifier.messages == []
