"""Audit log that writes JSON entries to the ``matchmaking_auth.audit`` logger."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from ..ports import IAuditLog
from .events import AuditOutcome

if TYPE_CHECKING:
    from .events import AuditEntry

_log = logging.getLogger("matchmaking_auth.audit")


class LoggingAuditLog(IAuditLog):
    """Emits one JSON log line per audit entry.

    Failures are logged at WARNING, everything else at INFO. Route the
    ``matchmaking_auth.audit`` logger to a dedicated handler to keep a
    separate auth channel.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or _log

    async def record(self, entry: AuditEntry) -> None:
        level = (
            logging.WARNING if entry.outcome is AuditOutcome.FAILURE else logging.INFO
        )
        self._log.log(level, json.dumps(entry.to_dict(), default=str))


__all__: list[str] = ["LoggingAuditLog"]
