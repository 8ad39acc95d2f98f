"""Per-request client metadata for the login audit trail.

The HTTP layer stores a ``RequestContext`` in a context variable; the
orchestrator reads the client IP, user agent and correlation id from it
when the caller does not pass them explicitly.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Client metadata of the request being served.

    Attributes:
        request_id: Correlation id copied onto every audit entry.
        ip_address: Client IP used for the credential throttle key.
        user_agent: Client user agent string.
    """

    request_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


_current: ContextVar[RequestContext | None] = ContextVar(
    "matchmaking_auth_request", default=None
)


def get_request_context() -> RequestContext | None:
    return _current.get()


def set_request_context(context: RequestContext) -> Token[RequestContext | None]:
    """Install ``context`` for the running task.

    Always pair with :func:`reset_request_context` in a ``finally`` block:

        ```python
        token = set_request_context(RequestContext(ip_address="10.0.0.1"))
        try:
            await orchestrator.authenticate_with_otp(email, code)
        finally:
            reset_request_context(token)
        ```
    """
    return _current.set(context)


def reset_request_context(token: Token[RequestContext | None]) -> None:
    _current.reset(token)


def get_request_id() -> str | None:
    context = _current.get()
    return context.request_id if context else None


def get_client_ip() -> str | None:
    context = _current.get()
    return context.ip_address if context else None


def get_user_agent() -> str | None:
    context = _current.get()
    return context.user_agent if context else None


__all__: list[str] = [
    "RequestContext",
    "get_request_context",
    "set_request_context",
    "reset_request_context",
    "get_request_id",
    "get_client_ip",
    "get_user_agent",
]
