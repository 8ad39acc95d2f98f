"""FastAPI request-context middleware.

Populates the request context the audit trail reads (client IP, user
agent, correlation id) and always resets it after the request.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any, cast

from starlette.middleware.base import BaseHTTPMiddleware

from ...request_context import (
    RequestContext,
    reset_request_context,
    set_request_context,
)

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

REQUEST_ID_HEADER = "x-request-id"
FORWARDED_FOR_HEADER = "x-forwarded-for"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that sets RequestContext for each request.

    Order of Operations:
    1. Resolve the client IP (first X-Forwarded-For hop when trusted,
       else the socket peer).
    2. Reuse X-Request-ID or generate one.
    3. set_request_context() for downstream use.
    4. Cleanup in a ``finally`` block to prevent leakage between requests.

    Example:
        ```python
        app = FastAPI()
        app.add_middleware(RequestContextMiddleware, trust_forwarded_for=True)
        ```
    """

    def __init__(self, app: Any, *, trust_forwarded_for: bool = False) -> None:
        super().__init__(app)
        self.trust_forwarded_for = trust_forwarded_for

    def _client_ip(self, request: Request) -> str | None:
        if self.trust_forwarded_for:
            forwarded = request.headers.get(FORWARDED_FOR_HEADER)
            if forwarded:
                return forwarded.split(",")[0].strip() or None
        return request.client.host if request.client else None

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        context = RequestContext(
            request_id=request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4()),
            ip_address=self._client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        token = set_request_context(context)
        try:
            return cast("Response", await call_next(request))
        finally:
            reset_request_context(token)


__all__: list[str] = ["RequestContextMiddleware"]
