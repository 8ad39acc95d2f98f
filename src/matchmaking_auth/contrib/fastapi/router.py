"""FastAPI routes for the email OTP flow.

Endpoints (relative to the router prefix, ``/otp`` by default):
    - ``POST /send``: issue a code.
    - ``POST /resend``: issue a new code (same gates as send).
    - ``POST /verify``: verify a code and log the user in.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field
from starlette.responses import JSONResponse

from ...identifiers import mask_email
from ...request_context import get_client_ip

if TYPE_CHECKING:
    from ...orchestrator import AuthenticationOrchestrator
    from ...otp.engine import OtpEngine
    from ...otp.records import OtpResponse

_SEND_STATUS: dict[str | None, int] = {
    None: 200,
    "rate_limited": 429,
    "user_blocked": 403,
}


class OtpSendRequest(BaseModel):
    """Body of the send/resend endpoints."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=3, max_length=254)


class OtpVerifyRequest(BaseModel):
    """Body of the verify endpoint."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=3, max_length=254)
    code: str = Field(min_length=1, max_length=16)


def _client_ip(request: Request) -> str | None:
    return get_client_ip() or (request.client.host if request.client else None)


def otp_send_response(response: OtpResponse) -> JSONResponse:
    """Render an OtpResponse with the status matching its error."""
    headers: dict[str, str] = {}
    if response.retry_after is not None:
        headers["Retry-After"] = str(response.retry_after)
    return JSONResponse(
        status_code=_SEND_STATUS.get(response.error, 400),
        content=response.to_dict(),
        headers=headers or None,
    )


def create_otp_router(
    engine: OtpEngine,
    orchestrator: AuthenticationOrchestrator,
    *,
    prefix: str = "/otp",
) -> APIRouter:
    """Create the OTP router.

    Verification errors are raised as AuthError subclasses; install
    ``register_exception_handlers`` on the app to render them.

    Example:
        ```python
        app = FastAPI()
        register_exception_handlers(app)
        app.add_middleware(RequestContextMiddleware)
        app.include_router(create_otp_router(engine, orchestrator))
        ```
    """
    router = APIRouter(prefix=prefix, tags=["otp"])

    @router.post("/send")
    async def send_otp(body: OtpSendRequest, request: Request) -> JSONResponse:
        response = await engine.send_otp(body.email, _client_ip(request))
        return otp_send_response(response)

    @router.post("/resend")
    async def resend_otp(body: OtpSendRequest, request: Request) -> JSONResponse:
        response = await engine.resend_otp(body.email, _client_ip(request))
        return otp_send_response(response)

    @router.post("/verify")
    async def verify_otp(body: OtpVerifyRequest, request: Request) -> dict[str, Any]:
        user = await orchestrator.authenticate_with_otp(
            body.email, body.code, _client_ip(request)
        )
        return {
            "success": True,
            "message": "Login successful.",
            "user_id": user.id,
            "email": mask_email(user.email),
        }

    return router


__all__: list[str] = [
    "OtpSendRequest",
    "OtpVerifyRequest",
    "otp_send_response",
    "create_otp_router",
]
