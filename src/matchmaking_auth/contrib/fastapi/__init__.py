"""FastAPI integration for matchmaking-auth."""

from .handlers import (
    auth_error_handler,
    auth_error_response,
    register_exception_handlers,
)
from .middleware import RequestContextMiddleware
from .router import OtpSendRequest, OtpVerifyRequest, create_otp_router

__all__: list[str] = [
    # Middleware
    "RequestContextMiddleware",
    # Exception handlers
    "auth_error_handler",
    "auth_error_response",
    "register_exception_handlers",
    # Routes
    "create_otp_router",
    "OtpSendRequest",
    "OtpVerifyRequest",
]
