"""Exception handlers rendering AuthError as JSON responses."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from ...exceptions import AuthError

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request


def auth_error_response(exc: AuthError) -> JSONResponse:
    """Render an AuthError with its status code.

    Rate-limit errors carry a ``Retry-After`` header.
    """
    headers: dict[str, str] = {}
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None:
        headers["Retry-After"] = str(retry_after)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response(),
        headers=headers or None,
    )


async def auth_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, AuthError):
        raise exc
    return auth_error_response(exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the AuthError handler on a FastAPI application."""
    app.add_exception_handler(AuthError, auth_error_handler)


__all__: list[str] = [
    "auth_error_response",
    "auth_error_handler",
    "register_exception_handlers",
]
