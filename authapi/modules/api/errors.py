"""
Exception handlers mapping domain errors onto HTTP responses.

All error bodies have the shape ``{"message": ...}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..auth.errors import (
    AuthInvalid,
    NotInitialized,
    SigningError,
    StorageError,
    UserExists,
    UserNotFound,
)

logger = logging.getLogger(__name__)


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain error handlers to ``app``."""

    @app.exception_handler(AuthInvalid)
    async def auth_invalid_handler(request: Request, exc: AuthInvalid):
        return _message(401, "auth invalid")

    @app.exception_handler(UserNotFound)
    async def user_not_found_handler(request: Request, exc: UserNotFound):
        return _message(404, "user not found")

    @app.exception_handler(UserExists)
    async def user_exists_handler(request: Request, exc: UserExists):
        return _message(409, "user already exists")

    @app.exception_handler(NotInitialized)
    @app.exception_handler(SigningError)
    @app.exception_handler(StorageError)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return _message(500, "internal server error")

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.debug(f"Rejected request body on {request.url.path}: {exc.errors()}")
        return _message(400, "invalid json request")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _message(404, "not found")
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )
