"""Error hierarchy and global exception handlers.

Every handler failure becomes ``{"message": ...}`` with a fixed, generic
message. Underlying store or library errors are logged, never returned.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base for errors that map onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_response(self) -> Response:
        return JSONResponse(
            status_code=self.status_code, content={"message": self.message}
        )


class ValidationError(ApiError):
    """Missing or malformed input. No store access has happened."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(ApiError):
    """Unknown user or credential mismatch."""

    status_code = status.HTTP_401_UNAUTHORIZED


class OperationError(ApiError):
    """Store, hashing or serialization failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ExportError(OperationError):
    """Spreadsheet export failure, reported as plain text."""

    def to_response(self) -> Response:
        return PlainTextResponse(self.message, status_code=self.status_code)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ):
        logger.warning("Invalid request body on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Invalid request body"},
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception on %s: %s", request.url.path, exc, exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error"},
        )
