"""Error types shared by the task store, service, and HTTP layer."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal Server Error."


class TodoError(RuntimeError):
    """Base class for errors raised by the todo backend."""


class ValidationError(TodoError):
    """Raised when a request carries malformed or missing input."""


class NotFoundError(TodoError):
    """Raised when a referenced task does not exist."""


class StoreError(TodoError):
    """Raised when the underlying storage driver fails."""


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _handle_validation_error(request: Request, exc: Exception) -> JSONResponse:
    logger.debug("Validation failed on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))


async def _handle_request_validation_error(
    request: Request, exc: Exception
) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    logger.debug(
        "Request validation failed on %s %s", request.method, request.url.path
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation failed.",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def _handle_http_exception(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, StarletteHTTPException)
    logger.debug(
        "HTTP %s on %s %s: %s", exc.status_code, request.method, request.url.path, exc.detail
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


async def _handle_not_found(request: Request, exc: Exception) -> JSONResponse:
    logger.debug("Not found on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(status.HTTP_404_NOT_FOUND, str(exc))


async def _handle_internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s",
        request.method,
        request.url.path,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE
    )


def install_error_handlers(app: FastAPI) -> None:
    """Map typed errors to HTTP responses."""

    app.add_exception_handler(RequestValidationError, _handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(ValidationError, _handle_validation_error)
    app.add_exception_handler(NotFoundError, _handle_not_found)
    # StoreError and anything else unclassified share the generic 500 body
    app.add_exception_handler(TodoError, _handle_internal_error)
    app.add_exception_handler(Exception, _handle_internal_error)


__all__ = [
    "INTERNAL_ERROR_MESSAGE",
    "NotFoundError",
    "StoreError",
    "TodoError",
    "ValidationError",
    "install_error_handlers",
]
