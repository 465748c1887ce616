"""
Domain error taxonomy and its mapping onto HTTP responses.

Every failure is surfaced once; nothing here retries.
"""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger


class ShopError(Exception):
    """Base class for errors shown to the operator."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ShopError):
    """Missing or invalid required field; raised before any persistence call."""

    status_code = 422


class NotFoundError(ShopError):
    status_code = 404


class PersistenceError(ShopError):
    """The record store failed or returned an error payload."""

    status_code = 502


class LockError(ShopError):
    """Rate update attempted while the rate is locked."""

    status_code = 423


class StateError(ShopError):
    """Operation not allowed in the current lifecycle state."""

    status_code = 409


async def _shop_error_handler(request: Request, exc: ShopError) -> JSONResponse:
    if isinstance(exc, PersistenceError):
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path}: {type(exc).__name__}: {exc.message}")
    body = {"detail": exc.message, "error": type(exc).__name__}
    return JSONResponse(status_code=exc.status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShopError, _shop_error_handler)
