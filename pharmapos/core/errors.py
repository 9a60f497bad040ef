"""Domain errors raised by the services.

Each error knows the HTTP status and machine-readable code it is reported
with. The handlers in ``register_error_handlers`` turn them into
``{"error": ..., "code": ...}`` bodies; store failures and any other
unexpected exception are logged and reported with a generic message.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal error occurred."


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class InvalidInputError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_input"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class InsufficientStockError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "insufficient_stock"

    def __init__(self, drug_id: int, drug_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {drug_name}. Available: {available}, Requested: {requested}",
            details={
                "drugId": drug_id,
                "drugName": drug_name,
                "available": available,
                "requested": requested,
            },
        )
        self.drug_id = drug_id
        self.available = available
        self.requested = requested


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"


class InvalidCredentialsError(UnauthorizedError):
    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid email or password."):
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


def _app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if isinstance(exc, UnauthorizedError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


def _validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    message = "; ".join(problems) or "Invalid request."
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message, "code": InvalidInputError.code},
    )


def _internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Internal failure on %s %s: %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": INTERNAL_ERROR_MESSAGE, "code": AppError.code},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, _internal_error_handler)
    app.add_exception_handler(Exception, _internal_error_handler)


__all__ = [
    "AppError",
    "ConflictError",
    "ForbiddenError",
    "InsufficientStockError",
    "InvalidCredentialsError",
    "InvalidInputError",
    "NotFoundError",
    "UnauthorizedError",
    "register_error_handlers",
]
