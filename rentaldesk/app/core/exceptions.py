"""
Custom exceptions and error handlers for consistent error responses.

Every error leaving the API uses the same envelope:
``{"error_code": ..., "message": ..., "details": {...}}``.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Codes for errors raised as plain HTTPException (auth, guards, routing)
HTTP_ERROR_CODES = {
    400: "ERR_BAD_REQUEST",
    401: "ERR_UNAUTHORIZED",
    403: "ERR_FORBIDDEN",
    404: "ERR_NOT_FOUND",
    405: "ERR_METHOD_NOT_ALLOWED",
    409: "ERR_CONFLICT",
    500: "ERR_INTERNAL_SERVER",
}


class AppException(Exception):
    """
    Base application exception.

    Subclasses set ``error_code`` and ``status_code``; services raise them and
    the global handler renders the envelope.
    """
    error_code = "ERR_APP_001"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class BadRequestError(AppException):
    """Request is well-formed but cannot be honoured (bad ids, bad ranges, bad state)."""
    error_code = "ERR_BAD_REQUEST_001"
    status_code = status.HTTP_400_BAD_REQUEST


class ResourceNotFoundError(AppException):
    error_code = "ERR_NOT_FOUND_001"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, details={"resource": resource, "id": resource_id})


class ConflictError(AppException):
    """A write would break uniqueness, overlap an existing booking or orphan history."""
    error_code = "ERR_CONFLICT_001"
    status_code = status.HTTP_409_CONFLICT


def error_response(
    status_code: int,
    error_code: str,
    message: Any,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": message,
            "details": jsonable_encoder(details or {}),
        },
        headers=headers,
    )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.error_code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """HTTPException (including Starlette's routing 404/405) in the standard envelope."""
    return error_response(
        exc.status_code,
        HTTP_ERROR_CODES.get(exc.status_code, "ERR_UNKNOWN"),
        exc.detail,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Pydantic validation failures, with the per-field errors under ``details.errors``."""
    return error_response(422, "ERR_VALIDATION", "Validation error", {"errors": exc.errors()})


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unhandled exceptions. Internals are logged, never returned."""
    logger.exception(
        "Unhandled exception on %s %s (correlation_id=%s): %s",
        request.method,
        request.url.path,
        getattr(request.state, "correlation_id", None),
        type(exc).__name__,
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "ERR_INTERNAL_SERVER",
        "An internal server error occurred",
    )
