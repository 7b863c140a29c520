"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
Every error body has the shape::

    {"error_code": ..., "error_kind": ..., "message": ..., "details": {...}}
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger("parcel_delivery")


class AppException(Exception):
    """Base application exception."""

    error_kind = "Internal"

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(AppException):
    """Raised when the bearer credential is missing or invalid."""

    error_kind = "Unauthorized"

    def __init__(self, message: str = "unauthorized access"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    error_kind = "Forbidden"

    def __init__(self, message: str = "forbidden access", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    error_kind = "NotFound"

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class InvalidTransitionError(AppException):
    """Raised when a parcel cannot move from its current delivery status to the requested one."""

    error_kind = "InvalidTransition"

    def __init__(self, current: Any, target: Any):
        super().__init__(
            message=f"Cannot move parcel from '{current}' to '{target}'",
            error_code="ERR_STATE_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"current_status": current, "requested_status": target}
        )


class RiderUnavailableError(AppException):
    """Raised when a rider cannot take a parcel: not approved, or already delivering one."""

    error_kind = "InvalidTransition"

    def __init__(self, rider_id: Any, rider_status: Any, work_status: Any):
        super().__init__(
            message=f"Rider {rider_id} cannot take a parcel ({rider_status}, {work_status})",
            error_code="ERR_RIDER_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"rider_id": rider_id, "status": rider_status, "work_status": work_status}
        )


class EntityLockedError(AppException):
    """Raised when another request is already mutating the same record."""

    error_kind = "Conflict"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity} {entity_id} is being updated by another request",
            error_code="ERR_LOCK_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource": entity, "id": entity_id}
        )


class PaymentGatewayError(AppException):
    """Raised when the payment gateway cannot be reached or rejects a call."""

    error_kind = "UpstreamError"

    def __init__(self, message: str = "Payment gateway request failed", status_code: int = status.HTTP_502_BAD_GATEWAY):
        super().__init__(
            message=message,
            error_code="ERR_GATEWAY_001",
            status_code=status_code
        )


class TrackingIdGenerationError(AppException):
    """Raised when no random source is available to mint a tracking id."""

    error_kind = "GenerationError"

    def __init__(self, message: str = "Could not generate a tracking id"):
        super().__init__(
            message=message,
            error_code="ERR_TRACKING_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.error_code, exc.message, extra={"path": request.url.path})
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "error_kind": exc.error_kind,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: ("ERR_BAD_REQUEST", "BadRequest"),
        401: ("ERR_UNAUTHORIZED", "Unauthorized"),
        403: ("ERR_FORBIDDEN", "Forbidden"),
        404: ("ERR_NOT_FOUND", "NotFound"),
        409: ("ERR_CONFLICT", "Conflict"),
        500: ("ERR_INTERNAL_SERVER", "Internal")
    }

    error_code, error_kind = error_code_map.get(exc.status_code, ("ERR_UNKNOWN", "Unknown"))

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "error_kind": error_kind,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "error_kind": "Validation",
            "message": "Validation error",
            "details": {
                "errors": jsonable_errors(exc)
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s", type(exc).__name__, extra={"path": request.url.path})

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "error_kind": "Internal",
            "message": "An internal server error occurred",
            "details": {}
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold the raw exception object, which is not JSON serializable
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors
