"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, Optional

logger = logging.getLogger("admin_console")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

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


# Workflow errors

class TransitionRejectedError(AppException):
    """Raised when the status validator rejects a proposed transition."""

    def __init__(self, message: str, current_status: Optional[str] = None, target_status: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="ERR_TRANSITION_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"current_status": current_status, "target_status": target_status}
        )


class ConfirmationRequiredError(AppException):
    """Raised when a valid transition needs operator confirmation first."""

    def __init__(self, warning_message: str, current_status: str, target_status: str):
        super().__init__(
            message="Operator confirmation required",
            error_code="ERR_TRANSITION_002",
            status_code=status.HTTP_409_CONFLICT,
            details={
                "warning_message": warning_message,
                "current_status": current_status,
                "target_status": target_status,
            }
        )


class TransitionInFlightError(AppException):
    """Raised when another tracking mutation for the same order is still pending."""

    def __init__(self, order_id: str):
        super().__init__(
            message=f"Another tracking update for order {order_id} is still in progress",
            error_code="ERR_TRANSITION_003",
            status_code=status.HTTP_409_CONFLICT,
            details={"order_id": order_id}
        )


class InvalidTrackingDetailsError(AppException):
    """Raised when tracking details fail client-side checks."""

    def __init__(self, message: str = "Carrier and tracking number are required"):
        super().__init__(
            message=message,
            error_code="ERR_TRACKING_001",
            status_code=status.HTTP_400_BAD_REQUEST
        )


class TrackingAlreadyExistsError(AppException):
    """Raised when creating tracking for an order that already has it."""

    def __init__(self, order_id: str):
        super().__init__(
            message=f"Tracking already exists for order {order_id}",
            error_code="ERR_TRACKING_002",
            status_code=status.HTTP_409_CONFLICT,
            details={"order_id": order_id}
        )


class ResetNotAllowedError(AppException):
    """Raised when resetting tracking of an order in a terminal status."""

    def __init__(self, current_status: str):
        super().__init__(
            message=f"Cannot reset tracking once the order is {current_status}",
            error_code="ERR_TRACKING_003",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"current_status": current_status}
        )


# Remote commerce API errors

class RemoteServiceError(AppException):
    """Raised when the commerce API rejects a call. Message is the server's, verbatim."""

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(
            message=message,
            error_code="ERR_REMOTE_001",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"upstream_status": upstream_status}
        )


class RemoteServiceUnavailableError(AppException):
    """Raised when the commerce API (or the mutation guard store) cannot be reached."""

    def __init__(self, message: str = "Commerce service is unavailable"):
        super().__init__(
            message=message,
            error_code="ERR_REMOTE_002",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": exc.errors()
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.error("Unhandled exception: %s: %s", type(exc).__name__, exc, exc_info=exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
