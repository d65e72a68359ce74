# app/core/exceptions.py
"""
Ledger errors and the FastAPI handlers that render them.

Every error the Ledger raises is an AppException carrying a stable
error_code, so callers can tell a rejected payment from a storage outage.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(AppException):
    """Bad input: empty item list, blank name, non-positive price or amount."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION",
            status_code=422,
            details=details,
        )


class DuplicateCustomerError(ValidationError):
    """Raised when a name is already held by another customer."""

    def __init__(self, name: str):
        super().__init__(
            message=f"A customer named {name!r} already exists",
            details={"name": name},
        )
        self.error_code = "ERR_DUPLICATE_CUSTOMER"
        self.status_code = status.HTTP_409_CONFLICT


class NotFoundError(AppException):
    """Raised when a referenced customer, purchase or payment is absent."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id},
        )


class InsufficientDebtError(AppException):
    """Raised when an operation would take a balance below zero."""

    def __init__(self, balance: str, requested: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"Amount {requested} exceeds outstanding debt {balance}",
            error_code="ERR_INSUFFICIENT_DEBT",
            status_code=status.HTTP_409_CONFLICT,
            details={"total_debt": balance, "requested": requested},
        )


class ConcurrentModificationError(AppException):
    """Raised when a customer's balance changed under a running operation."""

    def __init__(self, customer_id: int):
        super().__init__(
            message=f"Customer {customer_id} was modified concurrently; retry with fresh data",
            error_code="ERR_CONCURRENT_UPDATE",
            status_code=status.HTTP_409_CONFLICT,
            details={"customer_id": customer_id},
        )


class InconsistentStateError(AppException):
    """Raised when total_debt no longer matches purchases minus payments."""

    def __init__(self, customer_id: int, stored: str, expected: str):
        super().__init__(
            message=(
                f"Customer {customer_id} balance {stored} does not match "
                f"its records ({expected}); reconcile the customer"
            ),
            error_code="ERR_INCONSISTENT_STATE",
            status_code=status.HTTP_409_CONFLICT,
            details={"customer_id": customer_id, "stored": stored, "expected": expected},
        )


class StorageError(AppException):
    """Raised when the database fails; the original error is chained."""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(
            message=message,
            error_code="ERR_STORAGE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for ledger exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for malformed request bodies and query parameters."""
    return JSONResponse(
        status_code=422,
        content={
            "error_code": "ERR_REQUEST",
            "message": "Invalid request",
            "details": {"errors": jsonable_errors(exc)},
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {},
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances, which JSONResponse cannot encode
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return jsonable_encoder(errors)
