"""
Custom exceptions for the RAP Dashboard API.

Every error carries an ErrorKind; the HTTP status and retryability are
looked up from ERROR_POLICY and stored on the exception instance, so the
boundary never has to inspect the exception class to build a response.
"""
from enum import Enum
from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from rap_dashboard.config import settings


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    UNSUPPORTED_TYPE = "unsupported_type"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    STORE = "store"
    STORE_TIMEOUT = "store_timeout"
    INTERNAL = "internal"


# kind -> (http status, retryable, generic user-facing label)
ERROR_POLICY = {
    ErrorKind.VALIDATION: (status.HTTP_400_BAD_REQUEST, False, "Invalid request"),
    ErrorKind.UNSUPPORTED_TYPE: (status.HTTP_400_BAD_REQUEST, False, "Unsupported type"),
    ErrorKind.AUTH: (status.HTTP_401_UNAUTHORIZED, False, "Invalid signature"),
    ErrorKind.NOT_FOUND: (status.HTTP_404_NOT_FOUND, False, "Not found"),
    ErrorKind.STORE: (status.HTTP_500_INTERNAL_SERVER_ERROR, True, "Failed to process data"),
    ErrorKind.STORE_TIMEOUT: (status.HTTP_504_GATEWAY_TIMEOUT, True, "Data store timed out"),
    ErrorKind.INTERNAL: (status.HTTP_500_INTERNAL_SERVER_ERROR, False, "Internal server error"),
}


class RapDashboardException(Exception):
    """Base exception for the RAP Dashboard"""
    def __init__(self, message: str = "An error occurred", kind: ErrorKind = ErrorKind.INTERNAL):
        self.message = message
        self.kind = kind
        self.status_code, self.retryable, self.label = ERROR_POLICY[kind]
        super().__init__(self.message)

    def to_dict(self, expose_detail: bool = True) -> dict:
        message = self.message
        if self.status_code >= 500 and not expose_detail:
            message = "Something went wrong"
        return {
            "error": self.label,
            "message": message,
            "kind": self.kind.value,
            "retryable": self.retryable,
        }


class ValidationError(RapDashboardException):
    """Malformed or incomplete input"""
    def __init__(self, message: str = "Validation failed", field: str = None):
        if field:
            message = f"Validation failed for field '{field}': {message}"
        self.field = field
        super().__init__(message, ErrorKind.VALIDATION)


class UnsupportedTypeError(RapDashboardException):
    """Unknown campaign type, data type or insight type"""
    def __init__(self, type_name: str = "type", value: Optional[str] = None, supported=None):
        message = f"Unsupported {type_name}"
        if value is not None:
            message = f"{message}: {value}"
        if supported:
            message = f"{message}. Supported types: {', '.join(supported)}"
        super().__init__(message, ErrorKind.UNSUPPORTED_TYPE)


class AuthError(RapDashboardException):
    """Webhook signature missing or invalid"""
    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message, ErrorKind.AUTH)


class NotFoundError(RapDashboardException):
    """Resource not found"""
    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message, ErrorKind.NOT_FOUND)


class StoreError(RapDashboardException):
    """Durable store operation failed"""
    def __init__(self, operation: str = "Store operation", message: str = None):
        msg = f"{operation} failed"
        if message:
            msg = f"{msg}: {message}"
        super().__init__(msg, ErrorKind.STORE)


class StoreTimeoutError(RapDashboardException):
    """Durable store operation exceeded its timeout"""
    def __init__(self, operation: str = "Store operation", timeout: float = None):
        msg = f"{operation} timed out"
        if timeout is not None:
            msg = f"{msg} after {timeout:g}s"
        super().__init__(msg, ErrorKind.STORE_TIMEOUT)


class InternalError(RapDashboardException):
    """Unexpected failure inside an adapter"""
    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, ErrorKind.INTERNAL)


def wrap_exception(exc: Exception) -> RapDashboardException:
    """Return exc unchanged if it is already tagged, otherwise tag it as internal."""
    if isinstance(exc, RapDashboardException):
        return exc
    return InternalError(f"{type(exc).__name__}: {exc}")


def register_exception_handlers(app) -> None:
    """Install the JSON error handler on a FastAPI app."""

    @app.exception_handler(RapDashboardException)
    async def handle_rap_exception(request: Request, exc: RapDashboardException):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(expose_detail=settings.DEV_MODE),
        )
