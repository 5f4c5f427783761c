"""Typed service errors and their HTTP mapping.

Services raise these; routers turn them into ``HTTPException`` through
``to_http_exception``.
"""
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)

class ServiceError(Exception):
    """Base service error."""

    def __init__(self, message: str, code: str = "service_error"):
        self.message = message
        self.code = code
        super().__init__(message)

class ValidationError(ServiceError):
    """Malformed, empty or oversized input."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, "validation_error")

class NotFoundError(ServiceError):
    """Referenced comment or user does not exist."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, "not_found")

class AuthorizationError(ServiceError):
    """Actor lacks permission for a mutation."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "permission_denied")

class AuthError(ServiceError):
    """Identity provider payload is malformed."""

    def __init__(self, message: str = "Invalid sign-in payload"):
        super().__init__(message, "auth_error")

class StoreError(ServiceError):
    """Underlying persistence failure."""

    def __init__(self, message: str = "Storage failure"):
        super().__init__(message, "store_error")

STATUS_MAP = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "auth_error": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "permission_denied": status.HTTP_403_FORBIDDEN,
}

def to_http_exception(error: ServiceError) -> HTTPException:
    """Convert a service error to an HTTP exception.

    Store errors and unknown codes become a 500 with a generic detail; the
    original message only goes to the log.
    """
    status_code = STATUS_MAP.get(error.code)
    if status_code is None:
        logger.error(f"Unhandled service error ({error.code}): {error.message}")
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )
    return HTTPException(status_code=status_code, detail=error.message)
