"""
Custom exceptions shared by the Resource API and the client stores.

This provides:
1. Specific exception types for different error scenarios
2. HTTP status code mapping in both directions
3. User-friendly error messages
"""

from typing import Any, Dict, Optional, Type


class AppException(Exception):
    """Base exception class for application-specific errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppException):
    """Raised when input validation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class AuthenticationError(AppException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)


class AuthorizationError(AppException):
    """Raised when user doesn't have permission for an operation."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, status_code=403)


class NotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ConflictError(AppException):
    """Raised when operation conflicts with current state."""

    def __init__(self, message: str = "Conflict with current state"):
        super().__init__(message, status_code=409)


class ServiceError(AppException):
    """Raised when business logic operation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=500, details=details)


class UnavailableError(AppException):
    """Raised when the server or the network cannot serve a request."""

    def __init__(self, message: str = "Service unavailable", status_code: int = 503):
        super().__init__(message, status_code=status_code)


_STATUS_EXCEPTIONS: Dict[int, Type[AppException]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}


def exception_for_status(status_code: int, message: str) -> AppException:
    """Build the exception matching an HTTP error status."""
    if status_code >= 500:
        return UnavailableError(message, status_code=status_code)
    exc_class = _STATUS_EXCEPTIONS.get(status_code)
    if exc_class is None:
        return AppException(message, status_code=status_code)
    return exc_class(message)
