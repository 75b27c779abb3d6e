"""
Shared error handling for the AURIA access layer.

Every failure leaving the gateway is a JSON object with a single ``error``
string. Exceptions carry the HTTP status they map to.
"""

from typing import Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str


class AccessLayerException(Exception):
    """Base exception for access layer services."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message)


class ValidationError(AccessLayerException):
    """Client input errors."""

    status_code = 400

    def __init__(self, message: str = "Validation failed"):
        super().__init__(message)


class AuthenticationError(AccessLayerException):
    """Missing credentials."""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class AuthorizationError(AccessLayerException):
    """Credentials were supplied but rejected."""

    status_code = 403

    def __init__(self, message: str = "Authorization failed"):
        super().__init__(message)


class NotFoundError(AccessLayerException):
    """Requested row could not be read."""

    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class RateLimitError(AccessLayerException):
    """Rate limiting errors."""

    status_code = 429

    def __init__(self, message: str = "Too many requests"):
        super().__init__(message)


class ConfigurationError(AccessLayerException):
    """Operator error: the server is missing required configuration."""

    status_code = 500

    def __init__(self, message: str = "Server misconfigured"):
        super().__init__(message)


class DataStoreError(AccessLayerException):
    """Persistence backend errors. The backend's message is relayed verbatim."""

    status_code = 500

    def __init__(self, message: str = "Data store error", *, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(message)


class ExternalServiceError(AccessLayerException):
    """Third-party service could not be reached."""

    status_code = 502

    def __init__(self, service: str, message: str = "External service error"):
        self.service = service
        super().__init__(f"{service}: {message}")


def error_response(exc: AccessLayerException, status_code: Optional[int] = None) -> JSONResponse:
    """Render an exception as the canonical JSON error body."""
    return JSONResponse(
        status_code=status_code or exc.status_code,
        content=exc.to_response().model_dump(),
    )
