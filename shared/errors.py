"""
Shared error handling for the Supplier Portal Access Layer.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    message: Optional[str] = None
    code: str
    details: Dict[str, Any] = Field(default_factory=dict)
    request_id: Optional[str] = None


class PortalError(Exception):
    """Base exception for portal services."""

    status_code = 500
    error = "Internal server error"

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            error=self.error,
            message=self.message,
            code=self.code,
            details=self.details,
            request_id=request_id_var.get(),
        )


class AuthenticationError(PortalError):
    """No session, or the session provider rejected it."""

    status_code = 401
    error = "Unauthorized"

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class ValidationError(PortalError):
    """Missing or malformed request input."""

    status_code = 400
    error = "Validation failed"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if field:
            details.setdefault("field", field)
        self.field = field
        super().__init__("VALIDATION_ERROR", message, details)


class NotFoundError(PortalError):
    """The requested record does not exist upstream or in the fallback data."""

    status_code = 404
    error = "Not found"

    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class UpstreamRejectedError(PortalError):
    """The ERP refused a write (validation or business rule)."""

    error = "Upstream rejected request"

    def __init__(
        self,
        status_code: int,
        message: str = "Upstream rejected request",
        errors: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        details["errors"] = errors or {}
        details["upstream_status"] = status_code
        if status_code == 422:
            self.error = "Validation failed"
        elif status_code == 403:
            self.error = "Submission not allowed"
        super().__init__("UPSTREAM_REJECTED", message, details, status_code=status_code)


class UpstreamUnavailableError(PortalError):
    """The ERP could not be reached and no fallback is permitted."""

    status_code = 503
    error = "Upstream unavailable"

    def __init__(self, resource: str, message: str = "Upstream service unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_UNAVAILABLE", f"{resource}: {message}", details)
