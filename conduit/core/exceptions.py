"""
Custom exceptions for the Conduit API.

This module provides the error taxonomy shared by the auth core, the services
and the HTTP layer. Each error knows its HTTP status and how to render itself
for an API response, so handlers only ever raise.
"""

import logging
from typing import Any, Optional, Dict, List
from datetime import datetime, timezone


logger = logging.getLogger(__name__)


class ConduitError(Exception):
    """
    Base exception for the Conduit API.

    Carries an error code, optional context for the logs and the HTTP status
    the error maps to. Errors log themselves on construction.
    """

    status_code: int = 500
    log_level: int = logging.ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        self._log_error()

    def _log_error(self):
        """Log the error with its class-specific level and context."""
        log_data = {
            "error_code": self.error_code,
            "error_message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)

        logger.log(self.log_level, f"[{self.error_code}] {self.message}", extra={"error_details": log_data})

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message
        }


class UnauthorizedError(ConduitError):
    """Raised for a missing, invalid or expired token, or a wrong password."""

    status_code = 401
    log_level = logging.DEBUG

    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(message, error_code="UNAUTHORIZED", **kwargs)


class ForbiddenError(ConduitError):
    """Raised when an authenticated caller does not own the target resource."""

    status_code = 403
    log_level = logging.INFO

    def __init__(self, message: str = "You do not have permission to modify this resource", **kwargs):
        super().__init__(message, error_code="FORBIDDEN", **kwargs)


class NotFoundError(ConduitError):
    """Raised when a resource key does not exist."""

    status_code = 404
    log_level = logging.DEBUG

    def __init__(self, message: str = "Resource not found", **kwargs):
        super().__init__(message, error_code="NOT_FOUND", **kwargs)


class UnprocessableEntityError(ConduitError):
    """
    Raised for semantically invalid input, e.g. a duplicate unique field.

    The response body follows the RealWorld shape:
    ``{"errors": {"username": ["username taken"]}}``.
    """

    status_code = 422
    log_level = logging.INFO

    def __init__(self, errors: Dict[str, List[str]], **kwargs):
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Unprocessable entity: {fields}", error_code="UNPROCESSABLE_ENTITY", **kwargs)

    @classmethod
    def single(cls, field: str, message: str) -> "UnprocessableEntityError":
        """Build an error for one field with one message."""
        return cls({field: [message]})

    def to_dict(self) -> Dict[str, Any]:
        return {"errors": self.errors}


class InternalError(ConduitError):
    """
    Raised for genuine server faults.

    The message and context are for the logs only; the API response is
    always opaque.
    """

    status_code = 500

    def __init__(self, message: str, error_code: str = "INTERNAL_ERROR", **kwargs):
        super().__init__(message, error_code=error_code, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return opaque_error_body()


class CredentialFormatError(InternalError):
    """Raised when a stored credential string cannot be parsed."""

    def __init__(self, cause: Optional[Exception] = None, **kwargs):
        super().__init__(
            "Stored credential is malformed",
            error_code="CREDENTIAL_FORMAT_ERROR",
            cause=cause,
            **kwargs
        )


class InvariantViolationError(InternalError):
    """Raised when the store reports a state that should be impossible."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, error_code="INVARIANT_VIOLATION", **kwargs)


class ConfigurationError(ConduitError):
    """Raised when configuration or key material cannot be loaded at startup."""

    def __init__(self, config_field: str, details: str, cause: Optional[Exception] = None, **kwargs):
        context = {"config_field": config_field}
        context.update(kwargs.pop("context", {}))
        super().__init__(
            f"Configuration error in '{config_field}': {details}",
            error_code="CONFIGURATION_ERROR",
            context=context,
            cause=cause,
            **kwargs
        )


def opaque_error_body() -> Dict[str, Any]:
    """Response body for any server fault; never carries details."""
    return {
        "error": "INTERNAL_ERROR",
        "message": "An unexpected error occurred."
    }
