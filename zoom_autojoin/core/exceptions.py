"""
Custom exceptions for the auto-join engine and its API.
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class AutoJoinException(Exception):
    """Base exception for auto-join errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class CredentialValidationError(AutoJoinException):
    """Raised when a meeting credential is rejected before any join attempt."""

    code = "invalid_credential"


class MissingFieldError(CredentialValidationError):
    """Meeting ID or passcode is empty."""

    code = "missing_field"


class InvalidLengthError(CredentialValidationError):
    """Meeting ID is not 9-11 characters long."""

    code = "invalid_length"


class NonNumericIdError(CredentialValidationError):
    """Meeting ID contains non-digit characters."""

    code = "non_numeric_id"


class ConfigurationError(AutoJoinException):
    """Raised when configuration is invalid."""
    pass


class MeetingJoinError(AutoJoinException):
    """Raised when the meeting page cannot be opened."""
    pass


class MeetingAlreadyActiveError(MeetingJoinError):
    """Raised when an auto-join session for the meeting is already running."""
    pass


class SessionNotFoundError(AutoJoinException):
    """Raised when a join session id is unknown."""
    pass


# HTTP Exceptions for API responses
class HTTPBadRequest(HTTPException):
    """400 Bad Request"""
    def __init__(self, detail: Any):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class HTTPNotFound(HTTPException):
    """404 Not Found"""
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class HTTPConflict(HTTPException):
    """409 Conflict"""
    def __init__(self, detail: str = "Resource conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class HTTPInternalServerError(HTTPException):
    """500 Internal Server Error"""
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class HTTPBadGateway(HTTPException):
    """502 Bad Gateway"""
    def __init__(self, detail: str = "Meeting page could not be opened"):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)
