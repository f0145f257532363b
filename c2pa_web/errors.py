"""
Exceptions for the C2PA web service.

Every error carries the HTTP status code it maps to, so route handlers can
simply raise and let the application's exception handlers build the
``{"success": false, "error": ...}`` response body.
"""

from __future__ import annotations


class C2PAWebError(Exception):
    """Base exception for C2PA web service errors."""

    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(C2PAWebError):
    """Raised when a request carries malformed or unacceptable input."""

    status_code = 400
    default_message = "Invalid request."


class InvalidIdentifier(InvalidInput):
    """Raised when a file identifier fails the filename-safety pattern."""

    default_message = "Invalid file ID."


class RequestTooLarge(InvalidInput):
    """Raised when the request body exceeds the configured ceiling."""

    status_code = 413
    default_message = "Request body is too large."


class NotFound(C2PAWebError):
    """Raised when a referenced file is absent from temp storage."""

    status_code = 404
    default_message = "The requested file was not found."


class ExternalServiceFailure(C2PAWebError):
    """Raised when the C2PA library throws or returns an unexpected shape."""

    status_code = 500
    default_message = "The C2PA library failed to process the file."


class C2PAUnavailable(ExternalServiceFailure):
    """Raised when c2pa-python cannot be imported."""

    def __init__(
        self, message: str = "c2pa-python is required. Install with: pip install c2pa-python"
    ):
        super().__init__(message)


class SigningError(ExternalServiceFailure):
    """Raised when signing fails inside the C2PA library."""

    default_message = "Signing failed."

    def __init__(self, message: str | None = None, hint: str | None = None):
        self.hint = hint
        if hint:
            message = f"{message or self.default_message} {hint}"
        super().__init__(message)


class InternalFailure(C2PAWebError):
    """Raised for uncaught or unexpected failures."""

    status_code = 500
    default_message = "An internal error occurred."
