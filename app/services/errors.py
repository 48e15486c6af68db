"""
Service errors raised to the API layer.
"""
from typing import Optional


class BackendError(Exception):
    """The backend rejected a request or could not be reached."""

    def __init__(self, status_code: int, message: str, payload: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}


class AuthenticationRequired(BackendError):
    """No bearer token is available for an authenticated call."""

    def __init__(self, message: str = "No authentication token found. Please login again."):
        super().__init__(401, message)


class FormValidationError(ValueError):
    """A form is missing required values or carries invalid files."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class TreeIndexError(IndexError):
    """A category, package, highlight, tier or gallery index does not exist."""


class SubmissionInProgress(RuntimeError):
    """The same form is already being submitted."""
