"""Library exceptions."""

from typing import Optional


class PyiCNotesException(Exception):
    """Generic pyicnotes exception."""


# Authentication
class PyiCNotesLoginException(PyiCNotesException):
    """The identity provider rejected the login or returned garbage."""


class PyiCNotesLoginCancelled(PyiCNotesLoginException):
    """The user abandoned the identity-provider flow."""


class PyiCNotesNotAuthenticated(PyiCNotesException):
    """An operation needed an authenticated session and there is none."""

    def __init__(self, message: str = "Authentication required. Please login."):
        super().__init__(message)


# Validation
class NoteValidationError(PyiCNotesException):
    """Title or content rejected before contacting the service."""


# Remote service
class NotesError(PyiCNotesException):
    """Base note service error."""


class NotesAuthError(NotesError):
    """Delegation rejected by the service (401/403)."""


class NotesRateLimited(NotesError):
    """429 Too Many Requests."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class NotesApiError(NotesError):
    """Catch-all API error."""

    def __init__(self, message: str, payload: Optional[object] = None):
        super().__init__(message)
        self.payload = payload


class NoteOperationFailed(NotesError):
    """The service answered with an ``Err`` result."""


class UnexpectedResponseError(NotesError):
    """The service answered with neither ``Ok`` nor ``Err``."""

    def __init__(
        self,
        message: str = "Unexpected response format",
        payload: Optional[object] = None,
    ):
        super().__init__(message)
        self.payload = payload


# Concurrency
class StoreBusyError(PyiCNotesException):
    """A change is already being saved."""

    def __init__(self, message: str = "Another change is still being saved"):
        super().__init__(message)
