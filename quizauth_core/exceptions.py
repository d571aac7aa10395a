"""Exception hierarchy for QuizAuth Core.

Every error carries a human-readable message, optional details and the HTTP
status code the error handlers in main.py render it with.
"""


class QuizAuthError(Exception):
    """Base exception for all QuizAuth errors."""

    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(QuizAuthError):
    """Malformed or missing request input."""

    status_code = 400


class AuthenticationError(QuizAuthError):
    """Bad credentials, or a missing, invalid or expired token."""

    status_code = 401


class ResourceNotFound(QuizAuthError):
    """Requested user does not exist."""

    status_code = 404


class ConflictError(QuizAuthError):
    """Username or email already taken."""

    status_code = 400


class DatabaseError(QuizAuthError):
    """Unexpected persistence failure."""

    status_code = 500
