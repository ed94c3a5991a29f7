"""Application error taxonomy.

Services raise these; ``app.main`` maps them to JSON responses using
``status_code``.
"""


class AppError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Malformed or conflicting input. Never retried."""

    status_code = 400


class AuthenticationError(AppError):
    """Missing, expired or invalid credentials."""

    status_code = 401


class PermissionDeniedError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class RateLimitError(AppError):
    status_code = 429


class ExternalServiceError(AppError):
    """Database, cache or AI service unreachable on a user-facing action."""

    status_code = 503
