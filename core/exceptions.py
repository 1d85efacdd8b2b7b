"""
Application error taxonomy.

Services raise these; the HTTP layer maps them straight to responses using
``status_code`` and ``error_code`` without reinterpreting them.
"""

from fastapi import status


class AppError(Exception):
    """Base exception for all expected application errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "APP_ERROR"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code})"


class NotFoundError(AppError):
    """Entity missing, or hidden from the requester."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class ForbiddenError(AppError):
    """Authenticated but not permitted for this action, field or resource."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"


class ConflictError(AppError):
    """State invariant violation."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class InvalidInputError(AppError):
    """Malformed or referentially invalid payload."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_INPUT"


class UnauthorizedError(AppError):
    """Missing or invalid credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"
