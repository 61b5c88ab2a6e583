"""
Service Error Taxonomy

Services raise these typed failures; the application maps them to HTTP
status codes in one place (see create_app in main.py). Routers do not
catch them.

    NotFoundError      404  review/comment/account missing or soft-deleted
    UnauthorizedError  401  actor does not own the resource, bad credentials
    ConflictError      409  duplicate state (already verified, already following)
    BadRequestError    400  input that is well-formed but not acceptable
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors raised at the service boundary."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not allowed to modify this resource"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"
