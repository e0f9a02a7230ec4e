"""
Service Exceptions

Domain errors raised by the service layer. Routers do not catch them;
bookreview.main registers a single handler that renders any
BookReviewError as:

    {"error": "<code>", "detail": "<message>"}

with the status code carried by the exception class.
"""

from fastapi import status


class BookReviewError(Exception):
    """Base exception for all service errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(BookReviewError):
    """Malformed or out-of-range input that passed schema validation."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"


class NotFoundError(BookReviewError):
    """Referenced book, review or user does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(BookReviewError):
    """Duplicate review for a (book, user) pair."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class ForbiddenError(BookReviewError):
    """Caller is not allowed to perform the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class UnavailableError(BookReviewError):
    """An external collaborator (image host) failed or timed out."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "unavailable"
