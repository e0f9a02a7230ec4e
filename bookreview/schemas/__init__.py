"""
Pydantic Schemas Package

Request/response validation, kept separate from the SQLAlchemy models so
the API can control exactly what it accepts and exposes.

Schema Naming Convention:
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating (all optional)
- XxxResponse: Fields returned in API responses
"""

from bookreview.schemas.book import (
    BookBase,
    BookCreate,
    BookListResponse,
    BookResponse,
    BookSuggestion,
    BookSuggestionsResponse,
    BookSummaryResponse,
    BookUpdate,
    CoverUploadResponse,
)
from bookreview.schemas.user import (
    TokenResponse,
    UserCreate,
    UserPublicResponse,
    UserResponse,
)
from bookreview.schemas.review import (
    BookMinimal,
    BookRatingStats,
    HelpfulResponse,
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
)
from bookreview.schemas.catalog import BookDetailResponse

__all__ = [
    # Book schemas
    "BookBase",
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookSummaryResponse",
    "BookListResponse",
    "BookSuggestion",
    "BookSuggestionsResponse",
    "BookDetailResponse",
    "CoverUploadResponse",
    # User schemas
    "UserCreate",
    "UserResponse",
    "UserPublicResponse",
    "TokenResponse",
    # Review schemas
    "BookMinimal",
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "ReviewListResponse",
    "HelpfulResponse",
    "BookRatingStats",
]
