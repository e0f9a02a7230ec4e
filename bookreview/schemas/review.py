"""
Review Pydantic Schemas

Schemas:
- ReviewCreate: Create a new review
- ReviewUpdate: Update an existing review (rating and/or comment)
- ReviewResponse: Full review data with author and book display fields
- ReviewListResponse: Paginated list of reviews
- HelpfulResponse: Counter value after a helpful mark
- BookRatingStats: Aggregate rating of a book

Business Rules:
- Rating must be 1-5 (validated at schema level)
- Comment is required, 1-1000 characters after trimming
- One review per user per book (enforced at database level)
"""
# ruff: noqa: I001
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bookreview.schemas.user import UserPublicResponse


# =============================================================================
# Embedded Schemas
# =============================================================================


class BookMinimal(BaseModel):
    """
    Minimal book info for embedding in review responses.

    Enough to render a "My reviews" list without a second request.
    """

    id: int = Field(..., description="Book ID")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Author name")
    cover_image: str = Field(default="", description="Cover image URL")

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Review Schemas
# =============================================================================


def _clean_comment(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Comment is required")
    if len(v) > 1000:
        raise ValueError("Comment cannot be more than 1000 characters")
    return v


class ReviewCreate(BaseModel):
    """
    Schema for creating a new review.

    Example request body:
    {
        "rating": 5,
        "comment": "One of the best books I've ever read."
    }
    """

    rating: int = Field(
        ...,
        ge=1,
        le=5,
        description="Rating from 1 to 5 stars",
        examples=[4, 5],
    )

    comment: str = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Review text",
        examples=["This book changed my perspective on..."],
    )

    @field_validator("comment")
    @classmethod
    def comment_must_not_be_blank(cls, v: str) -> str:
        return _clean_comment(v)


class ReviewUpdate(BaseModel):
    """
    Schema for updating an existing review.

    Both fields are optional; omitted fields keep their stored value.
    """

    rating: int | None = Field(
        default=None,
        ge=1,
        le=5,
        description="Rating from 1 to 5 stars",
    )

    comment: str | None = Field(
        default=None,
        min_length=1,
        max_length=1000,
        description="Review text",
    )

    @field_validator("comment")
    @classmethod
    def comment_must_not_be_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _clean_comment(v)


class ReviewResponse(BaseModel):
    """
    Schema for review responses.

    Includes nested display data for the author and for the reviewed book.
    """

    id: int = Field(..., description="Unique review identifier")
    book_id: int = Field(..., description="ID of the reviewed book")
    user_id: int = Field(..., description="ID of the user who wrote the review")
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5 stars")
    comment: str = Field(..., description="Review text")
    helpful: int = Field(default=0, ge=0, description="Number of helpful marks")

    created_at: datetime = Field(..., description="When the review was created")
    updated_at: datetime = Field(..., description="When the review was last updated")

    user: UserPublicResponse = Field(..., description="User who wrote the review")
    book: BookMinimal = Field(..., description="Book being reviewed")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "book_id": 42,
                "user_id": 7,
                "rating": 5,
                "comment": "This book completely changed my perspective on...",
                "helpful": 12,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
                "user": {"id": 7, "name": "Jane Doe", "avatar": None},
                "book": {
                    "id": 42,
                    "title": "1984",
                    "author": "George Orwell",
                    "cover_image": "",
                },
            }
        },
    )


class ReviewListResponse(BaseModel):
    """
    Schema for paginated review list responses.
    """

    items: list[ReviewResponse] = Field(..., description="Reviews on this page")
    total: int = Field(..., ge=0, description="Total number of reviews")
    page: int = Field(..., ge=1, description="Current page number")
    per_page: int = Field(..., ge=1, le=100, description="Items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")


class HelpfulResponse(BaseModel):
    """Helpful counter after a mark."""

    review_id: int
    helpful: int = Field(..., ge=0)


# =============================================================================
# Aggregation Schemas
# =============================================================================


class BookRatingStats(BaseModel):
    """
    Aggregate rating of a book as stored on the book row.
    """

    book_id: int = Field(..., description="Book ID")
    average_rating: float = Field(
        ...,
        ge=0,
        le=5,
        description="Average rating (0-5, 0 means no reviews)",
    )
    total_reviews: int = Field(..., ge=0, description="Total number of reviews")
    rating: str = Field(..., description="Average rating rounded for display")
