"""
Catalog Response Schemas

Responses that combine a book with its reviews.
"""

from pydantic import BaseModel, Field

from bookreview.schemas.book import BookResponse
from bookreview.schemas.review import ReviewResponse


class BookDetailResponse(BaseModel):
    """A book together with every review of it, newest first."""

    book: BookResponse
    reviews: list[ReviewResponse] = Field(default_factory=list)
