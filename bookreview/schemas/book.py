"""
Book Pydantic Schemas

Handles:
- Catalog field validation (lengths, published year range)
- Cover image URL input
- Read-only rating aggregates in responses
- Pagination for list responses
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator


def _current_year() -> int:
    return datetime.now().year


def _check_published_year(v: int | None) -> int | None:
    if v is not None and v > _current_year():
        raise ValueError("Published year cannot be in the future")
    return v


def _strip_required(v: str, field: str) -> str:
    if not v.strip():
        raise ValueError(f"{field} cannot be empty or whitespace")
    return v.strip()


class BookBase(BaseModel):
    """
    Base schema with shared book fields.

    Contains validation for:
    - Title, author, description (required, trimmed, bounded)
    - Genre (optional, max 50)
    - Published year (1000 to the current year)
    """

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Book title",
        examples=["1984", "The Hobbit"],
    )

    author: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Author name",
        examples=["George Orwell"],
    )

    description: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="Book description or summary",
        examples=["A dystopian novel set in a totalitarian society..."],
    )

    genre: str | None = Field(
        default=None,
        max_length=50,
        description="Genre label",
        examples=["Dystopian", "Fantasy"],
    )

    published_year: int | None = Field(
        default=None,
        ge=1000,
        description="Year of publication",
        examples=[1949],
    )

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v, "Title")

    @field_validator("author")
    @classmethod
    def author_must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v, "Author")

    @field_validator("description")
    @classmethod
    def description_must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v, "Description")

    @field_validator("genre")
    @classmethod
    def normalize_genre(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
        return v or None

    @field_validator("published_year")
    @classmethod
    def published_year_not_in_future(cls, v: int | None) -> int | None:
        return _check_published_year(v)


class BookCreate(BookBase):
    """
    Schema for creating a new book.

    Example request body:
    {
        "title": "1984",
        "author": "George Orwell",
        "description": "A dystopian novel...",
        "genre": "Dystopian",
        "published_year": 1949,
        "image_url": "https://example.com/covers/1984.jpg"
    }
    """

    image_url: HttpUrl | None = Field(
        default=None,
        description="Existing image URL to use as the cover",
    )


class BookUpdate(BaseModel):
    """
    Schema for updating an existing book.

    All fields are optional for PATCH-style updates. Rating aggregates are
    not accepted here; they follow the book's reviews.
    """

    title: str | None = Field(default=None, min_length=1, max_length=200)
    author: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1, max_length=2000)
    genre: str | None = Field(default=None, max_length=50)
    published_year: int | None = Field(default=None, ge=1000)
    image_url: HttpUrl | None = Field(
        default=None,
        description="Replacement cover image URL",
    )

    @field_validator("title", "author", "description")
    @classmethod
    def text_must_not_be_empty(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Field cannot be empty or whitespace")
        return v.strip() if v else v

    @field_validator("published_year")
    @classmethod
    def published_year_not_in_future(cls, v: int | None) -> int | None:
        return _check_published_year(v)


class BookSummaryResponse(BaseModel):
    """
    Book data for list views.

    The description is left out to keep list pages small.
    """

    id: int = Field(..., description="Unique identifier")
    title: str
    author: str
    genre: str | None = None
    published_year: int | None = None
    cover_image: str = Field(default="", description="Cover image URL")
    average_rating: float = Field(
        default=0.0,
        ge=0,
        le=5,
        description="Mean review rating, 0 when there are no reviews",
    )
    total_reviews: int = Field(default=0, ge=0, description="Number of reviews")
    rating: str = Field(default="0.0", description="Average rating rounded for display")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookResponse(BookSummaryResponse):
    """Full book data, including the description."""

    description: str

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "1984",
                "author": "George Orwell",
                "description": "A dystopian novel about totalitarianism",
                "genre": "Dystopian",
                "published_year": 1949,
                "cover_image": "https://res.cloudinary.com/demo/image/upload/1984.jpg",
                "average_rating": 4.25,
                "total_reviews": 4,
                "rating": "4.3",
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class BookListResponse(BaseModel):
    """
    Schema for paginated book list responses.

    - total: Total number of books matching the query
    - page: Current page number
    - per_page: Number of items per page
    - pages: Total number of pages
    """

    items: list[BookSummaryResponse] = Field(..., description="Books on this page")
    total: int = Field(..., ge=0, description="Total number of books")
    page: int = Field(..., ge=1, description="Current page number")
    per_page: int = Field(..., ge=1, le=100, description="Items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")


class BookSuggestion(BaseModel):
    """Title/author pair for search-as-you-type."""

    id: int
    title: str
    author: str

    model_config = ConfigDict(from_attributes=True)


class BookSuggestionsResponse(BaseModel):
    suggestions: list[BookSuggestion] = Field(default_factory=list)


class CoverUploadResponse(BaseModel):
    """Result of a cover image upload."""

    book_id: int
    cover_image: str = Field(..., description="Public URL of the uploaded cover")
