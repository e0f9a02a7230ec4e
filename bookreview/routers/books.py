"""
Books Router

Catalog endpoints: listing, suggestions, detail with reviews, and the
admin-only create/update/delete, cover upload and rating recompute.

Business rules live in bookreview.services.catalog; handlers translate
HTTP input into service calls and service results into response schemas.
Service errors are rendered by the BookReviewError handler in main.py.
"""

import math

from fastapi import APIRouter, File, Query, Request, UploadFile, status

from bookreview.config import get_settings
from bookreview.dependencies import ActiveUser, BookFilters, DbSession, Pagination
from bookreview.schemas import (
    BookCreate,
    BookDetailResponse,
    BookListResponse,
    BookRatingStats,
    BookResponse,
    BookSuggestion,
    BookSuggestionsResponse,
    BookSummaryResponse,
    BookUpdate,
    CoverUploadResponse,
    ReviewResponse,
)
from bookreview.services import catalog
from bookreview.services.cache import cache_get, cache_set, make_cache_key
from bookreview.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        404: {"description": "Book not found"},
    },
)


# =============================================================================
# Read Endpoints
# =============================================================================


@router.get(
    "/",
    response_model=BookListResponse,
    summary="List books",
    description="Paginated list of books with optional search and sorting.",
)
@limiter.limit(settings.rate_limit_default)
def list_books(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    filters: BookFilters,
) -> BookListResponse:
    """
    List books.

    Examples:
        GET /api/v1/books/?search=orwell
        GET /api/v1/books/?sort=average_rating&order=desc&page=2
    """
    cache_key = make_cache_key(
        "books",
        page=pagination.page,
        per_page=pagination.per_page,
        search=filters.search,
        sort=filters.sort,
        order=filters.order,
    )
    cached = cache_get(cache_key)
    if cached:
        return BookListResponse.model_validate(cached)

    books, total = catalog.list_books(
        db,
        search=filters.search,
        skip=pagination.skip,
        limit=pagination.per_page,
        sort=filters.sort,
        order=filters.order,
    )
    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    response = BookListResponse(
        items=[BookSummaryResponse.model_validate(book) for book in books],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )
    cache_set(cache_key, response.model_dump(mode="json"))
    return response


@router.get(
    "/suggestions",
    response_model=BookSuggestionsResponse,
    summary="Suggest books",
    description="Title and author matches for search-as-you-type.",
)
@limiter.limit(settings.rate_limit_default)
def suggest_books(
    request: Request,
    db: DbSession,
    q: str = Query(default="", max_length=100, description="Partial title or author"),
    limit: int = Query(default=6, ge=1, le=20, description="Maximum suggestions"),
) -> BookSuggestionsResponse:
    books = catalog.suggest_books(db, q.strip(), limit=limit)
    return BookSuggestionsResponse(
        suggestions=[BookSuggestion.model_validate(book) for book in books]
    )


@router.get(
    "/{book_id}",
    response_model=BookDetailResponse,
    summary="Get a book with its reviews",
    description="Book details plus every review, newest first.",
)
@limiter.limit(settings.rate_limit_default)
def get_book(
    request: Request,
    book_id: int,
    db: DbSession,
) -> BookDetailResponse:
    """
    Get a single book and its reviews.

    Cached in Redis; any review mutation of the book invalidates the entry.
    """
    cache_key = make_cache_key("book", book_id)
    cached = cache_get(cache_key)
    if cached:
        return BookDetailResponse.model_validate(cached)

    book, reviews = catalog.get_book_with_reviews(db, book_id)
    response = BookDetailResponse(
        book=BookResponse.model_validate(book),
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
    )

    cache_set(cache_key, response.model_dump(mode="json"), ttl=settings.cache_ttl_books)
    return response


# =============================================================================
# Admin Endpoints
# =============================================================================


@router.post(
    "/",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a book",
    description="Add a book to the catalog. Requires the admin role.",
)
@limiter.limit(settings.rate_limit_write)
def create_book(
    request: Request,
    book_data: BookCreate,
    db: DbSession,
    current_user: ActiveUser,
) -> BookResponse:
    book = catalog.create_book(db, current_user, book_data)
    return BookResponse.model_validate(book)


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    summary="Update a book",
    description="Update catalog fields. Only provided fields change. Requires the admin role.",
)
@limiter.limit(settings.rate_limit_write)
def update_book(
    request: Request,
    book_id: int,
    book_data: BookUpdate,
    db: DbSession,
    current_user: ActiveUser,
) -> BookResponse:
    book = catalog.update_book(db, current_user, book_id, book_data)
    return BookResponse.model_validate(book)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
    description="Delete a book and all of its reviews. Requires the admin role.",
)
@limiter.limit(settings.rate_limit_write)
def delete_book(
    request: Request,
    book_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> None:
    """
    Delete a book.

    Returns 204 No Content on success.
    """
    catalog.delete_book(db, current_user, book_id)


@router.post(
    "/{book_id}/upload-cover",
    response_model=CoverUploadResponse,
    summary="Upload a cover image",
    description="""
    Upload a cover image (multipart field `cover`) to the image host and
    set it as the book's cover. Requires the admin role.

    If the image host fails, the book is left unchanged and 503 is returned.
    """,
)
@limiter.limit(settings.rate_limit_write)
def upload_cover(
    request: Request,
    book_id: int,
    db: DbSession,
    current_user: ActiveUser,
    cover: UploadFile = File(..., description="Image file"),
) -> CoverUploadResponse:
    # One byte past the limit is enough for the size check to reject it
    image_bytes = cover.file.read(get_settings().max_cover_size_bytes + 1)
    url = catalog.upload_cover(
        db,
        current_user,
        book_id,
        image_bytes,
        cover.content_type,
        filename=cover.filename or "cover",
    )
    return CoverUploadResponse(book_id=book_id, cover_image=url)


@router.post(
    "/{book_id}/rating/recalculate",
    response_model=BookRatingStats,
    summary="Recalculate a book's rating",
    description="Rebuild average_rating and total_reviews from the reviews. Requires the admin role.",
)
@limiter.limit(settings.rate_limit_write)
def recalculate_rating(
    request: Request,
    book_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> BookRatingStats:
    book = catalog.recalculate_rating(db, current_user, book_id)
    return BookRatingStats(
        book_id=book.id,
        average_rating=book.average_rating,
        total_reviews=book.total_reviews,
        rating=book.rating,
    )
