"""
Catalog Service

Book CRUD, search, suggestions and cover uploads.

Writes require the admin role. Rating aggregates are never set here:
they belong to bookreview.services.ratings.

Deleting a book removes its reviews first (bulk delete through the review
service) and then the book row, in one transaction.
"""

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from bookreview.config import get_settings
from bookreview.models import Book, Review, User
from bookreview.schemas.book import BookCreate, BookUpdate
from bookreview.services import images, ratings, reviews
from bookreview.services.cache import invalidate_book_cache
from bookreview.services.exceptions import (
    ForbiddenError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

BOOK_SORT_FIELDS = {
    "created_at": Book.created_at,
    "title": Book.title,
    "author": Book.author,
    "published_year": Book.published_year,
    "average_rating": Book.average_rating,
    "total_reviews": Book.total_reviews,
}

ALLOWED_COVER_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


def _contains_pattern(text: str) -> str:
    """LIKE pattern matching text anywhere, with its own wildcards escaped."""
    escaped = text.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def require_admin(user: User, action: str) -> None:
    """
    Raise ForbiddenError unless the user has the admin role.

    Args:
        user: Authenticated user
        action: Verb used in the log line and error message
    """
    if not user.is_admin:
        logger.warning(f"User {user.id} without admin role tried to {action} a book")
        raise ForbiddenError("Admin privileges required")


# =============================================================================
# Reads
# =============================================================================


def get_book(db: Session, book_id: int) -> Book:
    """
    Get a book by ID.

    Raises:
        NotFoundError: If the book does not exist
    """
    book = db.get(Book, book_id)
    if book is None:
        raise NotFoundError(f"Book with id {book_id} not found")
    return book


def get_book_with_reviews(db: Session, book_id: int) -> tuple[Book, list[Review]]:
    """
    Get a book together with all of its reviews, newest first.

    Raises:
        NotFoundError: If the book does not exist
    """
    book = get_book(db, book_id)
    return book, reviews.list_all_reviews_for_book(db, book_id)


def list_books(
    db: Session,
    search: str | None = None,
    skip: int = 0,
    limit: int = 10,
    sort: str = "created_at",
    order: str = "desc",
) -> tuple[list[Book], int]:
    """
    List books with optional search, pagination and sorting.

    search matches title, author or description, case-insensitively.

    Returns:
        (books on the requested page, total number of matching books)

    Raises:
        ValidationError: If the sort field is not supported
    """
    column = BOOK_SORT_FIELDS.get(sort)
    if column is None:
        raise ValidationError(
            f"Cannot sort books by '{sort}'. "
            f"Use one of: {', '.join(sorted(BOOK_SORT_FIELDS))}"
        )
    ordering = column.asc() if order == "asc" else column.desc()

    stmt = select(Book)
    if search:
        term = _contains_pattern(search)
        stmt = stmt.where(
            or_(
                func.lower(Book.title).like(term, escape="\\"),
                func.lower(Book.author).like(term, escape="\\"),
                func.lower(Book.description).like(term, escape="\\"),
            )
        )

    total = db.execute(
        select(func.count()).select_from(stmt.subquery())
    ).scalar() or 0

    books = db.execute(
        stmt.order_by(ordering, Book.id.desc()).offset(skip).limit(limit)
    ).scalars().all()

    return list(books), total


def suggest_books(db: Session, q: str, limit: int = 6) -> list[Book]:
    """Books whose title or author contains q, for search-as-you-type."""
    if not q:
        return []

    term = _contains_pattern(q)
    stmt = (
        select(Book)
        .where(
            or_(
                func.lower(Book.title).like(term, escape="\\"),
                func.lower(Book.author).like(term, escape="\\"),
            )
        )
        .order_by(Book.title)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


# =============================================================================
# Writes
# =============================================================================


def create_book(db: Session, user: User, data: BookCreate) -> Book:
    """
    Create a catalog entry.

    A supplied image_url becomes the cover image.

    Raises:
        ForbiddenError: If the user is not an admin
    """
    require_admin(user, "create")

    book = Book(
        title=data.title,
        author=data.author,
        description=data.description,
        genre=data.genre,
        published_year=data.published_year,
        cover_image=str(data.image_url) if data.image_url else "",
    )
    db.add(book)
    db.commit()
    db.refresh(book)

    logger.info(f"Book {book.id} created by user {user.id}: '{book.title}'")
    invalidate_book_cache()
    return book


def update_book(db: Session, user: User, book_id: int, data: BookUpdate) -> Book:
    """
    Update catalog fields of a book. Only provided fields change.

    Raises:
        ForbiddenError: If the user is not an admin
        NotFoundError: If the book does not exist
    """
    require_admin(user, "update")
    book = get_book(db, book_id)

    update_data = data.model_dump(exclude_unset=True)

    if "image_url" in update_data:
        image_url = update_data.pop("image_url")
        if image_url is not None:
            book.cover_image = str(image_url)

    for field, value in update_data.items():
        if value is None and field in ("title", "author", "description"):
            continue
        setattr(book, field, value)

    db.commit()
    db.refresh(book)

    logger.info(f"Book {book_id} updated by user {user.id}: {sorted(data.model_fields_set)}")
    invalidate_book_cache(book_id)
    return book


def delete_book(db: Session, user: User, book_id: int) -> int:
    """
    Delete a book and every review of it.

    Reviews are bulk deleted before the book row, and both deletes are
    committed together.

    Returns:
        Number of reviews removed with the book

    Raises:
        ForbiddenError: If the user is not an admin
        NotFoundError: If the book does not exist
    """
    require_admin(user, "delete")
    book = get_book(db, book_id)

    removed = reviews.delete_reviews_for_book(db, book_id)
    db.delete(book)
    db.commit()

    logger.info(f"Book {book_id} deleted by user {user.id} with {removed} reviews")
    invalidate_book_cache(book_id)
    return removed


def upload_cover(
    db: Session,
    user: User,
    book_id: int,
    image_bytes: bytes,
    content_type: str | None,
    filename: str = "cover",
) -> str:
    """
    Upload a cover image to the image host and store its URL on the book.

    If the image host fails, the book is left as it was and the error is
    reported; the upload can be retried.

    Returns:
        Public URL of the new cover

    Raises:
        ForbiddenError: If the user is not an admin
        ValidationError: If no image data or a non-image type was sent
        NotFoundError: If the book does not exist
        UnavailableError: If the image host fails
    """
    require_admin(user, "upload a cover for")

    if not image_bytes:
        raise ValidationError("No image file provided")
    if content_type not in ALLOWED_COVER_TYPES:
        raise ValidationError(
            f"Unsupported image type '{content_type}'. "
            f"Use one of: {', '.join(sorted(ALLOWED_COVER_TYPES))}"
        )
    max_size = get_settings().max_cover_size_bytes
    if len(image_bytes) > max_size:
        raise ValidationError(f"Image is larger than {max_size} bytes")

    book = get_book(db, book_id)

    try:
        url = images.upload_image(image_bytes, filename=filename)
    except UnavailableError as e:
        logger.warning(f"Cover upload for book {book_id} failed: {e.detail}")
        raise

    book.cover_image = url
    db.commit()

    logger.info(f"Cover for book {book_id} set by user {user.id}")
    invalidate_book_cache(book_id)
    return url


def recalculate_rating(db: Session, user: User, book_id: int) -> Book:
    """
    Rebuild one book's rating aggregates from its reviews.

    Raises:
        ForbiddenError: If the user is not an admin
        NotFoundError: If the book does not exist
    """
    require_admin(user, "recalculate the rating of")
    book = get_book(db, book_id)

    ratings.recompute_from_scratch(db, book_id)
    db.commit()
    db.refresh(book)

    logger.info(
        f"Rating of book {book_id} recalculated by user {user.id}: "
        f"{book.average_rating} over {book.total_reviews} reviews"
    )
    invalidate_book_cache(book_id)
    return book
