"""
Review Lifecycle Service

Create, update, delete and "helpful" operations for reviews, plus the
read paths used by the routers.

Every mutation follows the same shape:
1. Load (locking the row for update and delete) and check existence,
   ownership and uniqueness
2. Apply the review change as a single statement
3. Call the matching rating aggregator operation
4. Commit once, so the review change and the aggregate change land together

Ownership is strict: only the author of a review may update or delete it,
whatever their role. Marking a review helpful has no ownership check and
is not deduplicated per user; each call adds exactly one.
"""

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from bookreview.models import Book, Review, User
from bookreview.schemas.review import ReviewCreate, ReviewUpdate
from bookreview.services import ratings
from bookreview.services.cache import invalidate_book_cache
from bookreview.services.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DUPLICATE_REVIEW_MESSAGE = "You have already reviewed this book"

# Rating reads that lose a race with another write are retried this often
UPDATE_ATTEMPTS = 3

REVIEW_SORT_FIELDS = {
    "created_at": Review.created_at,
    "updated_at": Review.updated_at,
    "rating": Review.rating,
    "helpful": Review.helpful,
}


# =============================================================================
# Queries
# =============================================================================


def _review_query():
    """Review select with the author and book display data loaded."""
    return select(Review).options(selectinload(Review.user), selectinload(Review.book))


def get_review(db: Session, review_id: int) -> Review:
    """
    Get a review by ID with user and book loaded.

    Raises:
        NotFoundError: If the review does not exist
    """
    review = db.execute(
        _review_query().where(Review.id == review_id)
    ).scalar_one_or_none()

    if review is None:
        raise NotFoundError(f"Review with id {review_id} not found")
    return review


def list_reviews_for_book(
    db: Session,
    book_id: int,
    skip: int = 0,
    limit: int = 10,
    sort: str = "created_at",
    order: str = "desc",
) -> tuple[list[Review], int]:
    """
    List a book's reviews, newest first by default.

    Returns:
        (reviews on the requested page, total number of reviews)

    Raises:
        NotFoundError: If the book does not exist
        ValidationError: If the sort field is not supported
    """
    if db.get(Book, book_id) is None:
        raise NotFoundError(f"Book with id {book_id} not found")

    column = REVIEW_SORT_FIELDS.get(sort)
    if column is None:
        raise ValidationError(
            f"Cannot sort reviews by '{sort}'. "
            f"Use one of: {', '.join(sorted(REVIEW_SORT_FIELDS))}"
        )
    ordering = column.asc() if order == "asc" else column.desc()

    total = db.execute(
        select(func.count(Review.id)).where(Review.book_id == book_id)
    ).scalar() or 0

    reviews = db.execute(
        _review_query()
        .where(Review.book_id == book_id)
        .order_by(ordering, Review.id.desc())
        .offset(skip)
        .limit(limit)
    ).scalars().all()

    return list(reviews), total


def list_reviews_for_user(
    db: Session,
    user_id: int,
    skip: int = 0,
    limit: int = 10,
) -> tuple[list[Review], int]:
    """
    List reviews written by a user, newest first.

    Raises:
        NotFoundError: If the user does not exist
    """
    if db.get(User, user_id) is None:
        raise NotFoundError(f"User with id {user_id} not found")

    total = db.execute(
        select(func.count(Review.id)).where(Review.user_id == user_id)
    ).scalar() or 0

    reviews = db.execute(
        _review_query()
        .where(Review.user_id == user_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(skip)
        .limit(limit)
    ).scalars().all()

    return list(reviews), total


def list_all_reviews_for_book(db: Session, book_id: int) -> list[Review]:
    """Every review of a book, newest first, without pagination."""
    reviews = db.execute(
        _review_query()
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    ).scalars().all()
    return list(reviews)


# =============================================================================
# Mutations
# =============================================================================


def _check_owner(review: Review, user: User, action: str) -> None:
    if review.user_id != user.id:
        logger.warning(
            f"User {user.id} tried to {action} review {review.id} "
            f"owned by user {review.user_id}"
        )
        raise ForbiddenError(f"Not authorized to {action} this review")


def _lock_review(db: Session, review_id: int) -> Review:
    """
    Load a review for a write, locking its row until the transaction ends.

    Raises:
        NotFoundError: If the review does not exist
    """
    review = db.execute(
        select(Review)
        .where(Review.id == review_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()

    if review is None:
        raise NotFoundError(f"Review with id {review_id} not found")
    return review


def _find_existing_review(db: Session, book_id: int, user_id: int) -> int | None:
    return db.execute(
        select(Review.id).where(
            Review.book_id == book_id,
            Review.user_id == user_id,
        )
    ).scalar_one_or_none()


def create_review(
    db: Session,
    book_id: int,
    user: User,
    data: ReviewCreate,
) -> Review:
    """
    Create a review and fold its rating into the book's aggregates.

    Uniqueness is checked up front for a clear error, and again by the
    uq_review_book_user constraint when the insert is flushed, which
    catches two concurrent first reviews by the same user.

    Args:
        db: Database session
        book_id: ID of the book being reviewed
        user: Authenticated author of the review
        data: Validated rating and comment

    Returns:
        The created review with user and book display data loaded

    Raises:
        NotFoundError: If the book does not exist
        ConflictError: If the user already reviewed this book
    """
    user_id = user.id

    if db.get(Book, book_id) is None:
        raise NotFoundError(f"Book with id {book_id} not found")

    if _find_existing_review(db, book_id, user_id) is not None:
        logger.info(f"Duplicate review rejected: user {user_id}, book {book_id}")
        raise ConflictError(DUPLICATE_REVIEW_MESSAGE)

    review = Review(
        book_id=book_id,
        user_id=user_id,
        rating=data.rating,
        comment=data.comment,
    )
    db.add(review)

    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.info(
            f"Duplicate review rejected by constraint: user {user_id}, book {book_id}"
        )
        raise ConflictError(DUPLICATE_REVIEW_MESSAGE)

    ratings.apply_insertion(db, book_id, data.rating)
    db.commit()

    logger.info(f"Review {review.id} created: user {user_id}, book {book_id}, rating {data.rating}")
    invalidate_book_cache(book_id)

    return get_review(db, review.id)


def update_review(
    db: Session,
    review_id: int,
    user: User,
    data: ReviewUpdate,
) -> Review:
    """
    Update the rating and/or comment of the caller's own review.

    The review row is locked while it is read, and the write only applies
    if the rating is still the one that was read. The book's average is
    adjusted from that pair, and only when the rating actually changed.

    Raises:
        NotFoundError: If the review does not exist
        ForbiddenError: If the caller did not write the review
        ValidationError: If neither rating nor comment was supplied
        ConflictError: If the review changed between the read and the write
    """
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    for attempt in range(1, UPDATE_ATTEMPTS + 1):
        review = _lock_review(db, review_id)
        _check_owner(review, user, "update")

        if not changes:
            raise ValidationError("Provide a rating or a comment to update")

        old_rating = review.rating
        row = db.execute(
            update(Review)
            .where(Review.id == review_id, Review.rating == old_rating)
            .values(**changes)
            .returning(Review.rating, Review.book_id)
            .execution_options(synchronize_session=False)
        ).first()

        if row is not None:
            break
        logger.warning(
            f"Review {review_id} changed during update attempt {attempt}/{UPDATE_ATTEMPTS}"
        )
    else:
        raise ConflictError("Review was modified by another request, please retry")

    if row.rating != old_rating:
        ratings.apply_rating_change(db, row.book_id, old_rating, row.rating)

    db.commit()

    logger.info(f"Review {review_id} updated by user {user.id}: {sorted(changes)}")
    invalidate_book_cache(row.book_id)

    return get_review(db, review_id)


def delete_review(db: Session, review_id: int, user: User) -> None:
    """
    Delete the caller's own review and remove its rating from the book.

    The rating taken out of the aggregates is the one returned by the
    DELETE itself, so a review removed twice is only counted out once.

    Raises:
        NotFoundError: If the review does not exist
        ForbiddenError: If the caller did not write the review
    """
    review = _lock_review(db, review_id)
    _check_owner(review, user, "delete")

    row = db.execute(
        delete(Review)
        .where(Review.id == review_id)
        .returning(Review.rating, Review.book_id)
        .execution_options(synchronize_session=False)
    ).first()

    if row is None:
        raise NotFoundError(f"Review with id {review_id} not found")

    ratings.apply_deletion(db, row.book_id, row.rating)
    db.commit()

    logger.info(f"Review {review_id} deleted by user {user.id}")
    invalidate_book_cache(row.book_id)


def mark_helpful(db: Session, review_id: int) -> int:
    """
    Add one to a review's helpful counter.

    The increment is a single UPDATE (helpful = helpful + 1), so
    concurrent marks are never lost.

    Returns:
        The counter value after this increment

    Raises:
        NotFoundError: If the review does not exist
    """
    result = db.execute(
        update(Review)
        .where(Review.id == review_id)
        .values(helpful=Review.helpful + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError(f"Review with id {review_id} not found")

    row = db.execute(
        select(Review.helpful, Review.book_id).where(Review.id == review_id)
    ).one()
    db.commit()

    logger.debug(f"Review {review_id} marked helpful ({row.helpful})")
    invalidate_book_cache(row.book_id)
    return row.helpful


def delete_reviews_for_book(db: Session, book_id: int) -> int:
    """
    Bulk delete every review of a book.

    Part of the book deletion cascade: the book row is removed right after
    in the same transaction, so no aggregate update is made. Does not commit.

    Returns:
        Number of reviews deleted
    """
    result = db.execute(
        delete(Review)
        .where(Review.book_id == book_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
