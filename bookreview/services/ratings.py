"""
Ratings Service

Maintains the denormalized rating fields on the Book model:
- average_rating: mean of the book's review ratings, 2 decimal places
- total_reviews: number of reviews

These fields are updated whenever reviews are created, updated, or deleted,
so book listings never need COUNT/AVG subqueries.

Concurrency
===========
Each incremental operation is a single UPDATE statement whose SET clause is
computed from the row's own current values:

    UPDATE books
    SET average_rating = ROUND((average_rating * total_reviews + :rating)
                               / (total_reviews + 1), 2),
        total_reviews = total_reviews + 1
    WHERE id = :book_id

The database evaluates it under the row lock, so two concurrent review
mutations on the same book are applied one after the other instead of both
reading the same (average, total) pair and the second write discarding the
first. No Book object is loaded and written back.

Rounding
========
Averages are rounded to 2 decimals when written. Repeated incremental
updates start from the rounded value, so the stored average can drift a
little from the exact mean. recompute_from_scratch() rebuilds both fields
from the reviews table and removes any drift; scripts/recalculate_ratings.py
runs it for every book.

None of these functions commit. They run inside the caller's transaction
so a review mutation and its aggregate update become visible together.
"""

import logging

from sqlalchemy import Float, Numeric, case, cast, func, select, update
from sqlalchemy.orm import Session

from bookreview.models import Book, Review

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


# =============================================================================
# SQL Expression Helpers
# =============================================================================


def _stored_average(expr):
    """
    Round an average expression to 2 decimals and keep it within 0-5.

    ROUND(numeric, int) is portable across PostgreSQL and SQLite, so the
    value is cast to NUMERIC before rounding and back to FLOAT afterwards.
    """
    rounded = cast(func.round(cast(expr, Numeric), 2), Float)
    return case(
        (rounded > MAX_RATING, float(MAX_RATING)),
        (rounded < 0, 0.0),
        else_=rounded,
    )


def _execute(db: Session, stmt) -> bool:
    result = db.execute(stmt.execution_options(synchronize_session=False))
    return result.rowcount > 0


# =============================================================================
# Incremental Updates
# =============================================================================


def apply_insertion(db: Session, book_id: int, rating: int) -> bool:
    """
    Fold a newly created review's rating into the book's aggregates.

    new_average = (average * total + rating) / (total + 1)
    new_total = total + 1

    Args:
        db: Database session
        book_id: ID of the reviewed book
        rating: Rating of the new review

    Returns:
        True if the book row was updated, False if the book does not exist
    """
    avg = Book.average_rating
    total = Book.total_reviews

    stmt = (
        update(Book)
        .where(Book.id == book_id)
        .values(
            average_rating=_stored_average((avg * total + rating) / (total + 1)),
            total_reviews=total + 1,
        )
    )

    applied = _execute(db, stmt)
    if not applied:
        logger.warning(f"Rating insertion skipped: book {book_id} not found")
    return applied


def apply_rating_change(
    db: Session,
    book_id: int,
    old_rating: int,
    new_rating: int,
) -> bool:
    """
    Replace one review's rating inside the book's average.

    new_average = (average * total - old_rating + new_rating) / total
    total is unchanged.

    Does nothing when the rating did not change or when the book has no
    counted reviews.

    Returns:
        True if the book row was updated
    """
    if old_rating == new_rating:
        return False

    avg = Book.average_rating
    total = Book.total_reviews

    stmt = (
        update(Book)
        .where(Book.id == book_id, total > 0)
        .values(
            average_rating=_stored_average(
                (avg * total - old_rating + new_rating) / total
            ),
        )
    )

    applied = _execute(db, stmt)
    if not applied:
        logger.warning(
            f"Rating change skipped: book {book_id} not found or has no reviews"
        )
    return applied


def apply_deletion(db: Session, book_id: int, removed_rating: int) -> bool:
    """
    Remove a deleted review's rating from the book's aggregates.

    If total > 1:
        new_average = (average * total - removed_rating) / (total - 1)
        new_total = total - 1
    Otherwise both fields are reset to 0.

    Returns:
        True if the book row was updated
    """
    avg = Book.average_rating
    total = Book.total_reviews

    stmt = (
        update(Book)
        .where(Book.id == book_id)
        .values(
            average_rating=case(
                (total > 1, _stored_average((avg * total - removed_rating) / (total - 1))),
                else_=0.0,
            ),
            total_reviews=case(
                (total > 1, total - 1),
                else_=0,
            ),
        )
    )

    applied = _execute(db, stmt)
    if not applied:
        logger.warning(f"Rating deletion skipped: book {book_id} not found")
    return applied


# =============================================================================
# Reconciliation
# =============================================================================


def recompute_from_scratch(db: Session, book_id: int) -> tuple[float, int] | None:
    """
    Rebuild a book's aggregates from its reviews.

    Runs as one UPDATE with the average and count computed by subqueries,
    so it is as safe against concurrent review mutations as the
    incremental operations.

    Args:
        db: Database session
        book_id: ID of the book to reconcile

    Returns:
        The stored (average_rating, total_reviews) pair, or None if the
        book does not exist
    """
    count_subquery = (
        select(func.count(Review.id))
        .where(Review.book_id == book_id)
        .scalar_subquery()
    )
    avg_subquery = (
        select(func.avg(Review.rating))
        .where(Review.book_id == book_id)
        .scalar_subquery()
    )

    stmt = (
        update(Book)
        .where(Book.id == book_id)
        .values(
            average_rating=_stored_average(func.coalesce(avg_subquery, 0)),
            total_reviews=count_subquery,
        )
    )

    if not _execute(db, stmt):
        logger.warning(f"Rating recompute skipped: book {book_id} not found")
        return None

    row = db.execute(
        select(Book.average_rating, Book.total_reviews).where(Book.id == book_id)
    ).one()
    logger.debug(
        f"Recomputed rating for book {book_id}: "
        f"average={row.average_rating}, total={row.total_reviews}"
    )
    return row.average_rating, row.total_reviews


def recompute_all(db: Session) -> int:
    """
    Rebuild rating aggregates for every book and commit.

    Useful after data migrations, or periodically to clear rounding drift.

    Args:
        db: Database session

    Returns:
        Number of books processed
    """
    book_ids = db.execute(select(Book.id)).scalars().all()

    for book_id in book_ids:
        recompute_from_scratch(db, book_id)

    db.commit()
    logger.info(f"Recomputed ratings for {len(book_ids)} books")
    return len(book_ids)
