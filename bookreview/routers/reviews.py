"""
Reviews Router

Review endpoints under books, reviews and users:
- GET/POST /books/{book_id}/reviews
- GET/PUT/DELETE /reviews/{review_id}
- POST /reviews/{review_id}/helpful
- GET /users/me/reviews and /users/{user_id}/reviews

Writing, editing and deleting a review also updates the book's
average_rating and total_reviews in the same transaction
(see bookreview.services.reviews).
"""

import math

from fastapi import APIRouter, Request, status

from bookreview.config import get_settings
from bookreview.dependencies import ActiveUser, DbSession, Pagination, ReviewOrdering
from bookreview.schemas import (
    HelpfulResponse,
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
)
from bookreview.services import reviews as review_service
from bookreview.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    tags=["Reviews"],
    responses={
        404: {"description": "Review or book not found"},
    },
)


def _page(items, total: int, pagination) -> ReviewListResponse:
    pages = math.ceil(total / pagination.per_page) if total > 0 else 0
    return ReviewListResponse(
        items=[ReviewResponse.model_validate(r) for r in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


# =============================================================================
# Book Review Endpoints
# =============================================================================


@router.get(
    "/books/{book_id}/reviews",
    response_model=ReviewListResponse,
    summary="List reviews for a book",
    description="Paginated reviews of a book, newest first by default.",
)
@limiter.limit(settings.rate_limit_default)
def list_book_reviews(
    request: Request,
    book_id: int,
    db: DbSession,
    pagination: Pagination,
    ordering: ReviewOrdering,
) -> ReviewListResponse:
    items, total = review_service.list_reviews_for_book(
        db,
        book_id,
        skip=pagination.skip,
        limit=pagination.per_page,
        sort=ordering.sort,
        order=ordering.order,
    )
    return _page(items, total, pagination)


@router.post(
    "/books/{book_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a review",
    description="Review a book. Requires authentication. One review per book per user.",
    responses={409: {"description": "User already reviewed this book"}},
)
@limiter.limit(settings.rate_limit_write)
def create_review(
    request: Request,
    book_id: int,
    review_data: ReviewCreate,
    db: DbSession,
    current_user: ActiveUser,
) -> ReviewResponse:
    """
    Create a review for a book.

    The book's average_rating and total_reviews are updated with the
    new rating before the response is returned.
    """
    review = review_service.create_review(db, book_id, current_user, review_data)
    return ReviewResponse.model_validate(review)


# =============================================================================
# Single Review Endpoints
# =============================================================================


@router.get(
    "/reviews/{review_id}",
    response_model=ReviewResponse,
    summary="Get a review by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_review(
    request: Request,
    review_id: int,
    db: DbSession,
) -> ReviewResponse:
    return ReviewResponse.model_validate(review_service.get_review(db, review_id))


@router.put(
    "/reviews/{review_id}",
    response_model=ReviewResponse,
    summary="Update a review",
    description="Update your own review's rating and/or comment.",
    responses={403: {"description": "Not the author of the review"}},
)
@limiter.limit(settings.rate_limit_write)
def update_review(
    request: Request,
    review_id: int,
    review_data: ReviewUpdate,
    db: DbSession,
    current_user: ActiveUser,
) -> ReviewResponse:
    review = review_service.update_review(db, review_id, current_user, review_data)
    return ReviewResponse.model_validate(review)


@router.delete(
    "/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a review",
    description="Delete your own review. The book's rating is updated.",
    responses={403: {"description": "Not the author of the review"}},
)
@limiter.limit(settings.rate_limit_write)
def delete_review(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> None:
    review_service.delete_review(db, review_id, current_user)


@router.post(
    "/reviews/{review_id}/helpful",
    response_model=HelpfulResponse,
    summary="Mark a review helpful",
    description="Add one to the review's helpful counter. Requires authentication.",
)
@limiter.limit(settings.rate_limit_write)
def mark_helpful(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> HelpfulResponse:
    helpful = review_service.mark_helpful(db, review_id)
    return HelpfulResponse(review_id=review_id, helpful=helpful)


# =============================================================================
# User Review Endpoints
# =============================================================================
# /users/me/reviews must be registered before /users/{user_id}/reviews


@router.get(
    "/users/me/reviews",
    response_model=ReviewListResponse,
    summary="List my reviews",
)
@limiter.limit(settings.rate_limit_default)
def list_my_reviews(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    current_user: ActiveUser,
) -> ReviewListResponse:
    items, total = review_service.list_reviews_for_user(
        db, current_user.id, skip=pagination.skip, limit=pagination.per_page
    )
    return _page(items, total, pagination)


@router.get(
    "/users/{user_id}/reviews",
    response_model=ReviewListResponse,
    summary="List a user's reviews",
    description="Paginated reviews written by a user, newest first.",
)
@limiter.limit(settings.rate_limit_default)
def list_user_reviews(
    request: Request,
    user_id: int,
    db: DbSession,
    pagination: Pagination,
) -> ReviewListResponse:
    items, total = review_service.list_reviews_for_user(
        db, user_id, skip=pagination.skip, limit=pagination.per_page
    )
    return _page(items, total, pagination)
