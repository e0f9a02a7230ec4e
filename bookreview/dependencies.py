"""
FastAPI Dependencies Module

Reusable components injected into route handlers with Depends():
- Database sessions (per-request)
- Pagination and list parameters
- Authentication (current user from a JWT bearer token)

Role checks are not dependencies: the catalog service enforces the admin
role itself so the rule holds for every caller, not only HTTP routes.
"""

from typing import TYPE_CHECKING, Annotated, Literal

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from bookreview.database import get_db

if TYPE_CHECKING:
    from bookreview.models.user import User

# Instead of writing:
#   def get_books(db: Session = Depends(get_db)):
# write:
#   def get_books(db: DbSession):
DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
class PaginationParams:
    """
    Common pagination parameters for list endpoints.

    - page: Which page to return (1-indexed)
    - per_page: How many items per page
    - skip: Calculated offset for the database query

    Usage in route:
        @router.get("/books/")
        def get_books(db: DbSession, pagination: Pagination):
            ...offset(pagination.skip).limit(pagination.per_page)
    """

    def __init__(
        self,
        page: int = Query(
            default=1,
            ge=1,
            description="Page number (1-indexed)",
            examples=[1, 2, 3],
        ),
        per_page: int = Query(
            default=10,
            ge=1,
            le=100,
            description="Number of items per page (max 100)",
            examples=[10, 25, 50],
        ),
    ) -> None:
        self.page = page
        self.per_page = per_page

    @property
    def skip(self) -> int:
        """Page 1 skips 0 items, page 2 skips per_page items, and so on."""
        return (self.page - 1) * self.per_page


Pagination = Annotated[PaginationParams, Depends()]


# =============================================================================
# List Parameters
# =============================================================================
class BookListParams:
    """
    Search and ordering parameters for the book list.

    Usage:
        GET /api/v1/books/?search=orwell&sort=average_rating&order=desc
    """

    def __init__(
        self,
        search: str | None = Query(
            default=None,
            min_length=1,
            max_length=100,
            description="Case-insensitive match on title, author or description",
            examples=["orwell", "dystopian"],
        ),
        sort: str = Query(
            default="created_at",
            description=(
                "Sort field: created_at, title, author, published_year, "
                "average_rating or total_reviews"
            ),
            examples=["average_rating"],
        ),
        order: Literal["asc", "desc"] = Query(
            default="desc",
            description="Sort direction",
        ),
    ) -> None:
        self.search = search.strip() if search else None
        self.sort = sort
        self.order = order


BookFilters = Annotated[BookListParams, Depends()]


class ReviewListParams:
    """Ordering parameters for a book's reviews."""

    def __init__(
        self,
        sort: str = Query(
            default="created_at",
            description="Sort field: created_at, updated_at, rating or helpful",
            examples=["helpful"],
        ),
        order: Literal["asc", "desc"] = Query(
            default="desc",
            description="Sort direction",
        ),
    ) -> None:
        self.sort = sort
        self.order = order


ReviewOrdering = Annotated[ReviewListParams, Depends()]


# =============================================================================
# JWT Authentication
# =============================================================================
# Extracts the token from "Authorization: Bearer <token>" and returns 401
# when the header is missing.
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login",
    auto_error=True,
)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
):
    """
    Extract and validate the current user from a JWT token.

    1. Decodes and validates the access token
    2. Reads the user id from its "sub" claim
    3. Looks up the user in the database

    Raises:
        HTTPException: 401 if the token is invalid or the user is unknown
    """
    from bookreview.models.user import User
    from bookreview.services.security import verify_token_type

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = verify_token_type(token, "access")
    if payload is None:
        raise credentials_exception

    user_id = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    try:
        user_pk = int(user_id)
    except (TypeError, ValueError):
        raise credentials_exception

    user = db.execute(select(User).where(User.id == user_pk)).scalar_one_or_none()
    if user is None:
        raise credentials_exception

    return user


def get_current_active_user(
    current_user=Depends(get_current_user),
):
    """
    Verify the current user is active.

    Raises:
        HTTPException: 403 if the account is inactive
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return current_user


CurrentUser = Annotated["User", Depends(get_current_user)]
ActiveUser = Annotated["User", Depends(get_current_active_user)]
