"""
API Routers Package

Router Structure:
- books.py: /api/v1/books/* catalog endpoints
- reviews.py: /api/v1/books/{id}/reviews, /api/v1/reviews/*, /api/v1/users/*/reviews
- auth.py: /api/v1/auth/* endpoints (registration, login, current user)

Each router is imported and registered in main.py.
"""

from bookreview.routers.auth import router as auth_router
from bookreview.routers.books import router as books_router
from bookreview.routers.reviews import router as reviews_router

__all__ = [
    "auth_router",
    "books_router",
    "reviews_router",
]
