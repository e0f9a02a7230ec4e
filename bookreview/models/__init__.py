"""
SQLAlchemy Models Package

Model Relationships:
- Review -> Book: Many-to-One (a review references the book it rates)
- Review -> User: Many-to-One (a review references its author)

Books and users do not hold review collections; reviews are queried by
foreign key when needed.

Import all models here to:
1. Make them available as: from bookreview.models import Book, Review, User
2. Ensure Alembic discovers them for migrations
"""

from bookreview.models.user import User, UserRole
from bookreview.models.book import Book
from bookreview.models.review import Review

__all__ = [
    "User",
    "UserRole",
    "Book",
    "Review",
]
