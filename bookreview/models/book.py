"""
Book Model

The catalog entry that readers review.

The two aggregate columns, average_rating and total_reviews, are a
denormalized summary of the book's reviews. They are written only by
bookreview.services.ratings; catalog edits never touch them.

Reviews are not mapped as a collection on Book. A review points at its
book, and the review set is queried on demand (listing, aggregation,
cascade delete).
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from bookreview.database import Base


class Book(Base):
    """
    Book model representing a catalog entry.

    Table: books

    Fields:
    - title: Book title (required, max 200)
    - author: Author display name (required, max 100)
    - description: Book summary (required, max 2000)
    - genre: Optional genre label (max 50)
    - published_year: Optional year of publication
    - cover_image: Public URL of the cover, empty when none
    - average_rating: Mean review rating rounded to 2 decimals, 0 without reviews
    - total_reviews: Number of reviews

    Example:
        book = Book(
            title="1984",
            author="George Orwell",
            description="A dystopian novel set in a totalitarian society.",
            genre="Dystopian",
            published_year=1949,
        )
    """

    __tablename__ = "books"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Catalog Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(200),
        index=True,
        nullable=False,
        comment="Book title"
    )

    author: Mapped[str] = mapped_column(
        String(100),
        index=True,
        nullable=False,
        comment="Author display name"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Book description or summary"
    )

    genre: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="Genre label"
    )

    published_year: Mapped[int | None] = mapped_column(
        Integer,
        index=True,
        nullable=True,
        comment="Year of publication"
    )

    cover_image: Mapped[str] = mapped_column(
        Text,
        default="",
        server_default="",
        nullable=False,
        comment="Public URL of the cover image"
    )

    # -------------------------------------------------------------------------
    # Rating Aggregates
    # -------------------------------------------------------------------------
    average_rating: Mapped[float] = mapped_column(
        Float,
        default=0.0,
        server_default="0",
        index=True,
        nullable=False,
        comment="Mean review rating (0-5), 0 when there are no reviews"
    )

    total_reviews: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        index=True,
        nullable=False,
        comment="Number of reviews for this book"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "average_rating >= 0 AND average_rating <= 5",
            name="ck_book_average_rating_range",
        ),
        CheckConstraint("total_reviews >= 0", name="ck_book_total_reviews_positive"),
    )

    @property
    def rating(self) -> str:
        """Average rating for display, one decimal place, ties rounded up."""
        average = Decimal(str(self.average_rating or 0.0))
        return str(average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}', author='{self.author}')"
