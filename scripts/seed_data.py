#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample data for development.

USAGE:
    python scripts/seed_data.py

    # Admin credentials can be overridden:
    ADMIN_EMAIL=me@example.com ADMIN_PASSWORD='Secret123' python scripts/seed_data.py

This script:
1. Creates tables if they do not exist
2. Clears existing users, books and reviews
3. Creates an admin, a reader and sample books
4. Adds sample reviews and rebuilds every book's rating aggregates
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from bookreview.database import SessionLocal, create_tables
from bookreview.models import Book, Review, User, UserRole
from bookreview.services.ratings import recompute_all
from bookreview.services.security import hash_password


def clear_data(db: Session) -> None:
    """Clear all existing data from the database."""
    print("Clearing existing data...")
    db.execute(delete(Review))
    db.execute(delete(Book))
    db.execute(delete(User))
    db.commit()
    print("Data cleared.")


def create_users(db: Session) -> dict[str, User]:
    """Create the admin account and one reader."""
    print("Creating users...")
    admin_email = os.environ.get("ADMIN_EMAIL", "admin@example.com").lower()
    admin_password = os.environ.get("ADMIN_PASSWORD", "Admin@123")

    users = {
        "admin": User(
            email=admin_email,
            name="Admin",
            hashed_password=hash_password(admin_password),
            role=UserRole.ADMIN.value,
        ),
        "reader": User(
            email="reader@example.com",
            name="Sample Reader",
            hashed_password=hash_password("Reader123"),
            role=UserRole.USER.value,
        ),
    }
    db.add_all(users.values())
    db.commit()

    print(f"Created admin: {admin_email}")
    return users


def create_books(db: Session) -> list[Book]:
    """Create sample books with no reviews."""
    print("Creating books...")
    books_data = [
        {
            "title": "To Kill a Mockingbird",
            "author": "Harper Lee",
            "description": "A novel about the serious issues of rape and racial inequality.",
            "genre": "Classic Literature",
            "published_year": 1960,
            "cover_image": "https://pictures.abebooks.com/inventory/22883965402.jpg",
        },
        {
            "title": "1984",
            "author": "George Orwell",
            "description": "A dystopian novel set in a totalitarian society ruled by Big Brother.",
            "genre": "Dystopian",
            "published_year": 1949,
            "cover_image": "https://m.media-amazon.com/images/I/61NAx5pd6XL.jpg",
        },
        {
            "title": "The Hobbit",
            "author": "J.R.R. Tolkien",
            "description": "Bilbo Baggins embarks on an unexpected journey.",
            "genre": "Fantasy",
            "published_year": 1937,
        },
    ]

    books = [Book(**data) for data in books_data]
    db.add_all(books)
    db.commit()
    for book in books:
        db.refresh(book)

    print(f"Created {len(books)} books.")
    return books


def create_reviews(db: Session, users: dict[str, User], books: list[Book]) -> int:
    """Add sample reviews. Aggregates are rebuilt afterwards by recompute_all."""
    print("Creating reviews...")
    reviews = [
        Review(book_id=books[0].id, user_id=users["admin"].id, rating=5,
               comment="An excellent and moving novel."),
        Review(book_id=books[0].id, user_id=users["reader"].id, rating=4,
               comment="Still relevant decades later."),
        Review(book_id=books[1].id, user_id=users["reader"].id, rating=5,
               comment="Chilling and unforgettable."),
    ]
    db.add_all(reviews)
    db.commit()

    print(f"Created {len(reviews)} reviews.")
    return len(reviews)


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()
    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        users = create_users(db)
        books = create_books(db)
        review_count = create_reviews(db, users, books)
        recompute_all(db)

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Users: {len(users)}")
        print(f"  - Books: {len(books)}")
        print(f"  - Reviews: {review_count}")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
