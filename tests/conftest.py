"""
pytest Fixtures for Book Review API Tests

Shared fixtures used across all test files.

For database tests, we use:
- session scope for the engine (tables created once)
- function scope for sessions (each test runs inside a transaction that is
  rolled back afterwards)

Note: services commit through the session, which here only releases the
session's own transaction; the outer connection transaction is rolled back
when the test ends.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# Set environment variables BEFORE importing the app: no rate limiting,
# no Redis, and a test secret key
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bookreview.database import Base, get_db
from bookreview.main import app
from bookreview.models import Book, Review, User, UserRole
from bookreview.schemas.review import ReviewCreate
from bookreview.services import reviews as review_service
from bookreview.services.security import create_access_token, hash_password

TEST_PASSWORD = "TestPass123"


def get_auth_header(user: User) -> dict:
    """Create an Authorization header for a user."""
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# DATABASE FIXTURES
# =============================================================================
# SQLite in-memory keeps tests fast and self-contained. Rating arithmetic
# and constraints behave the same as on PostgreSQL.


@pytest.fixture(scope="session")
def engine():
    """
    Create a SQLite in-memory database engine.

    StaticPool keeps the single connection alive for the whole session;
    without it the in-memory database would disappear between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """Create a database session whose changes are rolled back after the test."""
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )

    connection = engine.connect()
    transaction = connection.begin()
    session = TestSessionLocal(bind=connection)

    yield session

    session.close()
    # A service that hit an IntegrityError has already rolled it back
    if transaction.is_active:
        transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Test client whose requests use the test database session."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# USER FIXTURES
# =============================================================================


def _make_user(db: Session, email: str, name: str, role: str = UserRole.USER.value) -> User:
    user = User(
        email=email,
        name=name,
        hashed_password=hash_password(TEST_PASSWORD),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """A regular reader."""
    return _make_user(db_session, "reader@example.com", "Test Reader")


@pytest.fixture
def second_user(db_session: Session) -> User:
    """Another regular reader."""
    return _make_user(db_session, "second@example.com", "Second Reader")


@pytest.fixture
def third_user(db_session: Session) -> User:
    return _make_user(db_session, "third@example.com", "Third Reader")


@pytest.fixture
def admin_user(db_session: Session) -> User:
    """A user with the admin role."""
    return _make_user(db_session, "admin@example.com", "Admin", role=UserRole.ADMIN.value)


@pytest.fixture
def auth_headers(sample_user: User) -> dict:
    return get_auth_header(sample_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return get_auth_header(admin_user)


# =============================================================================
# CATALOG FIXTURES
# =============================================================================


@pytest.fixture
def sample_book(db_session: Session) -> Book:
    """A book without reviews."""
    book = Book(
        title="1984",
        author="George Orwell",
        description="A dystopian novel set in a totalitarian society ruled by Big Brother.",
        genre="Dystopian",
        published_year=1949,
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def multiple_books(db_session: Session) -> list[Book]:
    """Several books with differing titles, authors and years."""
    books_data = [
        ("To Kill a Mockingbird", "Harper Lee", "Racial injustice in the American South.", 1960),
        ("The Hobbit", "J.R.R. Tolkien", "Bilbo Baggins embarks on an unexpected journey.", 1937),
        ("Animal Farm", "George Orwell", "A farmyard fable about revolution.", 1945),
        ("Foundation", "Isaac Asimov", "The fall of the Galactic Empire.", 1951),
    ]
    books = [
        Book(title=title, author=author, description=description, published_year=year)
        for title, author, description, year in books_data
    ]
    db_session.add_all(books)
    db_session.commit()
    for book in books:
        db_session.refresh(book)
    return books


# =============================================================================
# REVIEW FIXTURES
# =============================================================================


@pytest.fixture
def sample_review(db_session: Session, sample_book: Book, sample_user: User) -> Review:
    """
    A 4-star review of sample_book by sample_user.

    Created through the review service so the book's aggregates match.
    """
    return review_service.create_review(
        db_session,
        sample_book.id,
        sample_user,
        ReviewCreate(rating=4, comment="Great book, highly recommended!"),
    )
