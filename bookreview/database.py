"""
Database Configuration Module

Sets up SQLAlchemy 2.0 for the Book Review API.

We use SYNCHRONOUS SQLAlchemy: FastAPI runs sync route handlers in a
threadpool, so every request still gets its own connection and session,
and the aggregate rating updates rely on the database's row locking
rather than on anything held in process memory.

Session Management Pattern
==========================
"Session per request":
1. Request arrives → create a new session
2. Services use the session for all database work in that request
3. Services commit on success, roll back on failure
4. Session is closed when the request ends
"""

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bookreview.config import get_settings

settings = get_settings()


# =============================================================================
# Database Engine
# =============================================================================
# - pool_size / max_overflow: connection pool sizing (server databases only)
# - pool_pre_ping: test connection health before using it
# - echo: log SQL statements in debug mode

def build_engine(database_url: str) -> Engine:
    """Create the engine, skipping pool sizing for SQLite URLs."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )

    return create_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.debug,
    )


engine = build_engine(settings.database_url)


# =============================================================================
# Session Factory
# =============================================================================
# - autocommit=False: services decide when to commit
# - autoflush=False: flushes happen where the services ask for them

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover tables for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Yields a new session and closes it when the request ends, even if the
    handler raised.

    Usage in Routes:
        @router.get("/books/")
        def list_books(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    WARNING: In production, use Alembic migrations instead!
    """
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """
    Drop all database tables.

    DANGER: This deletes all data! Development and tests only.
    """
    Base.metadata.drop_all(bind=engine)
