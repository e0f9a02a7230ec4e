"""
Book Review Service Package

FastAPI application for a book catalog where readers leave star ratings
and comments, and each book's aggregate rating stays in step with its
reviews.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine, session factory and declarative base
- main.py: FastAPI application factory, middleware and error handlers
- dependencies.py: Dependency injection (sessions, pagination, current user)
- models/: SQLAlchemy ORM models (Book, Review, User)
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (rating aggregation, review lifecycle,
  catalog, image hosting, caching, rate limiting, security)
"""

__version__ = "0.1.0"
