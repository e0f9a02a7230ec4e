"""
Test Suite for the Book Review API

Test Organization:
- conftest.py: Shared fixtures (test database, client, users, books, reviews)
- test_ratings.py: Rating aggregate maintenance and reconciliation
- test_reviews.py: /api/v1/books/{id}/reviews, /api/v1/reviews, /api/v1/users/*/reviews
- test_books.py: /api/v1/books catalog endpoints
- test_catalog.py: Catalog and review services without HTTP
- test_images.py: Cover uploads to the image host
- test_auth.py: Registration, login and current user

Running Tests:
    pytest
    pytest tests/test_ratings.py -v
"""
