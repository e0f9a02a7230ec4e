"""
Services Package

Business logic kept separate from HTTP handling (routers), reusable from
scripts and easy to test with a plain database session.

Current services:
- catalog.py: Book CRUD, search, suggestions and cover uploads (admin writes)
- reviews.py: Review create/update/delete/helpful and review listings
- ratings.py: Atomic maintenance of each book's average_rating and total_reviews
- images.py: Cover uploads through the Cloudinary SDK
- cache.py: Redis caching utilities with invalidation on writes
- rate_limiter.py: Rate limiting with slowapi
- security.py: Password hashing and JWT utilities
- exceptions.py: Service errors rendered by the API as {"error", "detail"}
"""
