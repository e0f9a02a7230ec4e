"""
Tests for Reviews

Tests the review endpoints:
- List reviews for a book
- Create a review (authenticated, one per user per book)
- Get a single review
- Update / delete a review (author only, whatever the role)
- Mark a review helpful
- List reviews by user
- Book rating aggregates following every review change
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from bookreview.models import Book, Review, User
from tests.conftest import get_auth_header


def book_rating(client: TestClient, book_id: int) -> tuple[float, int]:
    book = client.get(f"/api/v1/books/{book_id}").json()["book"]
    return book["average_rating"], book["total_reviews"]


# =============================================================================
# List Reviews for Book
# =============================================================================


class TestListBookReviews:
    """Tests for GET /api/v1/books/{book_id}/reviews"""

    def test_list_reviews_empty(self, client: TestClient, sample_book: Book):
        response = client.get(f"/api/v1/books/{sample_book.id}/reviews")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["items"] == []
        assert data["total"] == 0
        assert data["page"] == 1
        assert data["pages"] == 0

    def test_list_reviews_with_data(self, client: TestClient, sample_review: Review):
        response = client.get(f"/api/v1/books/{sample_review.book_id}/reviews")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 1

        review = data["items"][0]
        assert review["rating"] == 4
        assert review["comment"] == "Great book, highly recommended!"
        assert review["helpful"] == 0
        assert review["user"]["name"] == "Test Reader"
        assert "email" not in review["user"]
        assert review["book"]["title"] == "1984"

    def test_list_reviews_sorted_by_rating(
        self,
        client: TestClient,
        sample_book: Book,
        sample_user: User,
        second_user: User,
    ):
        for user, rating in ((sample_user, 2), (second_user, 5)):
            client.post(
                f"/api/v1/books/{sample_book.id}/reviews",
                json={"rating": rating, "comment": "Some thoughts"},
                headers=get_auth_header(user),
            )

        response = client.get(
            f"/api/v1/books/{sample_book.id}/reviews?sort=rating&order=asc"
        )

        assert [r["rating"] for r in response.json()["items"]] == [2, 5]

    def test_list_reviews_invalid_sort(self, client: TestClient, sample_book: Book):
        response = client.get(f"/api/v1/books/{sample_book.id}/reviews?sort=password")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"] == "validation_error"

    def test_list_reviews_book_not_found(self, client: TestClient):
        response = client.get("/api/v1/books/99999/reviews")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "not_found"


# =============================================================================
# Create Review
# =============================================================================


class TestCreateReview:
    """Tests for POST /api/v1/books/{book_id}/reviews"""

    def test_create_review_success(
        self, client: TestClient, sample_book: Book, auth_headers: dict, sample_user: User
    ):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 5, "comment": "  Absolutely brilliant.  "},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["rating"] == 5
        assert data["comment"] == "Absolutely brilliant."
        assert data["user_id"] == sample_user.id
        assert data["book_id"] == sample_book.id
        assert data["helpful"] == 0
        assert data["book"]["id"] == sample_book.id

    def test_create_review_updates_book_rating(
        self, client: TestClient, sample_book: Book, auth_headers: dict
    ):
        client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 4, "comment": "Good"},
            headers=auth_headers,
        )

        assert book_rating(client, sample_book.id) == (4.0, 1)

    def test_create_review_unauthenticated(self, client: TestClient, sample_book: Book):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 5, "comment": "Anonymous"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create_review_book_not_found(self, client: TestClient, auth_headers: dict):
        response = client.post(
            "/api/v1/books/99999/reviews",
            json={"rating": 5, "comment": "Ghost book"},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_create_duplicate_review(
        self, client: TestClient, sample_review: Review, auth_headers: dict
    ):
        response = client.post(
            f"/api/v1/books/{sample_review.book_id}/reviews",
            json={"rating": 1, "comment": "Changed my mind"},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json() == {
            "error": "conflict",
            "detail": "You have already reviewed this book",
        }
        # Aggregates untouched
        assert book_rating(client, sample_review.book_id) == (4.0, 1)

    @pytest.mark.parametrize("rating", [0, 6, -1])
    def test_create_review_rating_out_of_range(
        self, client: TestClient, sample_book: Book, auth_headers: dict, rating: int
    ):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": rating, "comment": "Out of range"},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_create_review_blank_comment(
        self, client: TestClient, sample_book: Book, auth_headers: dict
    ):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 3, "comment": "   "},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_create_review_comment_too_long(
        self, client: TestClient, sample_book: Book, auth_headers: dict
    ):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 3, "comment": "x" * 1001},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# =============================================================================
# Get / Update / Delete Review
# =============================================================================


class TestGetReview:
    """Tests for GET /api/v1/reviews/{review_id}"""

    def test_get_review(self, client: TestClient, sample_review: Review):
        response = client.get(f"/api/v1/reviews/{sample_review.id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == sample_review.id

    def test_get_review_not_found(self, client: TestClient):
        response = client.get("/api/v1/reviews/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Review with id 99999 not found"


class TestUpdateReview:
    """Tests for PUT /api/v1/reviews/{review_id}"""

    def test_update_rating(
        self, client: TestClient, sample_review: Review, auth_headers: dict
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 2},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["rating"] == 2
        assert data["comment"] == "Great book, highly recommended!"
        assert book_rating(client, sample_review.book_id) == (2.0, 1)

    def test_update_comment_only_keeps_rating(
        self, client: TestClient, sample_review: Review, auth_headers: dict
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"comment": "On reflection, merely good."},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["comment"] == "On reflection, merely good."
        assert book_rating(client, sample_review.book_id) == (4.0, 1)

    def test_update_empty_body(
        self, client: TestClient, sample_review: Review, auth_headers: dict
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"] == "validation_error"

    def test_update_other_users_review(
        self, client: TestClient, sample_review: Review, second_user: User
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 1},
            headers=get_auth_header(second_user),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {
            "error": "forbidden",
            "detail": "Not authorized to update this review",
        }
        assert book_rating(client, sample_review.book_id) == (4.0, 1)

    def test_admin_cannot_update_other_users_review(
        self, client: TestClient, sample_review: Review, admin_headers: dict
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 1},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_update_not_found(self, client: TestClient, auth_headers: dict):
        response = client.put(
            "/api/v1/reviews/99999",
            json={"rating": 3},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestDeleteReview:
    """Tests for DELETE /api/v1/reviews/{review_id}"""

    def test_delete_own_review(
        self,
        client: TestClient,
        db_session: Session,
        sample_review: Review,
        auth_headers: dict,
    ):
        review_id = sample_review.id
        book_id = sample_review.book_id

        response = client.delete(f"/api/v1/reviews/{review_id}", headers=auth_headers)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert db_session.execute(
            select(Review).where(Review.id == review_id)
        ).scalar_one_or_none() is None
        assert book_rating(client, book_id) == (0.0, 0)

    def test_delete_other_users_review(
        self, client: TestClient, sample_review: Review, second_user: User
    ):
        response = client.delete(
            f"/api/v1/reviews/{sample_review.id}",
            headers=get_auth_header(second_user),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Not authorized to delete this review"

    def test_admin_cannot_delete_other_users_review(
        self, client: TestClient, sample_review: Review, admin_headers: dict
    ):
        response = client.delete(
            f"/api/v1/reviews/{sample_review.id}", headers=admin_headers
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert book_rating(client, sample_review.book_id) == (4.0, 1)

    def test_delete_not_found(self, client: TestClient, auth_headers: dict):
        response = client.delete("/api/v1/reviews/99999", headers=auth_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Helpful
# =============================================================================


class TestMarkHelpful:
    """Tests for POST /api/v1/reviews/{review_id}/helpful"""

    def test_mark_helpful_increments(
        self, client: TestClient, sample_review: Review, second_user: User
    ):
        headers = get_auth_header(second_user)

        first = client.post(f"/api/v1/reviews/{sample_review.id}/helpful", headers=headers)
        second = client.post(f"/api/v1/reviews/{sample_review.id}/helpful", headers=headers)

        assert first.status_code == status.HTTP_200_OK
        assert first.json() == {"review_id": sample_review.id, "helpful": 1}
        assert second.json()["helpful"] == 2

    def test_author_can_mark_own_review(
        self, client: TestClient, sample_review: Review, auth_headers: dict
    ):
        response = client.post(
            f"/api/v1/reviews/{sample_review.id}/helpful", headers=auth_headers
        )

        assert response.json()["helpful"] == 1

    def test_mark_helpful_does_not_touch_rating(
        self, client: TestClient, sample_review: Review, auth_headers: dict
    ):
        client.post(f"/api/v1/reviews/{sample_review.id}/helpful", headers=auth_headers)

        assert book_rating(client, sample_review.book_id) == (4.0, 1)

    def test_mark_helpful_not_found(self, client: TestClient, auth_headers: dict):
        response = client.post("/api/v1/reviews/99999/helpful", headers=auth_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_mark_helpful_unauthenticated(self, client: TestClient, sample_review: Review):
        response = client.post(f"/api/v1/reviews/{sample_review.id}/helpful")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# User Reviews
# =============================================================================


class TestUserReviews:
    """Tests for GET /api/v1/users/{user_id}/reviews and /users/me/reviews"""

    def test_list_user_reviews(self, client: TestClient, sample_review: Review):
        response = client.get(f"/api/v1/users/{sample_review.user_id}/reviews")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["book"]["title"] == "1984"

    def test_list_my_reviews(
        self,
        client: TestClient,
        sample_review: Review,
        auth_headers: dict,
        multiple_books: list[Book],
    ):
        client.post(
            f"/api/v1/books/{multiple_books[0].id}/reviews",
            json={"rating": 3, "comment": "Fine"},
            headers=auth_headers,
        )

        response = client.get("/api/v1/users/me/reviews", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["total"] == 2

    def test_list_my_reviews_unauthenticated(self, client: TestClient):
        response = client.get("/api/v1/users/me/reviews")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_list_user_reviews_unknown_user(self, client: TestClient):
        response = client.get("/api/v1/users/99999/reviews")

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Rating Aggregates Across the Review Lifecycle
# =============================================================================


def test_rating_follows_review_lifecycle(
    client: TestClient,
    sample_book: Book,
    sample_user: User,
    second_user: User,
):
    """
    4 -> (4.0, 1); add 2 -> (3.0, 2); change 4 to 5 -> (3.5, 2);
    delete the 2 -> (5.0, 1); delete the last -> (0, 0).
    """
    first_headers = get_auth_header(sample_user)
    second_headers = get_auth_header(second_user)
    url = f"/api/v1/books/{sample_book.id}/reviews"

    first = client.post(url, json={"rating": 4, "comment": "Good"}, headers=first_headers)
    assert book_rating(client, sample_book.id) == (4.0, 1)

    second = client.post(url, json={"rating": 2, "comment": "Meh"}, headers=second_headers)
    assert book_rating(client, sample_book.id) == (3.0, 2)

    client.put(
        f"/api/v1/reviews/{first.json()['id']}",
        json={"rating": 5},
        headers=first_headers,
    )
    assert book_rating(client, sample_book.id) == (3.5, 2)

    client.delete(f"/api/v1/reviews/{second.json()['id']}", headers=second_headers)
    assert book_rating(client, sample_book.id) == (5.0, 1)

    client.delete(f"/api/v1/reviews/{first.json()['id']}", headers=first_headers)
    assert book_rating(client, sample_book.id) == (0.0, 0)

    detail = client.get(f"/api/v1/books/{sample_book.id}").json()
    assert detail["book"]["rating"] == "0.0"
    assert detail["reviews"] == []
