from fastapi.testclient import TestClient

import bookreviews.api.main as api_main
from bookreviews.books.service import BookManagementService
from bookreviews.db.models import Book
from bookreviews.errors import BadReviewRequestError, BookNotFoundError
from bookreviews.reviews.service import ReviewService

GOOD_REVIEW = {
    "reviewTitle": "Good java book!",
    "reviewContent": "I really liked the book, it explains the Java memory model better than any other I read",
    "rating": 4,
}
USER_HEADERS = {"X-User-Name": "duke", "X-User-Email": "duke@spring.io"}


class FakeBookService:
    def __init__(self, books=None):
        self.books = books or []

    def get_all_books(self):
        return self.books


class FakeReviewService:
    def __init__(self):
        self.calls = []
        self.next_id = 84
        self.error = None

    def get_all_reviews(self, size, order_by):
        self.calls.append(("get_all_reviews", size, order_by))
        return [{"bookId": 42, "isbn": "42", "avg": 89.3, "ratings": 2}]

    def get_review_statistics(self):
        self.calls.append(("get_review_statistics",))
        return []

    def create_book_review(self, isbn, request, user_name, email):
        self.calls.append(("create_book_review", isbn, request.rating, user_name, email))
        if self.error:
            raise self.error
        return self.next_id

    def delete_review(self, isbn, review_id):
        self.calls.append(("delete_review", isbn, review_id))


def create_book(title):
    return Book(
        id=1,
        isbn="42",
        title=title,
        author="Mike",
        description="Good Book",
        genre="Software Engineering",
        pages=200,
        publisher="Oracle",
        thumbnail_url="ftp://localhost:42",
    )


def make_client(monkeypatch, books=None):
    reviews = FakeReviewService()
    monkeypatch.setattr(api_main, "book_service", FakeBookService(books))
    monkeypatch.setattr(api_main, "review_service", reviews)
    return TestClient(api_main.app), reviews


def test_get_empty_array_when_no_books_exist(monkeypatch):
    client, _ = make_client(monkeypatch)

    response = client.get("/api/books", headers={"Accept": "application/json"})

    assert response.status_code == 200
    assert response.json() == []


def test_does_not_return_xml(monkeypatch):
    client, _ = make_client(monkeypatch)

    response = client.get("/api/books", headers={"Accept": "application/xml"})

    assert response.status_code == 406


def test_get_books_without_store_identity(monkeypatch):
    client, _ = make_client(monkeypatch, books=[create_book("Java 14"), create_book("Java 15")])

    response = client.get("/api/books", headers={"Accept": "application/json"})

    assert response.status_code == 200
    data = response.json()
    assert [b["title"] for b in data] == ["Java 14", "Java 15"]
    assert data[0]["isbn"] == "42"
    assert all("id" not in b for b in data)


def test_returns_twenty_reviews_without_order_by_default(monkeypatch):
    client, reviews = make_client(monkeypatch)

    response = client.get("/api/books/reviews")

    assert response.status_code == 200
    assert len(response.json()) == 1
    assert reviews.calls == [("get_all_reviews", 20, "none")]


def test_review_page_size_is_bounded(monkeypatch):
    client, reviews = make_client(monkeypatch)

    assert client.get("/api/books/reviews", params={"size": 101}).status_code == 400
    assert client.get("/api/books/reviews", params={"size": 0}).status_code == 400
    assert client.get("/api/books/reviews", params={"size": 5, "orderBy": "rating"}).status_code == 200
    assert reviews.calls == [("get_all_reviews", 5, "rating")]


def test_returns_review_statistics(monkeypatch):
    client, reviews = make_client(monkeypatch)

    response = client.get("/api/books/reviews/statistics")

    assert response.status_code == 200
    assert reviews.calls == [("get_review_statistics",)]


def test_creates_review_for_valid_payload(monkeypatch):
    client, reviews = make_client(monkeypatch)

    response = client.post("/api/books/42/reviews", json=GOOD_REVIEW, headers=USER_HEADERS)

    assert response.status_code == 201
    assert response.headers["Location"].endswith("/books/42/reviews/84")
    assert reviews.calls == [("create_book_review", "42", 4, "duke", "duke@spring.io")]


def test_rejects_review_with_invalid_rating(monkeypatch):
    client, reviews = make_client(monkeypatch)

    response = client.post("/api/books/42/reviews", json={**GOOD_REVIEW, "rating": -1}, headers=USER_HEADERS)

    assert response.status_code == 400
    assert reviews.calls == []


def test_rejects_review_without_reviewer(monkeypatch):
    client, reviews = make_client(monkeypatch)

    response = client.post("/api/books/42/reviews", json=GOOD_REVIEW)

    assert response.status_code == 400
    assert reviews.calls == []


def test_bad_quality_review_is_bad_request(monkeypatch):
    client, reviews = make_client(monkeypatch)
    reviews.error = BadReviewRequestError("Review does not meet the quality standards")

    response = client.post("/api/books/42/reviews", json=GOOD_REVIEW, headers=USER_HEADERS)

    assert response.status_code == 400


def test_review_for_unknown_book_is_not_found(monkeypatch):
    client, reviews = make_client(monkeypatch)
    reviews.error = BookNotFoundError("42")

    response = client.post("/api/books/42/reviews", json=GOOD_REVIEW, headers=USER_HEADERS)

    assert response.status_code == 404


def test_deletes_review(monkeypatch):
    client, reviews = make_client(monkeypatch)

    response = client.delete("/api/books/42/reviews/84")

    assert response.status_code == 200
    assert reviews.calls == [("delete_review", "42", 84)]


def test_uninitialized_services_fail_loudly(monkeypatch):
    monkeypatch.setattr(api_main, "book_service", None)
    monkeypatch.setattr(api_main, "review_service", None)
    client = TestClient(api_main.app)

    assert client.get("/api/books").status_code == 500
    assert client.get("/api/books/reviews").status_code == 500


def test_review_round_trip_against_database(monkeypatch, repositories):
    books = repositories["books"]
    books.save(Book(isbn="9780596004651", title="Head first Java", thumbnail_url="https://covers.test/s.jpg"))
    monkeypatch.setattr(api_main, "book_service", BookManagementService(books))
    monkeypatch.setattr(
        api_main,
        "review_service",
        ReviewService(books, repositories["reviews"], repositories["users"]),
    )
    client = TestClient(api_main.app)

    created = client.post("/api/books/9780596004651/reviews", json=GOOD_REVIEW, headers=USER_HEADERS)
    missing = client.post("/api/books/9780000000000/reviews", json=GOOD_REVIEW, headers=USER_HEADERS)
    listed = client.get("/api/books/reviews").json()
    statistics = client.get("/api/books/reviews/statistics").json()

    assert created.status_code == 201
    assert missing.status_code == 404
    assert listed[0]["bookIsbn"] == "9780596004651"
    assert listed[0]["bookTitle"] == "Head first Java"
    assert listed[0]["submittedBy"] == "duke"
    assert listed[0]["rating"] == 4
    assert statistics == [{"bookId": 1, "isbn": "9780596004651", "avg": 4.0, "ratings": 1}]

    review_id = int(created.headers["Location"].rsplit("/", 1)[1])
    assert client.delete(f"/api/books/9780596004651/reviews/{review_id}").status_code == 200
    assert client.get("/api/books/reviews").json() == []
