"""Integration tests for Book API endpoints via TestClient."""

import pytest
from protean.utils.globals import current_domain

from bookstore.catalogue.book.book import Book, BookStatus
from bookstore.utils.storage import ensure_upload_dirs, resolve_upload

PDF = ("orchard.pdf", b"%PDF-1.7 quiet orchard", "application/pdf")
PNG = ("cover.png", b"\x89PNG cover", "image/png")


@pytest.fixture()
def publisher_headers(register_publisher, auth_headers):
    register_publisher()
    return auth_headers("writer@example.com")


def _upload(client, headers, title="The Quiet Orchard", price="250", files=None, **form):
    data = {
        "title": title,
        "category": "Fiction",
        "publication_date": "2024-03-01",
        "price": price,
        "keywords": "orchard, quiet",
    }
    data.update(form)
    return client.post("/api/books", data=data, files=files or {"book": PDF}, headers=headers)


class TestUploadBook:
    def test_upload_with_cover(self, client, publisher_headers):
        response = _upload(client, publisher_headers, files={"book": PDF, "cover_image": PNG})

        assert response.status_code == 201, response.text
        book = current_domain.repository_for(Book).get(response.json()["book_id"])
        assert book.author_name == "J. W. Quill"
        assert book.keyword_list == ["orchard", "quiet"]
        assert resolve_upload(book.file_path).read_bytes() == b"%PDF-1.7 quiet orchard"
        assert book.cover_image_path.startswith("covers/")

    def test_rejects_non_book_file(self, client, publisher_headers):
        response = _upload(client, publisher_headers, files={"book": ("notes.txt", b"hello", "text/plain")})
        assert response.status_code == 400

    def test_bad_date_discards_upload(self, client, publisher_headers):
        books_dir = ensure_upload_dirs() / "books"
        before = set(books_dir.iterdir())

        response = _upload(client, publisher_headers, publication_date="March 2024")

        assert response.status_code == 400
        assert set(books_dir.iterdir()) == before

    def test_requires_publisher(self, client, register_customer, auth_headers):
        register_customer()
        response = _upload(client, auth_headers("reader@example.com"))
        assert response.status_code == 403

    def test_requires_login(self, client):
        assert _upload(client, {}).status_code == 401


class TestManageBook:
    def test_owner_updates_price(self, client, publisher_headers):
        book_id = _upload(client, publisher_headers).json()["book_id"]

        response = client.put(f"/api/books/{book_id}", data={"price": "199.5"}, headers=publisher_headers)

        assert response.status_code == 200
        assert response.json()["price"] == 199.5

    def test_other_publisher_cannot_update(self, client, publisher_headers, register_publisher, auth_headers):
        book_id = _upload(client, publisher_headers).json()["book_id"]
        register_publisher(email="rival@example.com", username="rival", pen_name="Rival")

        response = client.put(
            f"/api/books/{book_id}", data={"price": "1"}, headers=auth_headers("rival@example.com")
        )

        assert response.status_code == 403

    def test_owner_withdraws(self, client, publisher_headers):
        book_id = _upload(client, publisher_headers).json()["book_id"]

        assert client.delete(f"/api/books/{book_id}", headers=publisher_headers).status_code == 200
        assert current_domain.repository_for(Book).get(book_id).status == BookStatus.WITHDRAWN.value
        assert client.get("/api/books").json()["total"] == 0

    def test_moderator_withdraws(self, client, publisher_headers, create_admin, auth_headers):
        book_id = _upload(client, publisher_headers).json()["book_id"]
        create_admin()

        response = client.delete(f"/api/books/{book_id}", headers=auth_headers("admin@example.com"))

        assert response.status_code == 200

    def test_customer_cannot_withdraw(self, client, publisher_headers, register_customer, auth_headers):
        book_id = _upload(client, publisher_headers).json()["book_id"]
        register_customer()

        response = client.delete(f"/api/books/{book_id}", headers=auth_headers("reader@example.com"))

        assert response.status_code == 403


class TestBrowseBooks:
    @pytest.fixture(autouse=True)
    def shelf(self, client, publisher_headers):
        _upload(client, publisher_headers, title="The Quiet Orchard")
        _upload(client, publisher_headers, title="Salt and Iron", category="History", price="400")
        _upload(client, publisher_headers, title="Orchard Days", keywords="memoir")

    def test_list(self, client):
        body = client.get("/api/books", params={"limit": 2}).json()
        assert body["total"] == 3
        assert len(body["items"]) == 2
        assert body["limit"] == 2

    def test_categories(self, client):
        assert client.get("/api/books/categories").json() == ["Fiction", "History"]

    def test_by_category_ignores_case(self, client):
        body = client.get("/api/books/category/history").json()
        assert [item["title"] for item in body["items"]] == ["Salt and Iron"]

    def test_search(self, client):
        body = client.get("/api/books/search", params={"q": "orchard"}).json()
        assert {item["title"] for item in body["items"]} == {"The Quiet Orchard", "Orchard Days"}

    def test_filter_by_price(self, client):
        body = client.get("/api/books/search/filter", params={"min_price": 300}).json()
        assert [item["title"] for item in body["items"]] == ["Salt and Iron"]

    def test_get_counts_a_view(self, client):
        book_id = client.get("/api/books/search", params={"q": "Salt"}).json()["items"][0]["id"]

        client.get(f"/api/books/{book_id}")
        body = client.get(f"/api/books/{book_id}").json()

        assert body["view_count"] == 2

    def test_unknown_book(self, client):
        assert client.get("/api/books/book-404").status_code == 404

    def test_my_books(self, client, publisher_headers):
        assert len(client.get("/api/books/my", headers=publisher_headers).json()) == 3
