"""Application tests for publishing, editing and withdrawing books."""

import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from bookstore.catalogue.book.book import Book, BookStatus
from bookstore.catalogue.book.publishing import PublishBook, RecordBookView, UpdateBookDetails, WithdrawBook
from bookstore.utils.storage import UploadKind, resolve_upload, store_upload


class TestPublishBook:
    def test_author_is_pen_name(self, register_publisher, publish_book):
        _, publisher = register_publisher(pen_name="J. W. Quill")
        book = publish_book(publisher)

        assert book.author_name == "J. W. Quill"
        assert book.publisher_id == str(publisher.id)
        assert str(book.publication_date) == "2024-03-01"
        assert book.keyword_list == ["orchard", "quiet"]

    def test_json_keywords(self, register_publisher, publish_book):
        _, publisher = register_publisher()
        book = publish_book(publisher, keywords='["Rain", "Poetry"]')
        assert book.keyword_list == ["rain", "poetry"]

    def test_unknown_publisher(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(
                PublishBook(
                    publisher_id="pub-404",
                    title="Ghost",
                    category="fiction",
                    publication_date="2024-01-01",
                    price=10.0,
                    file_path="books/ghost.pdf",
                ),
                asynchronous=False,
            )

    def test_invalid_publication_date(self, register_publisher, publish_book):
        _, publisher = register_publisher()
        with pytest.raises(ValidationError):
            publish_book(publisher, publication_date="someday")


class TestUpdateBook:
    def test_partial_update(self, register_publisher, publish_book):
        _, publisher = register_publisher()
        book = publish_book(publisher)

        current_domain.process(
            UpdateBookDetails(book_id=str(book.id), price=199.0, publication_date="2023-12-25"),
            asynchronous=False,
        )

        refreshed = current_domain.repository_for(Book).get(book.id)
        assert refreshed.price == 199.0
        assert str(refreshed.publication_date) == "2023-12-25"
        assert refreshed.title == "The Quiet Orchard"

    def test_replacing_file_removes_old_upload(self, register_publisher, publish_book):
        _, publisher = register_publisher()
        old_path = store_upload(UploadKind.BOOK, "old.pdf", "application/pdf", b"%PDF-old")
        new_path = store_upload(UploadKind.BOOK, "new.epub", "application/epub+zip", b"PK-new")
        book = publish_book(publisher, file_path=old_path)

        current_domain.process(UpdateBookDetails(book_id=str(book.id), file_path=new_path), asynchronous=False)

        assert current_domain.repository_for(Book).get(book.id).file_path == new_path
        assert not resolve_upload(old_path).exists()
        assert resolve_upload(new_path).exists()

    def test_withdrawn_book_cannot_be_edited(self, register_publisher, publish_book):
        user, publisher = register_publisher()
        book = publish_book(publisher)
        current_domain.process(WithdrawBook(book_id=str(book.id), withdrawn_by=str(user.id)), asynchronous=False)

        with pytest.raises(ValidationError):
            current_domain.process(UpdateBookDetails(book_id=str(book.id), price=1.0), asynchronous=False)


class TestWithdrawAndViews:
    def test_withdraw(self, register_publisher, publish_book):
        user, publisher = register_publisher()
        book = publish_book(publisher)

        current_domain.process(WithdrawBook(book_id=str(book.id), withdrawn_by=str(user.id)), asynchronous=False)

        assert current_domain.repository_for(Book).get(book.id).status == BookStatus.WITHDRAWN.value

    def test_record_view(self, register_publisher, publish_book):
        _, publisher = register_publisher()
        book = publish_book(publisher)

        current_domain.process(RecordBookView(book_id=str(book.id)), asynchronous=False)
        current_domain.process(RecordBookView(book_id=str(book.id)), asynchronous=False)

        assert current_domain.repository_for(Book).get(book.id).view_count == 2
