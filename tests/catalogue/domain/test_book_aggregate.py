"""Tests for the Book aggregate and its catalogue search criteria."""

from datetime import date

import pytest
from protean.exceptions import ValidationError

from bookstore.catalogue.book.book import Book, BookStatus, parse_publication_date
from bookstore.catalogue.book.events import BookDetailsUpdated, BookPublished, BookWithdrawn
from bookstore.catalogue.book.listing import BookCriteria


def _publish(**overrides):
    fields = {
        "title": "  The Quiet Orchard ",
        "publisher_id": "pub-001",
        "author_name": "J. W. Quill",
        "category": "fiction",
        "publication_date": date(2024, 3, 1),
        "price": 250.0,
        "file_path": "books/quiet-orchard.pdf",
        "keywords": "Orchard, quiet , ORCHARD,",
    }
    fields.update(overrides)
    return Book.publish(**fields)


class TestPublish:
    def test_defaults(self):
        book = _publish()

        assert book.title == "The Quiet Orchard"
        assert book.status == BookStatus.PUBLISHED.value
        assert book.is_published
        assert book.sales_count == 0
        assert book.view_count == 0
        assert book.rating == 0.0

    def test_keywords_cleaned(self):
        assert _publish().keyword_list == ["orchard", "quiet"]
        assert _publish(keywords=["Poetry", " rain "]).keyword_list == ["poetry", "rain"]
        assert _publish(keywords=None).keyword_list == []

    def test_raises_book_published(self):
        book = _publish()
        published = [e for e in book._events if isinstance(e, BookPublished)]
        assert published[0].publisher_id == "pub-001"
        assert published[0].price == 250.0

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError):
            _publish(title="   ")

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            _publish(price=-1.0)


class TestUpdates:
    def test_partial_update(self):
        book = _publish()
        book.update_details(price=199.0, description="Revised edition")

        assert book.price == 199.0
        assert book.description == "Revised edition"
        assert book.title == "The Quiet Orchard"
        assert any(isinstance(e, BookDetailsUpdated) for e in book._events)

    def test_replace_files_return_previous(self):
        book = _publish(cover_image_path="covers/old.png")

        assert book.replace_file("books/new.epub") == "books/quiet-orchard.pdf"
        assert book.replace_cover("covers/new.png") == "covers/old.png"
        assert book.file_path == "books/new.epub"


class TestCounters:
    def test_views_and_sales(self):
        book = _publish()
        book.record_view()
        book.record_view()
        book.record_sale(3)
        book.reverse_sale(1)

        assert book.view_count == 2
        assert book.sales_count == 2

    def test_reverse_sale_floors_at_zero(self):
        book = _publish()
        book.reverse_sale(2)
        assert book.sales_count == 0

    def test_rating_bounds(self):
        book = _publish()
        book.rate(4.5)
        assert book.rating == 4.5
        with pytest.raises(ValidationError):
            book.rate(6.0)


class TestWithdrawal:
    def test_withdraw(self):
        book = _publish()
        book.withdraw(withdrawn_by="user-001")

        assert book.status == BookStatus.WITHDRAWN.value
        assert not book.is_published
        withdrawn = [e for e in book._events if isinstance(e, BookWithdrawn)]
        assert withdrawn[0].withdrawn_by == "user-001"

    def test_withdraw_twice_rejected(self):
        book = _publish()
        book.withdraw(withdrawn_by="user-001")
        with pytest.raises(ValidationError):
            book.withdraw(withdrawn_by="user-001")


class TestPublicationDate:
    def test_iso_string(self):
        assert parse_publication_date("2024-03-01") == date(2024, 3, 1)
        assert parse_publication_date("2024-03-01T10:00:00Z") == date(2024, 3, 1)

    def test_invalid(self):
        with pytest.raises(ValidationError):
            parse_publication_date("March 1st")


class TestCriteria:
    def test_empty_criteria_only_lists_published(self):
        assert BookCriteria().as_filters() == {"status": "published"}

    def test_all_filters(self):
        filters = BookCriteria(
            title="orchard",
            author="quill",
            category="Fiction",
            keyword=" Rain ",
            start_date=date(2020, 1, 1),
            end_date=date(2024, 12, 31),
            min_rating=3.0,
            max_rating=5.0,
            min_price=100.0,
            max_price=300.0,
        ).as_filters()

        assert filters["title__icontains"] == "orchard"
        assert filters["author_name__icontains"] == "quill"
        assert filters["category__iexact"] == "Fiction"
        assert filters["keywords__icontains"] == "rain"
        assert filters["publication_date__gte"] == date(2020, 1, 1)
        assert filters["publication_date__lte"] == date(2024, 12, 31)
        assert filters["rating__gte"] == 3.0
        assert filters["rating__lte"] == 5.0
        assert filters["price__gte"] == 100.0
        assert filters["price__lte"] == 300.0

    def test_zero_bounds_are_kept(self):
        filters = BookCriteria(min_price=0.0, min_rating=0.0).as_filters()
        assert filters["price__gte"] == 0.0
        assert filters["rating__gte"] == 0.0
