"""Book aggregate root: a title listed for sale by a publisher."""

import json
from datetime import date, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, Float, Identifier, Integer, String, Text

from bookstore.domain import bookstore

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


class BookStatus(Enum):
    """Withdrawn books disappear from listings but stay downloadable for past buyers."""

    PUBLISHED = "published"
    WITHDRAWN = "withdrawn"


@bookstore.aggregate
class Book:
    """An e-book with its metadata, sales counters and stored files.

    The author is the owning publisher profile (id) and the name shown on the
    listing. Files are stored paths relative to the upload directory.
    """

    title: String(required=True, max_length=255)
    publisher_id: Identifier(required=True)
    author_name: String(required=True, max_length=150)
    category: String(required=True, max_length=100)
    publication_date: Date(required=True)
    price: Float(required=True, min_value=0.0)
    keywords: Text()  # JSON list of keywords
    description: Text()
    rating: Float(min_value=0.0, max_value=5.0, default=0.0)
    sales_count: Integer(default=0, min_value=0)
    view_count: Integer(default=0, min_value=0)
    file_path: String(required=True, max_length=500)
    cover_image_path: String(max_length=500)
    status: String(choices=BookStatus, default=BookStatus.PUBLISHED.value)
    created_at: DateTime(default=datetime.now)
    updated_at: DateTime(default=datetime.now)

    @invariant.post
    def title_must_not_be_blank(self):
        if self.title is not None and not self.title.strip():
            raise ValidationError({"title": ["Title cannot be blank"]})

    @property
    def keyword_list(self) -> list[str]:
        return json.loads(self.keywords) if self.keywords else []

    @property
    def is_published(self) -> bool:
        return self.status == BookStatus.PUBLISHED.value

    @classmethod
    def publish(
        cls,
        title,
        publisher_id,
        author_name,
        category,
        publication_date,
        price,
        file_path,
        keywords=None,
        description=None,
        cover_image_path=None,
    ):
        from bookstore.catalogue.book.events import BookPublished

        book = cls(
            title=title.strip(),
            publisher_id=publisher_id,
            author_name=author_name,
            category=category.strip(),
            publication_date=publication_date,
            price=price,
            keywords=json.dumps(_clean_keywords(keywords)),
            description=description,
            file_path=file_path,
            cover_image_path=cover_image_path,
        )
        book.raise_(
            BookPublished(
                book_id=book.id,
                publisher_id=publisher_id,
                title=book.title,
                category=book.category,
                price=price,
            )
        )
        return book

    def update_details(
        self,
        title=_UNSET,
        category=_UNSET,
        publication_date=_UNSET,
        price=_UNSET,
        keywords=_UNSET,
        description=_UNSET,
    ):
        from bookstore.catalogue.book.events import BookDetailsUpdated

        if title is not _UNSET:
            self.title = title.strip()
        if category is not _UNSET:
            self.category = category.strip()
        if publication_date is not _UNSET:
            self.publication_date = publication_date
        if price is not _UNSET:
            self.price = price
        if keywords is not _UNSET:
            self.keywords = json.dumps(_clean_keywords(keywords))
        if description is not _UNSET:
            self.description = description

        self.updated_at = datetime.now()
        self.raise_(
            BookDetailsUpdated(
                book_id=self.id,
                title=self.title,
                category=self.category,
                price=self.price,
            )
        )

    def replace_file(self, file_path):
        """Swap the stored book file, returning the previous path for cleanup."""
        previous = self.file_path
        self.file_path = file_path
        self.updated_at = datetime.now()
        return previous

    def replace_cover(self, cover_image_path):
        previous = self.cover_image_path
        self.cover_image_path = cover_image_path
        self.updated_at = datetime.now()
        return previous

    def record_view(self):
        self.view_count = (self.view_count or 0) + 1

    def record_sale(self, quantity=1):
        self.sales_count = (self.sales_count or 0) + quantity

    def reverse_sale(self, quantity=1):
        self.sales_count = max((self.sales_count or 0) - quantity, 0)

    def rate(self, rating):
        self.rating = rating

    def withdraw(self, withdrawn_by):
        from bookstore.catalogue.book.events import BookWithdrawn

        if not self.is_published:
            raise ValidationError({"status": ["Book is already withdrawn"]})

        self.status = BookStatus.WITHDRAWN.value
        self.updated_at = datetime.now()
        self.raise_(
            BookWithdrawn(
                book_id=self.id,
                publisher_id=self.publisher_id,
                withdrawn_by=withdrawn_by,
                withdrawn_at=self.updated_at,
            )
        )


def _clean_keywords(keywords) -> list[str]:
    if keywords is None:
        return []
    if isinstance(keywords, str):
        keywords = keywords.split(",")
    return list(dict.fromkeys(k.strip().lower() for k in keywords if k and k.strip()))


def parse_publication_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ValidationError({"publication_date": [f"Invalid date: {value!r}"]}) from exc
