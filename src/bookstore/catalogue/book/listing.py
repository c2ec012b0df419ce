"""Read-side queries over the Book catalogue.

Only published books appear in public listings. Results are paged with
``offset``/``limit``; ``all_matching`` walks every page for callers that need
the full set (distinct categories, for example).
"""

from dataclasses import dataclass
from datetime import date

from protean.utils.query import Q

from bookstore.catalogue.book.book import Book, BookStatus
from bookstore.domain import bookstore

DEFAULT_PAGE_SIZE = 20
HIGHLIGHT_SIZE = 4


@dataclass
class BookCriteria:
    """Filters accepted by the catalogue search endpoint. Unset fields are ignored."""

    title: str | None = None
    author: str | None = None
    category: str | None = None
    keyword: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    min_rating: float | None = None
    max_rating: float | None = None
    min_price: float | None = None
    max_price: float | None = None

    def as_filters(self) -> dict:
        filters = {"status": BookStatus.PUBLISHED.value}
        if self.title:
            filters["title__icontains"] = self.title
        if self.author:
            filters["author_name__icontains"] = self.author
        if self.category:
            filters["category__iexact"] = self.category
        if self.keyword:
            filters["keywords__icontains"] = self.keyword.strip().lower()
        if self.start_date:
            filters["publication_date__gte"] = self.start_date
        if self.end_date:
            filters["publication_date__lte"] = self.end_date
        if self.min_rating is not None:
            filters["rating__gte"] = self.min_rating
        if self.max_rating is not None:
            filters["rating__lte"] = self.max_rating
        if self.min_price is not None:
            filters["price__gte"] = self.min_price
        if self.max_price is not None:
            filters["price__lte"] = self.max_price
        return filters


@bookstore.repository(part_of=Book)
class BookRepository:
    def _published(self):
        return self._dao.query.filter(status=BookStatus.PUBLISHED.value)

    def all_matching(self, query, page_size=100):
        offset = 0
        while True:
            batch = query.offset(offset).limit(page_size).all()
            yield from batch.items
            if not batch.has_next:
                return
            offset += page_size

    def listed(self, offset=0, limit=DEFAULT_PAGE_SIZE):
        return self._published().order_by("title").offset(offset).limit(limit).all()

    def newly_released(self, limit=HIGHLIGHT_SIZE) -> list[Book]:
        return self._published().order_by("-publication_date").limit(limit).all().items

    def top_selling(self, limit=HIGHLIGHT_SIZE) -> list[Book]:
        return self._published().order_by("-sales_count").limit(limit).all().items

    def most_popular(self, limit=HIGHLIGHT_SIZE) -> list[Book]:
        return self._published().order_by("-view_count").limit(limit).all().items

    def categories(self) -> list[str]:
        return sorted({book.category for book in self.all_matching(self._published())})

    def by_category(self, category, offset=0, limit=DEFAULT_PAGE_SIZE):
        return (
            self._published()
            .filter(category__iexact=category)
            .order_by("title")
            .offset(offset)
            .limit(limit)
            .all()
        )

    def by_publisher(self, publisher_id, include_withdrawn=True) -> list[Book]:
        query = self._dao.query.filter(publisher_id=str(publisher_id))
        if not include_withdrawn:
            query = query.filter(status=BookStatus.PUBLISHED.value)
        return list(self.all_matching(query.order_by("-created_at")))

    def search(self, text, offset=0, limit=DEFAULT_PAGE_SIZE):
        """Free-text search over title and author name."""
        return (
            self._published()
            .filter(Q(title__icontains=text) | Q(author_name__icontains=text))
            .order_by("-sales_count")
            .offset(offset)
            .limit(limit)
            .all()
        )

    def matching(self, criteria: BookCriteria, offset=0, limit=DEFAULT_PAGE_SIZE):
        return (
            self._dao.query.filter(**criteria.as_filters())
            .order_by("title")
            .offset(offset)
            .limit(limit)
            .all()
        )
