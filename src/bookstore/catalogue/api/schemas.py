"""Pydantic response schemas for the Catalogue API.

Book uploads arrive as multipart forms, so requests are declared as form
fields on the routes rather than as models here.
"""

from datetime import date, datetime

from pydantic import BaseModel

from bookstore.utils.storage import public_url


class BookIdResponse(BaseModel):
    book_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class BookResponse(BaseModel):
    id: str
    title: str
    publisher_id: str
    author_name: str
    category: str
    publication_date: date
    price: float
    keywords: list[str]
    description: str | None = None
    rating: float
    sales_count: int
    view_count: int
    cover_image_url: str | None = None
    status: str
    created_at: datetime | None = None

    @classmethod
    def from_book(cls, book) -> "BookResponse":
        return cls(
            id=str(book.id),
            title=book.title,
            publisher_id=str(book.publisher_id),
            author_name=book.author_name,
            category=book.category,
            publication_date=book.publication_date,
            price=book.price,
            keywords=book.keyword_list,
            description=book.description,
            rating=book.rating or 0.0,
            sales_count=book.sales_count or 0,
            view_count=book.view_count or 0,
            cover_image_url=public_url(book.cover_image_path),
            status=book.status,
            created_at=book.created_at,
        )


class BookPageResponse(BaseModel):
    items: list[BookResponse]
    total: int
    offset: int
    limit: int

    @classmethod
    def from_results(cls, results, offset: int, limit: int) -> "BookPageResponse":
        return cls(
            items=[BookResponse.from_book(book) for book in results.items],
            total=results.total,
            offset=offset,
            limit=limit,
        )
