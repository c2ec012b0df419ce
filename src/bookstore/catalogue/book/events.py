"""Domain events for the Book aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from bookstore.domain import bookstore


@bookstore.event(part_of="Book")
class BookPublished:
    """A publisher uploaded a new book to the catalogue."""

    __version__ = 1

    book_id: Identifier(required=True)
    publisher_id: Identifier(required=True)
    title: String(required=True)
    category: String(required=True)
    price: Float(required=True)


@bookstore.event(part_of="Book")
class BookDetailsUpdated:
    __version__ = 1

    book_id: Identifier(required=True)
    title: String(required=True)
    category: String(required=True)
    price: Float(required=True)


@bookstore.event(part_of="Book")
class BookWithdrawn:
    """A book was taken off sale by its publisher or an admin."""

    __version__ = 1

    book_id: Identifier(required=True)
    publisher_id: Identifier(required=True)
    withdrawn_by: Identifier(required=True)
    withdrawn_at: DateTime(required=True)
