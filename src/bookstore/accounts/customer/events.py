"""Domain events for the Customer profile aggregate."""

from protean.fields import Identifier, Integer, String

from bookstore.domain import bookstore


@bookstore.event(part_of="Customer")
class CustomerProfileCreated:
    __version__ = 1

    customer_id: Identifier(required=True)
    user_id: Identifier(required=True)


@bookstore.event(part_of="Customer")
class WishlistChanged:
    """A book was added to or removed from a wishlist."""

    __version__ = 1

    customer_id: Identifier(required=True)
    book_id: Identifier(required=True)
    action: String(required=True, max_length=10)  # "added" or "removed"


@bookstore.event(part_of="Customer")
class ReadingProgressUpdated:
    __version__ = 1

    customer_id: Identifier(required=True)
    book_id: Identifier(required=True)
    status: String(required=True)
    progress: Integer(required=True)
