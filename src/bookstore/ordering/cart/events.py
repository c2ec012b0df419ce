"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer

from bookstore.domain import bookstore


@bookstore.event(part_of="Cart")
class CartItemAdded:
    __version__ = 1

    cart_id = Identifier(required=True)
    book_id = Identifier(required=True)
    quantity = Integer(required=True)
    price = Float(required=True)


@bookstore.event(part_of="Cart")
class CartQuantityUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    book_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@bookstore.event(part_of="Cart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    book_id = Identifier(required=True)


@bookstore.event(part_of="Cart")
class CartCleared:
    """All lines were removed, either by the customer or by checkout."""

    __version__ = 1

    cart_id = Identifier(required=True)


@bookstore.event(part_of="Cart")
class CartsMerged:
    """Lines from a guest session were folded into the customer's cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    lines_merged = Integer(required=True)
