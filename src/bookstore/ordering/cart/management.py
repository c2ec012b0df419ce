"""Cart management — commands and handler.

Carts are addressed by customer: the first command for a customer creates
their cart.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from bookstore.catalogue.book.book import Book
from bookstore.domain import bookstore
from bookstore.ordering.cart.cart import Cart


def cart_for(customer_id) -> Cart:
    """Return the customer's cart, creating (and persisting) one on first use."""
    repo = current_domain.repository_for(Cart)
    cart = repo.find_by_customer(customer_id)
    if cart is None:
        cart = Cart.create(customer_id=str(customer_id))
        repo.add(cart)
    return cart


def _purchasable(book_id) -> Book:
    book = current_domain.repository_for(Book).get(book_id)
    if not book.is_published:
        raise ValidationError({"book_id": [f"Book {book_id} is no longer available"]})
    return book


@bookstore.command(part_of="Cart")
class AddToCart:
    customer_id = Identifier(required=True)
    book_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)


@bookstore.command(part_of="Cart")
class UpdateCartQuantity:
    """Set a line's quantity; zero removes it."""

    customer_id = Identifier(required=True)
    book_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=0)


@bookstore.command(part_of="Cart")
class RemoveFromCart:
    customer_id = Identifier(required=True)
    book_id = Identifier(required=True)


@bookstore.command(part_of="Cart")
class ClearCart:
    customer_id = Identifier(required=True)


@bookstore.command(part_of="Cart")
class MergeGuestCart:
    """Fold lines collected before sign-in into the customer's cart."""

    customer_id = Identifier(required=True)
    guest_items = Text(required=True)  # JSON: list of {book_id, quantity}


@bookstore.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        book = _purchasable(command.book_id)
        cart = cart_for(command.customer_id)
        cart.add_item(
            book_id=book.id,
            quantity=command.quantity or 1,
            price=book.price,
            title=book.title,
            publisher_id=book.publisher_id,
        )
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(UpdateCartQuantity)
    def update_quantity(self, command):
        cart = cart_for(command.customer_id)
        cart.update_quantity(book_id=command.book_id, quantity=command.quantity)
        current_domain.repository_for(Cart).add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = cart_for(command.customer_id)
        cart.remove_item(book_id=command.book_id)
        current_domain.repository_for(Cart).add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = cart_for(command.customer_id)
        cart.clear()
        current_domain.repository_for(Cart).add(cart)

    @handle(MergeGuestCart)
    def merge_guest_cart(self, command):
        guest_items = (
            json.loads(command.guest_items) if isinstance(command.guest_items, str) else command.guest_items
        )

        lines = []
        for item in guest_items:
            book = _purchasable(item["book_id"])
            lines.append(
                {
                    "book_id": book.id,
                    "publisher_id": book.publisher_id,
                    "title": book.title,
                    "quantity": item.get("quantity", 1),
                    "price": book.price,
                }
            )

        cart = cart_for(command.customer_id)
        cart.merge(lines)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)
