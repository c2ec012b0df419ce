"""Checkout — turns the customer's cart into an Order."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from bookstore.domain import bookstore
from bookstore.ordering.cart.cart import Cart
from bookstore.ordering.order.order import Order, PaymentMethod
from bookstore.ordering.order.sequence import next_transaction_id

logger = structlog.get_logger(__name__)


@bookstore.command(part_of="Order")
class PlaceOrder:
    """Snapshot the cart into a pending order and empty the cart."""

    customer_id = Identifier(required=True)
    payment_method = String(required=True, max_length=20)
    notes = String(max_length=1000)


@bookstore.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.find_by_customer(command.customer_id)
        if cart is None or cart.is_empty:
            raise ValidationError({"cart": ["Cannot create an order from an empty cart"]})
        if command.payment_method not in {m.value for m in PaymentMethod}:
            raise ValidationError({"payment_method": [f"Unsupported payment method: {command.payment_method}"]})

        lines = [
            {
                "book_id": line.book_id,
                "publisher_id": line.publisher_id,
                "title": line.title,
                "quantity": line.quantity,
                "price": line.price,
            }
            for line in cart.items
        ]

        order = Order.place(
            transaction_id=next_transaction_id(),
            customer_id=command.customer_id,
            payment_method=command.payment_method,
            lines=lines,
        )
        if command.notes:
            order.notes = command.notes

        cart.clear()

        current_domain.repository_for(Order).add(order)
        cart_repo.add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            transaction_id=order.transaction_id,
            total_price=order.total_price,
        )
        return str(order.id)
