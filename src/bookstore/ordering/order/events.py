"""Domain events for the Order aggregate.

Line items travel as a JSON array of
``{book_id, publisher_id, title, quantity, price}`` so reacting aggregates
(customer history, publisher earnings, sales counters) need not load the order.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from bookstore.domain import bookstore


@bookstore.event(part_of="Order")
class OrderPlaced:
    """A customer checked out their cart."""

    __version__ = 1

    order_id = Identifier(required=True)
    transaction_id = String(required=True)
    customer_id = Identifier(required=True)
    payment_method = String(required=True)
    total_price = Float(required=True)
    item_count = Integer(required=True)
    items = Text(required=True)
    placed_at = DateTime(required=True)


@bookstore.event(part_of="Order")
class PaymentProofSubmitted:
    """Proof of a manual payment was uploaded and awaits admin review."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    proof_path = String(required=True)
    submitted_at = DateTime(required=True)


@bookstore.event(part_of="Order")
class PaymentProofReviewed:
    __version__ = 1

    order_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    approved = Boolean(required=True)
    admin_notes = String()
    reviewed_at = DateTime(required=True)


@bookstore.event(part_of="Order")
class OrderStatusChanged:
    """Emitted for every status transition, including the ones with a dedicated event."""

    __version__ = 1

    order_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    reason = String()
    changed_at = DateTime(required=True)


@bookstore.event(part_of="Order")
class OrderCompleted:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total_price = Float(required=True)
    items = Text(required=True)
    completed_at = DateTime(required=True)


@bookstore.event(part_of="Order")
class OrderFailed:
    """Payment was rejected or the order was cancelled before completion."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = String()
    failed_at = DateTime(required=True)


@bookstore.event(part_of="Order")
class BookAccessGranted:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)


@bookstore.event(part_of="Order")
class RefundRequested:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = String(required=True)
    requested_at = DateTime(required=True)


@bookstore.event(part_of="Order")
class OrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total_price = Float(required=True)
    items = Text(required=True)
    refunded_at = DateTime(required=True)
