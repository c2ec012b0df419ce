"""Domain events for the Payment aggregate.

PaymentSucceeded and PaymentFailed are consumed by the ordering context to
complete or fail the order the payment belongs to.
"""

from protean.fields import DateTime, Float, Identifier, String

from bookstore.domain import bookstore


@bookstore.event(part_of="Payment")
class PaymentInitiated:
    """A gateway intent or redirect source was opened for an order."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    method = String(required=True)
    kind = String(required=True)
    gateway_reference = String(required=True)
    initiated_at = DateTime(required=True)


@bookstore.event(part_of="Payment")
class PaymentActionRequired:
    """The customer must complete an extra step, such as 3-D Secure."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)


@bookstore.event(part_of="Payment")
class PaymentSucceeded:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    gateway_reference = String(required=True)
    gateway_payment_id = String()
    amount = Float(required=True)
    succeeded_at = DateTime(required=True)


@bookstore.event(part_of="Payment")
class PaymentFailed:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)


@bookstore.event(part_of="Payment")
class PaymentRefunded:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    gateway_refund_id = String(required=True)
    amount = Float(required=True)
    refunded_at = DateTime(required=True)
