"""Gateway refunds for orders paid through an automated method."""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from bookstore.payments.gateway import get_gateway
from bookstore.payments.payment.payment import Payment

logger = structlog.get_logger(__name__)

DEFAULT_REFUND_REASON = "requested_by_customer"


def refund_order_payment(order) -> Payment:
    """Refund the order's captured payment at the gateway.

    Runs inside the caller's unit of work, so a gateway error leaves both
    the order and the payment untouched.
    """
    repo = current_domain.repository_for(Payment)
    payment = repo.succeeded_for_order(order.id)
    if payment is None:
        raise ValidationError({"order_id": ["No captured payment found for this order"]})

    result = get_gateway().create_refund(
        payment.refundable_reference,
        payment.amount,
        DEFAULT_REFUND_REASON,
    )
    payment.record_refund(result.refund_id)
    repo.add(payment)

    logger.info(
        "Gateway refund created",
        order_id=str(order.id),
        payment_id=str(payment.id),
        refund_id=result.refund_id,
        refund_reason=order.refund_reason,
    )
    return payment
