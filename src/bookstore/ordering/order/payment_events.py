"""Order reacts to gateway payment outcomes.

PaymentSucceeded completes the order and unlocks its books; PaymentFailed
fails it. Both are safe to receive more than once.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from bookstore.domain import bookstore
from bookstore.ordering.order.order import Order, OrderStatus
from bookstore.payments.payment.events import PaymentFailed, PaymentSucceeded

logger = structlog.get_logger(__name__)


@bookstore.event_handler(part_of=Order, stream_category="bookstore::payment")
class PaymentOrderEventHandler:
    @handle(PaymentSucceeded)
    def on_payment_succeeded(self, event: PaymentSucceeded) -> None:
        repo = current_domain.repository_for(Order)
        order = repo.get(event.order_id)
        if OrderStatus(order.status) in (OrderStatus.FAILED, OrderStatus.REFUNDED):
            logger.error(
                "Payment captured for closed order",
                order_id=str(order.id),
                status=order.status,
                payment_id=str(event.payment_id),
            )
            return
        order.mark_paid(gateway_reference=event.gateway_reference)
        repo.add(order)
        logger.info("Order paid through gateway", order_id=str(order.id), payment_id=str(event.payment_id))

    @handle(PaymentFailed)
    def on_payment_failed(self, event: PaymentFailed) -> None:
        repo = current_domain.repository_for(Order)
        order = repo.get(event.order_id)
        if OrderStatus(order.status) not in (OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.FAILED):
            # A late failure for an attempt the customer already replaced
            logger.warning(
                "Payment failure for settled order ignored",
                order_id=str(order.id),
                status=order.status,
            )
            return
        order.mark_payment_failed(reason=event.reason)
        repo.add(order)
        logger.info("Order failed on payment", order_id=str(order.id), reason=event.reason)
