"""Order lifecycle — access, cancellation, refunds and admin status changes."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from bookstore.domain import bookstore
from bookstore.ordering.order.order import Order

logger = structlog.get_logger(__name__)


@bookstore.command(part_of="Order")
class GrantBookAccess:
    order_id = Identifier(required=True)


@bookstore.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=1000)


@bookstore.command(part_of="Order")
class RequestRefund:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=1000)


@bookstore.command(part_of="Order")
class ProcessRefund:
    """Settle a requested refund, through the gateway for automated methods."""

    order_id = Identifier(required=True)


@bookstore.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    reason = String(max_length=1000)


@bookstore.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(GrantBookAccess)
    def grant_book_access(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.grant_access()
        repo.add(order)

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(reason=command.reason)
        repo.add(order)

    @handle(RequestRefund)
    def request_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.request_refund(reason=command.reason)
        repo.add(order)

    @handle(ProcessRefund)
    def process_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.process_refund()

        if not order.is_manual_payment:
            from bookstore.payments.payment.refund import refund_order_payment

            # A gateway failure raises and rolls the whole refund back
            refund_order_payment(order)

        repo.add(order)
        logger.info("Order refunded", order_id=str(order.id), payment_method=order.payment_method)

    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_status(command.status, reason=command.reason)
        repo.add(order)
