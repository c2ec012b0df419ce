"""Gateway payment initiation and confirmation — commands and handler."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from bookstore.domain import bookstore
from bookstore.ordering.order.order import Order, OrderStatus, PaymentMethod
from bookstore.payments.gateway import get_gateway
from bookstore.payments.payment.payment import Payment, PaymentKind
from bookstore.utils.settings import frontend_url

logger = structlog.get_logger(__name__)

# Redirect methods and the source type the gateway knows them by
_SOURCE_TYPES = {
    PaymentMethod.GCASH.value: "gcash",
    PaymentMethod.MAYA.value: "paymaya",
}

# Intent statuses that need the customer to do something before settling
_ACTION_STATUSES = {"awaiting_next_action", "requires_action"}


def _payable_order(order_id) -> Order:
    order = current_domain.repository_for(Order).get(order_id)
    if OrderStatus(order.status) != OrderStatus.PENDING:
        raise ValidationError({"order_id": [f"Order is {order.status}; only pending orders can be paid"]})
    if order.is_manual_payment:
        raise ValidationError(
            {"payment_method": [f"{order.payment_method} payments are verified manually, not through the gateway"]}
        )
    return order


@bookstore.command(part_of="Payment")
class CreatePaymentIntent:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)


@bookstore.command(part_of="Payment")
class CreateRedirectPayment:
    """Open a GCash or Maya source the customer authorises on the wallet's page."""

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    method = String(required=True, max_length=20)


@bookstore.command(part_of="Payment")
class ConfirmPayment:
    """Poll the gateway for an intent's outcome and settle the payment."""

    payment_intent_id = String(required=True, max_length=255)
    order_id = Identifier(required=True)


@bookstore.command_handler(part_of=Payment)
class PaymentInitiationHandler:
    @handle(CreatePaymentIntent)
    def create_payment_intent(self, command):
        order = _payable_order(command.order_id)
        if order.payment_method in _SOURCE_TYPES:
            raise ValidationError(
                {"payment_method": [f"{order.payment_method} payments use a redirect, not a payment intent"]}
            )

        intent = get_gateway().create_payment_intent(
            amount=order.total_price,
            currency="PHP",
            payment_method=order.payment_method,
            description=f"Order payment {order.transaction_id}",
            metadata={"order_id": str(order.id), "customer_id": str(command.customer_id)},
        )

        payment = Payment.open(
            order_id=order.id,
            customer_id=command.customer_id,
            amount=order.total_price,
            method=order.payment_method,
            kind=PaymentKind.INTENT,
            gateway_reference=intent.intent_id,
            client_key=intent.client_key,
        )
        order.attach_gateway_reference(intent.intent_id)

        current_domain.repository_for(Payment).add(payment)
        current_domain.repository_for(Order).add(order)
        logger.info("Payment intent created", order_id=str(order.id), intent_id=intent.intent_id)
        return str(payment.id)

    @handle(CreateRedirectPayment)
    def create_redirect_payment(self, command):
        source_type = _SOURCE_TYPES.get(command.method)
        if source_type is None:
            raise ValidationError({"method": [f"Unsupported redirect payment method: {command.method}"]})

        order = _payable_order(command.order_id)
        if order.payment_method != command.method:
            raise ValidationError({"method": [f"Order was placed for {order.payment_method} payment"]})

        base = frontend_url()
        source = get_gateway().create_source(
            amount=order.total_price,
            currency="PHP",
            source_type=source_type,
            success_url=f"{base}/payment/success",
            failed_url=f"{base}/payment/failed",
            description=f"{command.method.capitalize()} payment for order {order.transaction_id}",
            metadata={"order_id": str(order.id), "customer_id": str(command.customer_id)},
        )

        payment = Payment.open(
            order_id=order.id,
            customer_id=command.customer_id,
            amount=order.total_price,
            method=order.payment_method,
            kind=PaymentKind.SOURCE,
            gateway_reference=source.source_id,
            checkout_url=source.checkout_url,
        )
        order.attach_gateway_reference(source.source_id)

        current_domain.repository_for(Payment).add(payment)
        current_domain.repository_for(Order).add(order)
        logger.info("Redirect payment created", order_id=str(order.id), source_id=source.source_id)
        return str(payment.id)

    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        """Settle a payment from the intent's current gateway status.

        Returns a dict with the resulting ``status`` and, when the customer
        still has to act, the gateway's ``next_action``.
        """
        repo = current_domain.repository_for(Payment)
        payment = repo.by_reference(command.payment_intent_id)
        if payment is None or str(payment.order_id) != str(command.order_id):
            raise ValidationError({"payment_intent_id": ["No payment for this order uses that intent"]})
        if payment.is_final:
            return {"status": payment.status, "next_action": None}

        intent = get_gateway().retrieve_payment_intent(command.payment_intent_id)

        if intent.status == "succeeded":
            payment.record_success(gateway_payment_id=intent.payment_id)
        elif intent.status in _ACTION_STATUSES:
            payment.record_action_required(json.dumps(intent.next_action) if intent.next_action else None)
        else:
            payment.record_failure(intent.last_error or f"Payment failed with status: {intent.status}")

        repo.add(payment)
        return {"status": payment.status, "next_action": intent.next_action}

