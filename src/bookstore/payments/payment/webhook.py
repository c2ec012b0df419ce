"""Payment webhook processing — command and handler.

The API verifies the gateway signature and hands the decoded event over as
a command. Events we don't act on, or that reference a payment we never
opened, are acknowledged and logged so the gateway stops retrying them.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String, Text
from protean.utils.globals import current_domain

from bookstore.domain import bookstore
from bookstore.payments.gateway import get_gateway
from bookstore.payments.gateway.port import WebhookEvent
from bookstore.payments.payment.payment import Payment, PaymentKind

logger = structlog.get_logger(__name__)

PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_INTENT_FAILED = "payment_intent.payment_failed"
PAYMENT_PAID = "payment.paid"
PAYMENT_FAILED = "payment.failed"
SOURCE_CHARGEABLE = "source.chargeable"


def parse_webhook(payload: bytes) -> WebhookEvent:
    """Decode a raw webhook body (``data.attributes.type`` / ``data.attributes.data``)."""
    try:
        body = json.loads(payload or b"{}")
    except ValueError as exc:
        raise ValidationError({"payload": ["Webhook body is not valid JSON"]}) from exc

    attributes = (body.get("data") or {}).get("attributes") or {}
    event_type = attributes.get("type")
    if not event_type:
        raise ValidationError({"payload": ["Webhook body has no event type"]})

    resource = attributes.get("data") or {}
    return WebhookEvent(
        event_type=event_type,
        resource_id=resource.get("id"),
        attributes=resource.get("attributes") or {},
    )


def _failure_message(attributes: dict) -> str:
    error = attributes.get("last_payment_error") or {}
    if isinstance(error, dict) and error.get("failed_message"):
        return error["failed_message"]
    return attributes.get("failed_message") or "Payment failed"


@bookstore.command(part_of="Payment")
class ProcessGatewayWebhook:
    event_type = String(required=True, max_length=100)
    resource_id = String(max_length=255)
    attributes = Text()  # JSON


@bookstore.command_handler(part_of=Payment)
class GatewayWebhookHandler:
    @handle(ProcessGatewayWebhook)
    def process_webhook(self, command):
        event = WebhookEvent(
            event_type=command.event_type,
            resource_id=command.resource_id,
            attributes=json.loads(command.attributes) if command.attributes else {},
        )
        repo = current_domain.repository_for(Payment)
        payment = self._payment_for(repo, event)

        if payment is None:
            logger.warning(
                "Webhook for unknown payment ignored",
                event_type=event.event_type,
                resource_id=event.resource_id,
            )
            return None

        if event.event_type == PAYMENT_INTENT_SUCCEEDED:
            payments = event.attributes.get("payments") or []
            payment.record_success(gateway_payment_id=payments[0]["id"] if payments else None)
        elif event.event_type == PAYMENT_PAID:
            payment.record_success(gateway_payment_id=event.resource_id)
        elif event.event_type in (PAYMENT_INTENT_FAILED, PAYMENT_FAILED):
            if payment.is_final:
                logger.info("Failure webhook for settled payment ignored", payment_id=str(payment.id))
                return payment.status
            payment.record_failure(_failure_message(event.attributes))
        elif event.event_type == SOURCE_CHARGEABLE:
            self._charge_source(payment)
        else:
            logger.info("Unhandled webhook event", event_type=event.event_type)
            return None

        repo.add(payment)
        logger.info(
            "Webhook processed",
            event_type=event.event_type,
            payment_id=str(payment.id),
            status=payment.status,
        )
        return payment.status

    def _payment_for(self, repo, event: WebhookEvent) -> Payment | None:
        if event.event_type in (PAYMENT_PAID, PAYMENT_FAILED):
            source = event.attributes.get("source") or {}
            for reference in (event.attributes.get("payment_intent_id"), source.get("id"), event.resource_id):
                if reference:
                    payment = repo.by_reference(reference)
                    if payment is not None:
                        return payment
            return None
        if event.resource_id:
            return repo.by_reference(event.resource_id)
        return None

    def _charge_source(self, payment: Payment) -> None:
        if payment.kind != PaymentKind.SOURCE.value or payment.gateway_payment_id or payment.is_final:
            logger.info("Source already charged", payment_id=str(payment.id))
            return
        charge = get_gateway().create_payment_from_source(
            source_id=payment.gateway_reference,
            amount=payment.amount,
            currency=payment.currency,
            description=f"{payment.method.capitalize()} payment for order {payment.order_id}",
        )
        payment.record_charge(charge.payment_id)
