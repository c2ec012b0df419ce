"""Payment aggregate — one gateway payment attempt for an order.

A payment is opened either as a payment intent (cards, PayPal, BillEase)
or as a redirect source (GCash, Maya). Its outcome arrives through
confirmation polling or gateway webhooks.

State Machine:
    AWAITING_PAYMENT → REQUIRES_ACTION → SUCCEEDED → REFUNDED
    AWAITING_PAYMENT / REQUIRES_ACTION → FAILED
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text

from bookstore.domain import bookstore
from bookstore.payments.payment.events import (
    PaymentActionRequired,
    PaymentFailed,
    PaymentInitiated,
    PaymentRefunded,
    PaymentSucceeded,
)

DEFAULT_CURRENCY = "PHP"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentStatus(Enum):
    AWAITING_PAYMENT = "awaiting_payment"
    REQUIRES_ACTION = "requires_action"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentKind(Enum):
    INTENT = "intent"
    SOURCE = "source"


_VALID_TRANSITIONS = {
    PaymentStatus.AWAITING_PAYMENT: {
        PaymentStatus.REQUIRES_ACTION,
        PaymentStatus.SUCCEEDED,
        PaymentStatus.FAILED,
    },
    PaymentStatus.REQUIRES_ACTION: {PaymentStatus.SUCCEEDED, PaymentStatus.FAILED},
    PaymentStatus.SUCCEEDED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),  # Terminal
    PaymentStatus.REFUNDED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@bookstore.aggregate
class Payment:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default=DEFAULT_CURRENCY)
    method = String(required=True, max_length=20)
    kind = String(required=True, choices=PaymentKind)
    gateway_reference = String(required=True, max_length=255)
    gateway_payment_id = String(max_length=255)
    checkout_url = String(max_length=1000)
    client_key = String(max_length=255)
    next_action = Text()  # JSON, as returned by the gateway
    status = String(choices=PaymentStatus, default=PaymentStatus.AWAITING_PAYMENT.value)
    failure_reason = String(max_length=500)
    gateway_refund_id = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(
        cls,
        order_id,
        customer_id,
        amount,
        method,
        kind,
        gateway_reference,
        currency=DEFAULT_CURRENCY,
        checkout_url=None,
        client_key=None,
    ):
        now = datetime.now(UTC)
        payment = cls(
            order_id=order_id,
            customer_id=customer_id,
            amount=amount,
            currency=currency,
            method=method,
            kind=kind.value,
            gateway_reference=gateway_reference,
            checkout_url=checkout_url,
            client_key=client_key,
            status=PaymentStatus.AWAITING_PAYMENT.value,
            created_at=now,
            updated_at=now,
        )
        payment.raise_(
            PaymentInitiated(
                payment_id=str(payment.id),
                order_id=str(order_id),
                customer_id=str(customer_id),
                amount=amount,
                currency=currency,
                method=method,
                kind=kind.value,
                gateway_reference=gateway_reference,
                initiated_at=now,
            )
        )
        return payment

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    @property
    def is_final(self) -> bool:
        return PaymentStatus(self.status) in {PaymentStatus.SUCCEEDED, PaymentStatus.FAILED, PaymentStatus.REFUNDED}

    def _assert_can_transition(self, target_status: PaymentStatus) -> None:
        """Validate that the current state allows transition to target."""
        current = PaymentStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def record_action_required(self, next_action: str | None = None) -> None:
        if PaymentStatus(self.status) == PaymentStatus.REQUIRES_ACTION:
            self.next_action = next_action
            return
        self._assert_can_transition(PaymentStatus.REQUIRES_ACTION)
        self.status = PaymentStatus.REQUIRES_ACTION.value
        self.next_action = next_action
        self.updated_at = datetime.now(UTC)
        self.raise_(PaymentActionRequired(payment_id=str(self.id), order_id=str(self.order_id)))

    def record_charge(self, gateway_payment_id: str) -> None:
        """Remember the gateway payment created from a chargeable source."""
        self.gateway_payment_id = gateway_payment_id
        self.updated_at = datetime.now(UTC)

    def record_success(self, gateway_payment_id: str | None = None) -> None:
        """Gateway captured the payment. Duplicate notifications are ignored."""
        if PaymentStatus(self.status) == PaymentStatus.SUCCEEDED:
            return
        self._assert_can_transition(PaymentStatus.SUCCEEDED)

        now = datetime.now(UTC)
        self.status = PaymentStatus.SUCCEEDED.value
        if gateway_payment_id:
            self.gateway_payment_id = gateway_payment_id
        self.next_action = None
        self.updated_at = now
        self.raise_(
            PaymentSucceeded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                gateway_reference=self.gateway_reference,
                gateway_payment_id=self.gateway_payment_id,
                amount=self.amount,
                succeeded_at=now,
            )
        )

    def record_failure(self, reason: str) -> None:
        if PaymentStatus(self.status) == PaymentStatus.FAILED:
            return
        self._assert_can_transition(PaymentStatus.FAILED)

        now = datetime.now(UTC)
        self.status = PaymentStatus.FAILED.value
        self.failure_reason = reason
        self.updated_at = now
        self.raise_(
            PaymentFailed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                reason=reason,
                failed_at=now,
            )
        )

    def record_refund(self, gateway_refund_id: str) -> None:
        self._assert_can_transition(PaymentStatus.REFUNDED)

        now = datetime.now(UTC)
        self.status = PaymentStatus.REFUNDED.value
        self.gateway_refund_id = gateway_refund_id
        self.updated_at = now
        self.raise_(
            PaymentRefunded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                gateway_refund_id=gateway_refund_id,
                amount=self.amount,
                refunded_at=now,
            )
        )

    @property
    def refundable_reference(self) -> str:
        """Gateway id a refund must target: the captured payment, not the intent."""
        return self.gateway_payment_id or self.gateway_reference


@bookstore.repository(part_of=Payment)
class PaymentRepository:
    def by_reference(self, reference) -> Payment | None:
        payment = self._dao.query.filter(gateway_reference=reference).all().first
        if payment is None:
            payment = self._dao.query.filter(gateway_payment_id=reference).all().first
        return payment

    def for_order(self, order_id) -> list[Payment]:
        return self._dao.query.filter(order_id=str(order_id)).order_by("-created_at").all().items

    def succeeded_for_order(self, order_id) -> Payment | None:
        return (
            self._dao.query.filter(order_id=str(order_id), status=PaymentStatus.SUCCEEDED.value)
            .order_by("-created_at")
            .all()
            .first
        )
