"""Order aggregate — the core of the ordering context.

An order is a snapshot of a cart taken at checkout. Its line items and
total never change afterwards; only payment, review, access and refund
state move, always through the status machine below.

State Machine:
    PENDING → PROCESSING → COMPLETED → REFUNDED
    PENDING → COMPLETED              (gateway payment succeeded)
    PENDING / PROCESSING → FAILED    (payment rejected or cancelled)

Manual methods (bank transfer, cash deposit, over the counter) pass through
PROCESSING while an admin reviews the uploaded payment proof.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from bookstore.domain import bookstore
from bookstore.ordering.order.events import (
    BookAccessGranted,
    OrderCompleted,
    OrderFailed,
    OrderPlaced,
    OrderRefunded,
    OrderStatusChanged,
    PaymentProofReviewed,
    PaymentProofSubmitted,
    RefundRequested,
)
from bookstore.utils.settings import frontend_url


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    BANK_TRANSFER = "bank_transfer"
    GCASH = "gcash"
    MAYA = "maya"
    CASH_DEPOSIT = "cash_deposit"
    OVER_COUNTER = "over_counter"


class ProofStatus(Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


# Methods settled outside the gateway and confirmed by an admin reviewing proof
MANUAL_METHODS = frozenset({PaymentMethod.BANK_TRANSFER, PaymentMethod.CASH_DEPOSIT, PaymentMethod.OVER_COUNTER})

# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.COMPLETED, OrderStatus.FAILED},
    OrderStatus.PROCESSING: {OrderStatus.COMPLETED, OrderStatus.FAILED},
    OrderStatus.COMPLETED: {OrderStatus.REFUNDED},
    OrderStatus.FAILED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}

_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.PROCESSING}


def is_manual(payment_method: str) -> bool:
    return PaymentMethod(payment_method) in MANUAL_METHODS


# ---------------------------------------------------------------------------
# Value Objects & Entities
# ---------------------------------------------------------------------------
@bookstore.value_object(part_of="Order")
class PaymentProof:
    """Evidence of a manual payment and the outcome of its review.

    Replaced wholesale at submission and again at review.
    """

    proof_path = String(required=True, max_length=500)
    customer_notes = String(max_length=1000)
    status = String(choices=ProofStatus, default=ProofStatus.SUBMITTED.value)
    submitted_by = Identifier(required=True)
    submitted_at = DateTime(required=True)
    reviewed_by = Identifier()
    reviewed_at = DateTime()
    admin_notes = String(max_length=1000)


@bookstore.entity(part_of="Order")
class OrderItem:
    book_id = Identifier(required=True)
    publisher_id = Identifier()
    title = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)

    @property
    def subtotal(self) -> float:
        return round(self.quantity * self.price, 2)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@bookstore.aggregate
class Order:
    transaction_id = String(required=True, max_length=20, unique=True)
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    total_price = Float(required=True, min_value=0.0)
    payment_method = String(required=True, choices=PaymentMethod)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_proof = ValueObject(PaymentProof)
    gateway_reference = String(max_length=255)
    refund_requested = Boolean(default=False)
    refund_processed = Boolean(default=False)
    refund_reason = String(max_length=1000)
    access_granted = Boolean(default=False)
    notes = Text()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def must_have_at_least_one_item(self):
        if not self.items:
            raise ValidationError({"items": ["An order must contain at least one item"]})

    @invariant.post
    def total_must_equal_sum_of_items(self):
        expected = round(sum(item.subtotal for item in self.items), 2)
        if round(self.total_price, 2) != expected:
            raise ValidationError({"total_price": ["Order total does not match its items"]})

    @invariant.post
    def access_requires_completed_order(self):
        if self.access_granted and self.status != OrderStatus.COMPLETED.value:
            raise ValidationError({"access_granted": ["Access can only be granted on completed orders"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, transaction_id, customer_id, payment_method, lines):
        """Create an order from cart lines.

        Args:
            lines: dicts with book_id, publisher_id, title, quantity and price.
        """
        if not lines:
            raise ValidationError({"items": ["Cannot create an order from an empty cart"]})
        if payment_method not in {m.value for m in PaymentMethod}:
            raise ValidationError({"payment_method": [f"Unsupported payment method: {payment_method}"]})

        items = [
            OrderItem(
                book_id=line["book_id"],
                publisher_id=line.get("publisher_id"),
                title=line.get("title"),
                quantity=line["quantity"],
                price=line["price"],
            )
            for line in lines
        ]
        now = datetime.now(UTC)
        order = cls(
            transaction_id=transaction_id,
            customer_id=customer_id,
            items=items,
            total_price=round(sum(item.subtotal for item in items), 2),
            payment_method=payment_method,
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                transaction_id=transaction_id,
                customer_id=str(customer_id),
                payment_method=payment_method,
                total_price=order.total_price,
                item_count=len(items),
                items=order.items_json(),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def is_manual_payment(self) -> bool:
        return is_manual(self.payment_method)

    def items_json(self) -> str:
        return json.dumps(
            [
                {
                    "book_id": str(item.book_id),
                    "publisher_id": str(item.publisher_id) if item.publisher_id else None,
                    "title": item.title,
                    "quantity": item.quantity,
                    "price": item.price,
                }
                for item in self.items
            ]
        )

    def contains_book(self, book_id) -> bool:
        return any(str(item.book_id) == str(book_id) for item in self.items)

    def _add_note(self, note):
        self.notes = f"{self.notes}\n{note}" if self.notes else note

    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _transition(self, target_status, reason=None):
        """Move to ``target_status``; access never survives leaving COMPLETED."""
        self._assert_can_transition(target_status)

        previous = self.status
        now = datetime.now(UTC)
        with atomic_change(self):
            if target_status != OrderStatus.COMPLETED:
                self.access_granted = False
            self.status = target_status.value
            self.updated_at = now
            if reason:
                self._add_note(reason)

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=previous,
                to_status=target_status.value,
                reason=reason,
                changed_at=now,
            )
        )

        if target_status == OrderStatus.COMPLETED:
            self.raise_(
                OrderCompleted(
                    order_id=str(self.id),
                    customer_id=str(self.customer_id),
                    total_price=self.total_price,
                    items=self.items_json(),
                    completed_at=now,
                )
            )
        elif target_status == OrderStatus.FAILED:
            self.raise_(
                OrderFailed(
                    order_id=str(self.id),
                    customer_id=str(self.customer_id),
                    reason=reason,
                    failed_at=now,
                )
            )

    # -------------------------------------------------------------------
    # Manual payment verification
    # -------------------------------------------------------------------
    def submit_payment_proof(self, proof_path, submitted_by, customer_notes=None):
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise ValidationError({"status": ["Payment proof can only be submitted for pending orders"]})
        if not self.is_manual_payment:
            raise ValidationError(
                {"payment_method": [f"Payment proof is not accepted for {self.payment_method} payments"]}
            )

        now = datetime.now(UTC)
        self.payment_proof = PaymentProof(
            proof_path=proof_path,
            customer_notes=customer_notes,
            status=ProofStatus.SUBMITTED.value,
            submitted_by=submitted_by,
            submitted_at=now,
        )
        self._transition(OrderStatus.PROCESSING, reason="Payment proof submitted for verification")

        self.raise_(
            PaymentProofSubmitted(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                proof_path=proof_path,
                submitted_at=now,
            )
        )

    def review_payment_proof(self, reviewer_id, approved, admin_notes=None):
        """Admin decision on a submitted proof: approval completes and unlocks the order."""
        if OrderStatus(self.status) != OrderStatus.PROCESSING:
            raise ValidationError({"status": ["Only orders under verification can be reviewed"]})
        if self.payment_proof is None or self.payment_proof.status != ProofStatus.SUBMITTED.value:
            raise ValidationError({"payment_proof": ["No payment proof awaiting review"]})

        now = datetime.now(UTC)
        proof = self.payment_proof
        self.payment_proof = PaymentProof(
            proof_path=proof.proof_path,
            customer_notes=proof.customer_notes,
            status=(ProofStatus.APPROVED if approved else ProofStatus.REJECTED).value,
            submitted_by=proof.submitted_by,
            submitted_at=proof.submitted_at,
            reviewed_by=reviewer_id,
            reviewed_at=now,
            admin_notes=admin_notes,
        )

        if approved:
            self._transition(OrderStatus.COMPLETED, reason="Payment verified by admin")
            self.grant_access()
        else:
            reason = "Order cancelled: payment proof rejected"
            if admin_notes:
                reason = f"{reason} ({admin_notes})"
            self._transition(OrderStatus.FAILED, reason=reason)

        self.raise_(
            PaymentProofReviewed(
                order_id=str(self.id),
                reviewer_id=str(reviewer_id),
                approved=approved,
                admin_notes=admin_notes,
                reviewed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Gateway payment outcomes
    # -------------------------------------------------------------------
    def attach_gateway_reference(self, reference):
        self.gateway_reference = reference
        self.updated_at = datetime.now(UTC)

    def mark_paid(self, gateway_reference=None):
        """Gateway confirmed the payment. Repeated confirmations are ignored."""
        if OrderStatus(self.status) == OrderStatus.COMPLETED:
            return
        if gateway_reference:
            self.gateway_reference = gateway_reference
        self._transition(OrderStatus.COMPLETED, reason="Payment confirmed by gateway")
        self.grant_access()

    def mark_payment_failed(self, reason=None):
        if OrderStatus(self.status) == OrderStatus.FAILED:
            return
        self._transition(OrderStatus.FAILED, reason=reason or "Payment failed")

    # -------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------
    def grant_access(self):
        if OrderStatus(self.status) != OrderStatus.COMPLETED:
            raise ValidationError({"access_granted": ["Book access can only be granted for completed orders"]})
        if self.access_granted:
            return

        self.access_granted = True
        self.updated_at = datetime.now(UTC)
        self.raise_(BookAccessGranted(order_id=str(self.id), customer_id=str(self.customer_id)))

    def download_link(self, book_id) -> str:
        if not self.access_granted:
            raise ValidationError({"access_granted": ["Access to this order's books has not been granted"]})
        if not self.contains_book(book_id):
            raise ValidationError({"book_id": ["Book is not part of this order"]})
        return f"{frontend_url()}/download/{self.id}/{book_id}"

    # -------------------------------------------------------------------
    # Cancellation & refunds
    # -------------------------------------------------------------------
    def cancel(self, reason=None):
        if OrderStatus(self.status) not in _CANCELLABLE_STATES:
            raise ValidationError({"status": [f"Cannot cancel an order that is {self.status}"]})
        self._transition(OrderStatus.FAILED, reason=f"Order cancelled: {reason or 'No reason provided'}")

    def request_refund(self, reason):
        if OrderStatus(self.status) != OrderStatus.COMPLETED:
            raise ValidationError({"status": ["Only completed orders can be refunded"]})
        if self.refund_requested:
            raise ValidationError({"refund_requested": ["A refund has already been requested"]})

        now = datetime.now(UTC)
        self.refund_requested = True
        self.refund_reason = reason
        self.updated_at = now
        self.raise_(
            RefundRequested(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                reason=reason,
                requested_at=now,
            )
        )

    def process_refund(self):
        if not self.refund_requested:
            raise ValidationError({"refund_requested": ["No refund has been requested for this order"]})
        if OrderStatus(self.status) != OrderStatus.COMPLETED:
            raise ValidationError({"status": ["Only completed orders can be refunded"]})

        self._transition(OrderStatus.REFUNDED, reason=f"Refund processed: {self.refund_reason}")
        self.refund_processed = True

        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                total_price=self.total_price,
                items=self.items_json(),
                refunded_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Admin override
    # -------------------------------------------------------------------
    def update_status(self, target, reason=None):
        """Move to any status the transition map allows, except REFUNDED.

        Refunds only happen through ``process_refund``, which requires a
        refund request and reverses the gateway charge.
        """
        try:
            target_status = OrderStatus(target)
        except ValueError as exc:
            raise ValidationError({"status": [f"Unknown order status: {target}"]}) from exc
        if target_status == OrderStatus.REFUNDED:
            raise ValidationError({"status": ["Refunds must go through the refund request and processing flow"]})
        self._transition(target_status, reason=reason)


@bookstore.repository(part_of=Order)
class OrderRepository:
    def for_customer(self, customer_id) -> list[Order]:
        return (
            self._dao.query.filter(customer_id=str(customer_id)).order_by("-created_at").limit(100).all().items
        )

    def awaiting_verification(self) -> list[Order]:
        return (
            self._dao.query.filter(status=OrderStatus.PROCESSING.value)
            .order_by("created_at")
            .limit(100)
            .all()
            .items
        )

    def by_gateway_reference(self, reference) -> Order | None:
        return self._dao.query.filter(gateway_reference=reference).all().first
