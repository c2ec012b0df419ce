"""Tests for Order state machine transitions."""

import pytest
from protean.exceptions import ValidationError

from bookstore.ordering.order.events import (
    BookAccessGranted,
    OrderCompleted,
    OrderFailed,
    OrderRefunded,
    OrderStatusChanged,
    PaymentProofReviewed,
    PaymentProofSubmitted,
)
from bookstore.ordering.order.order import Order, OrderStatus, ProofStatus


def _make_order(payment_method="bank_transfer"):
    order = Order.place(
        transaction_id="TXN-00000001",
        customer_id="cust-001",
        payment_method=payment_method,
        lines=[
            {"book_id": "book-1", "publisher_id": "pub-1", "title": "First", "quantity": 1, "price": 120.0},
            {"book_id": "book-2", "publisher_id": "pub-2", "title": "Second", "quantity": 2, "price": 80.5},
        ],
    )
    order._events.clear()
    return order


def _order_at_state(target_status, payment_method="bank_transfer"):
    """Walk a manual-payment order through valid transitions to reach target."""
    order = _make_order(payment_method)
    if target_status == OrderStatus.PENDING:
        return order

    order.submit_payment_proof("payment-proofs/receipt.png", submitted_by="user-001")
    if target_status == OrderStatus.PROCESSING:
        order._events.clear()
        return order

    if target_status == OrderStatus.FAILED:
        order.review_payment_proof("admin-001", approved=False)
        order._events.clear()
        return order

    order.review_payment_proof("admin-001", approved=True)
    if target_status == OrderStatus.COMPLETED:
        order._events.clear()
        return order

    order.request_refund("Wrong book")
    order.process_refund()
    order._events.clear()
    return order


class TestManualVerification:
    def test_submit_proof_moves_to_processing(self):
        order = _make_order()
        order.submit_payment_proof("payment-proofs/receipt.png", submitted_by="user-001", customer_notes="BPI")

        assert order.status == OrderStatus.PROCESSING.value
        assert order.payment_proof.status == ProofStatus.SUBMITTED.value
        assert order.payment_proof.customer_notes == "BPI"
        assert any(isinstance(e, PaymentProofSubmitted) for e in order._events)

    def test_submit_proof_rejected_for_gateway_methods(self):
        order = _make_order(payment_method="credit_card")
        with pytest.raises(ValidationError) as exc:
            order.submit_payment_proof("payment-proofs/receipt.png", submitted_by="user-001")
        assert "payment_method" in exc.value.messages

    def test_submit_proof_twice_is_rejected(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        with pytest.raises(ValidationError):
            order.submit_payment_proof("payment-proofs/again.png", submitted_by="user-001")

    def test_approval_completes_and_grants_access(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        order.review_payment_proof("admin-001", approved=True, admin_notes="Matches bank statement")

        assert order.status == OrderStatus.COMPLETED.value
        assert order.access_granted is True
        assert order.payment_proof.status == ProofStatus.APPROVED.value
        assert order.payment_proof.reviewed_by == "admin-001"
        event_types = [type(e) for e in order._events]
        assert OrderCompleted in event_types
        assert BookAccessGranted in event_types
        assert PaymentProofReviewed in event_types

    def test_rejection_fails_the_order(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        order.review_payment_proof("admin-001", approved=False, admin_notes="Amount does not match")

        assert order.status == OrderStatus.FAILED.value
        assert order.access_granted is False
        assert order.payment_proof.status == ProofStatus.REJECTED.value
        assert "payment proof rejected" in order.notes
        assert "Amount does not match" in order.notes
        assert any(isinstance(e, OrderFailed) for e in order._events)

    def test_review_requires_processing_order(self):
        order = _make_order()
        with pytest.raises(ValidationError):
            order.review_payment_proof("admin-001", approved=True)


class TestGatewayOutcomes:
    def test_mark_paid_completes_pending_order(self):
        order = _make_order(payment_method="credit_card")
        order.mark_paid("pi_123")

        assert order.status == OrderStatus.COMPLETED.value
        assert order.access_granted is True
        assert order.gateway_reference == "pi_123"

    def test_mark_paid_twice_is_ignored(self):
        order = _make_order(payment_method="gcash")
        order.mark_paid()
        order._events.clear()

        order.mark_paid()
        assert order._events == []

    def test_mark_payment_failed(self):
        order = _make_order(payment_method="credit_card")
        order.mark_payment_failed("Card declined")

        assert order.status == OrderStatus.FAILED.value
        assert "Card declined" in order.notes


class TestCancellation:
    @pytest.mark.parametrize("state", [OrderStatus.PENDING, OrderStatus.PROCESSING])
    def test_cancel_from_open_states(self, state):
        order = _order_at_state(state)
        order.cancel("Changed my mind")

        assert order.status == OrderStatus.FAILED.value
        assert "Order cancelled: Changed my mind" in order.notes

    def test_cancel_without_reason(self):
        order = _make_order()
        order.cancel()
        assert "No reason provided" in order.notes

    @pytest.mark.parametrize("state", [OrderStatus.COMPLETED, OrderStatus.FAILED, OrderStatus.REFUNDED])
    def test_cancel_from_closed_states_is_rejected(self, state):
        order = _order_at_state(state)
        with pytest.raises(ValidationError):
            order.cancel("Too late")


class TestRefunds:
    def test_request_refund_on_completed_order(self):
        order = _order_at_state(OrderStatus.COMPLETED)
        order.request_refund("Wrong edition")

        assert order.refund_requested is True
        assert order.refund_reason == "Wrong edition"
        assert order.status == OrderStatus.COMPLETED.value

    def test_request_refund_twice_is_rejected(self):
        order = _order_at_state(OrderStatus.COMPLETED)
        order.request_refund("Wrong edition")
        with pytest.raises(ValidationError):
            order.request_refund("Still wrong")

    def test_request_refund_on_pending_order_is_rejected(self):
        order = _make_order()
        with pytest.raises(ValidationError):
            order.request_refund("Not yet paid")

    def test_process_refund_requires_a_request(self):
        order = _order_at_state(OrderStatus.COMPLETED)
        with pytest.raises(ValidationError):
            order.process_refund()

    def test_process_refund_revokes_access(self):
        order = _order_at_state(OrderStatus.COMPLETED)
        order.request_refund("Duplicate purchase")
        order.process_refund()

        assert order.status == OrderStatus.REFUNDED.value
        assert order.refund_processed is True
        assert order.access_granted is False
        refunded = [e for e in order._events if isinstance(e, OrderRefunded)]
        assert len(refunded) == 1
        assert refunded[0].total_price == order.total_price


class TestAdminStatusUpdate:
    def test_allowed_transition(self):
        order = _make_order()
        order.update_status("processing", reason="Checking with bank")

        assert order.status == OrderStatus.PROCESSING.value
        changed = [e for e in order._events if isinstance(e, OrderStatusChanged)]
        assert changed[0].from_status == "pending"
        assert changed[0].to_status == "processing"

    def test_unknown_status(self):
        order = _make_order()
        with pytest.raises(ValidationError):
            order.update_status("shipped")

    @pytest.mark.parametrize(
        "state,target",
        [
            (OrderStatus.FAILED, "pending"),
            (OrderStatus.REFUNDED, "completed"),
            (OrderStatus.COMPLETED, "pending"),
            (OrderStatus.PROCESSING, "pending"),
        ],
    )
    def test_disallowed_transitions(self, state, target):
        order = _order_at_state(state)
        with pytest.raises(ValidationError):
            order.update_status(target)

    def test_completing_by_status_update_does_not_grant_access(self):
        order = _make_order()
        order.update_status("completed")

        assert order.status == OrderStatus.COMPLETED.value
        assert order.access_granted is False

    def test_cannot_refund_by_status_update(self):
        order = _order_at_state(OrderStatus.COMPLETED)
        order._events.clear()

        with pytest.raises(ValidationError) as exc:
            order.update_status("refunded")

        assert "refund" in exc.value.messages["status"][0].lower()
        assert order.status == OrderStatus.COMPLETED.value
        assert order.refund_processed is False
        assert not [e for e in order._events if isinstance(e, OrderRefunded)]

    def test_requested_refund_still_needs_processing(self):
        order = _order_at_state(OrderStatus.COMPLETED)
        order.request_refund("Wrong book")

        with pytest.raises(ValidationError):
            order.update_status("refunded")

        assert order.status == OrderStatus.COMPLETED.value
