"""Shared BDD fixtures and step definitions for the Ordering context."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from bookstore.ordering.order import events as order_events
from bookstore.ordering.order.order import Order, OrderStatus


def _place(payment_method):
    order = Order.place(
        transaction_id="TXN-00000042",
        customer_id="cust-001",
        payment_method=payment_method,
        lines=[
            {"book_id": "book-1", "publisher_id": "pub-1", "title": "First", "quantity": 1, "price": 120.0},
            {"book_id": "book-2", "publisher_id": "pub-1", "title": "Second", "quantity": 1, "price": 80.0},
        ],
    )
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a pending order paid by "{method}"'), target_fixture="order")
def pending_order(method):
    return _place(method)


@given(parsers.cfparse('a completed order paid by "{method}"'), target_fixture="order")
def completed_order(method):
    order = _place(method)
    order.submit_payment_proof("payment-proofs/receipt.png", submitted_by="user-001")
    order.review_payment_proof("admin-001", approved=True)
    order._events.clear()
    return order


@given("the customer has submitted a payment proof")
def proof_submitted(order):
    order.submit_payment_proof("payment-proofs/receipt.png", submitted_by="user-001")
    order._events.clear()


@given("an admin has approved the proof")
def proof_approved(order):
    order.review_payment_proof("admin-001", approved=True)
    order._events.clear()


@given("the customer has requested a refund")
def refund_requested(order):
    order.request_refund("Bought the wrong edition")
    order._events.clear()


@given("an admin has processed the refund")
def refund_processed(order):
    order.process_refund()
    order._events.clear()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == OrderStatus(status).value


@then("the action fails with a validation error")
def action_fails(error):
    assert isinstance(error["exc"], ValidationError)


@then(parsers.re(r"an? (?P<event_name>\w+) event is raised"))
def event_raised(order, event_name):
    event_cls = getattr(order_events, event_name)
    assert any(isinstance(e, event_cls) for e in order._events)


@then(parsers.cfparse('the customer can download "{book_id}"'))
def can_download(order, book_id):
    assert order.download_link(book_id).endswith(f"/download/{order.id}/{book_id}")


@then(parsers.cfparse('the customer cannot download "{book_id}"'))
def cannot_download(order, book_id):
    with pytest.raises(ValidationError):
        order.download_link(book_id)
