"""BDD tests for the Payment aggregate lifecycle."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when

from bookstore.payments.payment import events as payment_events
from bookstore.payments.payment.payment import Payment, PaymentKind, PaymentStatus

scenarios("features/payment_lifecycle.feature")


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('an open "{kind}" payment of {amount:f}'), target_fixture="payment")
def open_payment(kind, amount):
    payment = Payment.open(
        order_id="order-001",
        customer_id="cust-001",
        amount=amount,
        method="gcash" if kind == PaymentKind.SOURCE.value else "credit_card",
        kind=PaymentKind(kind),
        gateway_reference=f"{kind}_ref_001",
    )
    payment._events.clear()
    return payment


@given(parsers.cfparse('the gateway has reported failure "{reason}"'))
def reported_failure(payment, reason):
    payment.record_failure(reason)
    payment._events.clear()


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the gateway reports success with payment "{gateway_payment_id}"'))
def report_success(payment, gateway_payment_id, error):
    try:
        payment.record_success(gateway_payment_id=gateway_payment_id)
    except ValidationError as exc:
        error["exc"] = exc


@when("the gateway asks the customer to authenticate")
def report_action_required(payment):
    payment.record_action_required('{"type": "redirect"}')


@when(parsers.cfparse('the gateway reports failure "{reason}"'))
def report_failure(payment, reason):
    payment.record_failure(reason)


@when(parsers.cfparse('the payment is refunded as "{refund_id}"'))
def refund(payment, refund_id, error):
    try:
        payment.record_refund(refund_id)
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the payment status is "{status}"'))
def payment_status_is(payment, status):
    assert payment.status == PaymentStatus(status).value


@then(parsers.cfparse('refunds target "{reference}"'))
def refunds_target(payment, reference):
    assert payment.refundable_reference == reference


@then("the action fails with a validation error")
def action_fails(error):
    assert isinstance(error["exc"], ValidationError)


@then(parsers.re(r"an? (?P<event_name>\w+) event is raised"))
def event_raised(payment, event_name):
    event_cls = getattr(payment_events, event_name)
    assert any(isinstance(e, event_cls) for e in payment._events)
