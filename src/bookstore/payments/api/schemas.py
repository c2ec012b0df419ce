"""Pydantic request/response schemas for the Payments API."""

from datetime import datetime

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class OrderPaymentRequest(BaseModel):
    order_id: str


class ConfirmPaymentRequest(BaseModel):
    payment_intent_id: str
    order_id: str


class ReviewProofRequest(BaseModel):
    approved: bool
    admin_notes: str | None = None


class RefundRequest(BaseModel):
    order_id: str
    reason: str


class ProcessRefundRequest(BaseModel):
    order_id: str


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Card declined"
    intent_outcome: str = "succeeded"

    model_config = {
        "json_schema_extra": {
            "examples": [{"should_succeed": False, "failure_reason": "Insufficient funds"}],
        }
    }


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class PaymentIntentResponse(BaseModel):
    payment_id: str
    payment_intent_id: str
    client_key: str | None = None
    public_key: str | None = None


class RedirectPaymentResponse(BaseModel):
    payment_id: str
    source_id: str
    checkout_url: str | None = None


class ConfirmPaymentResponse(BaseModel):
    status: str
    order_status: str
    next_action: dict | None = None


class PaymentResponse(BaseModel):
    id: str
    order_id: str
    amount: float
    currency: str
    method: str
    kind: str
    gateway_reference: str
    checkout_url: str | None = None
    status: str
    failure_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_payment(cls, payment) -> "PaymentResponse":
        return cls(
            id=str(payment.id),
            order_id=str(payment.order_id),
            amount=payment.amount,
            currency=payment.currency,
            method=payment.method,
            kind=payment.kind,
            gateway_reference=payment.gateway_reference,
            checkout_url=payment.checkout_url,
            status=payment.status,
            failure_reason=payment.failure_reason,
            created_at=payment.created_at,
            updated_at=payment.updated_at,
        )


class WebhookAckResponse(BaseModel):
    received: bool = True
    status: str | None = None
