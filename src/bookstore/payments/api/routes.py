"""FastAPI routes for payments — gateway checkout, manual verification, refunds and webhooks."""

import json

import structlog
from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse
from starlette.concurrency import run_in_threadpool
from protean.utils.globals import current_domain

from bookstore.accounts.account.user import User
from bookstore.accounts.admin.admin import Admin, Permission
from bookstore.api.security import admin_with, current_user
from bookstore.ordering.api.routes import order_visible_to
from bookstore.ordering.api.schemas import OrderResponse
from bookstore.ordering.order.lifecycle import ProcessRefund, RequestRefund
from bookstore.ordering.order.order import Order
from bookstore.ordering.order.verification import ReviewPaymentProof, SubmitPaymentProof
from bookstore.payments.api.schemas import (
    ConfigureGatewayRequest,
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    OrderPaymentRequest,
    PaymentIntentResponse,
    PaymentResponse,
    ProcessRefundRequest,
    RedirectPaymentResponse,
    RefundRequest,
    ReviewProofRequest,
    StatusResponse,
    WebhookAckResponse,
)
from bookstore.payments.gateway import FakeGateway, get_gateway
from bookstore.payments.payment.initiation import ConfirmPayment, CreatePaymentIntent, CreateRedirectPayment
from bookstore.payments.payment.payment import Payment
from bookstore.payments.payment.webhook import ProcessGatewayWebhook, parse_webhook
from bookstore.utils.settings import is_production, paymongo_public_key
from bookstore.utils.storage import UploadKind, resolve_upload, store_upload

logger = structlog.get_logger(__name__)

payment_router = APIRouter(prefix="/api/payment", tags=["payments"])


def _redirect_payment(method: str, order: Order) -> RedirectPaymentResponse:
    command = CreateRedirectPayment(order_id=str(order.id), customer_id=str(order.customer_id), method=method)
    payment_id = current_domain.process(command, asynchronous=False)
    payment = current_domain.repository_for(Payment).get(payment_id)
    return RedirectPaymentResponse(
        payment_id=payment_id,
        source_id=payment.gateway_reference,
        checkout_url=payment.checkout_url,
    )


# ---------------------------------------------------------------------------
# Automated payment methods
# ---------------------------------------------------------------------------
# Gateway calls block, so routes that make them are plain functions (threadpool)
@payment_router.post("/create-intent", status_code=201, response_model=PaymentIntentResponse)
def create_payment_intent(body: OrderPaymentRequest, user: User = Depends(current_user)):
    order = order_visible_to(body.order_id, user)
    command = CreatePaymentIntent(order_id=str(order.id), customer_id=str(order.customer_id))
    payment_id = current_domain.process(command, asynchronous=False)
    payment = current_domain.repository_for(Payment).get(payment_id)
    return PaymentIntentResponse(
        payment_id=payment_id,
        payment_intent_id=payment.gateway_reference,
        client_key=payment.client_key,
        public_key=paymongo_public_key(),
    )


@payment_router.post("/gcash", status_code=201, response_model=RedirectPaymentResponse)
def gcash_payment(body: OrderPaymentRequest, user: User = Depends(current_user)):
    return _redirect_payment("gcash", order_visible_to(body.order_id, user))


@payment_router.post("/maya", status_code=201, response_model=RedirectPaymentResponse)
def maya_payment(body: OrderPaymentRequest, user: User = Depends(current_user)):
    return _redirect_payment("maya", order_visible_to(body.order_id, user))


@payment_router.post("/confirm", response_model=ConfirmPaymentResponse)
def confirm_payment(body: ConfirmPaymentRequest, user: User = Depends(current_user)):
    order_visible_to(body.order_id, user)
    command = ConfirmPayment(payment_intent_id=body.payment_intent_id, order_id=body.order_id)
    result = current_domain.process(command, asynchronous=False)
    order = current_domain.repository_for(Order).get(body.order_id)
    return ConfirmPaymentResponse(
        status=result["status"],
        order_status=order.status,
        next_action=result["next_action"],
    )


@payment_router.get("/status/{payment_intent_id}", response_model=PaymentResponse)
async def payment_status(payment_intent_id: str, user: User = Depends(current_user)) -> PaymentResponse:
    payment = current_domain.repository_for(Payment).by_reference(payment_intent_id)
    if payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    order_visible_to(str(payment.order_id), user, Permission.PAYMENT_MANAGEMENT)
    return PaymentResponse.from_payment(payment)


# ---------------------------------------------------------------------------
# Manual verification
# ---------------------------------------------------------------------------
@payment_router.post("/verify/{order_id}", response_model=OrderResponse)
async def submit_payment_proof(
    order_id: str,
    payment_proof: UploadFile = File(..., alias="paymentProof"),
    notes: str | None = Form(None),
    user: User = Depends(current_user),
) -> OrderResponse:
    order_visible_to(order_id, user)
    proof_path = store_upload(
        UploadKind.PAYMENT_PROOF,
        payment_proof.filename,
        payment_proof.content_type,
        await payment_proof.read(),
    )
    command = SubmitPaymentProof(
        order_id=order_id,
        submitted_by=str(user.id),
        proof_path=proof_path,
        customer_notes=notes,
    )
    current_domain.process(command, asynchronous=False)
    return OrderResponse.from_order(current_domain.repository_for(Order).get(order_id))


@payment_router.get("/proof/{order_id}")
async def payment_proof_file(order_id: str, user: User = Depends(current_user)) -> FileResponse:
    order = order_visible_to(order_id, user, Permission.PAYMENT_MANAGEMENT)
    if order.payment_proof is None:
        raise HTTPException(status_code=404, detail="No payment proof submitted for this order")
    path = resolve_upload(order.payment_proof.proof_path)
    if not path.exists():
        raise HTTPException(status_code=404, detail="Payment proof file is missing")
    return FileResponse(path)


@payment_router.get("/pending-verifications", response_model=list[OrderResponse])
async def pending_verifications(admin: Admin = Depends(admin_with(Permission.PAYMENT_MANAGEMENT))):
    orders = current_domain.repository_for(Order).awaiting_verification()
    return [OrderResponse.from_order(order) for order in orders]


@payment_router.post("/approve/{order_id}", response_model=OrderResponse)
async def review_payment_proof(
    order_id: str,
    body: ReviewProofRequest,
    admin: Admin = Depends(admin_with(Permission.PAYMENT_MANAGEMENT)),
) -> OrderResponse:
    command = ReviewPaymentProof(
        order_id=order_id,
        reviewer_id=str(admin.user_id),
        approved=body.approved,
        admin_notes=body.admin_notes,
    )
    current_domain.process(command, asynchronous=False)
    return OrderResponse.from_order(current_domain.repository_for(Order).get(order_id))


# ---------------------------------------------------------------------------
# Refunds
# ---------------------------------------------------------------------------
@payment_router.post("/refund/request", response_model=StatusResponse)
async def request_refund(body: RefundRequest, user: User = Depends(current_user)) -> StatusResponse:
    order_visible_to(body.order_id, user)
    current_domain.process(RequestRefund(order_id=body.order_id, reason=body.reason), asynchronous=False)
    return StatusResponse()


@payment_router.post("/refund/process", response_model=OrderResponse)
def process_refund(
    body: ProcessRefundRequest,
    admin: Admin = Depends(admin_with(Permission.PAYMENT_MANAGEMENT)),
) -> OrderResponse:
    current_domain.process(ProcessRefund(order_id=body.order_id), asynchronous=False)
    return OrderResponse.from_order(current_domain.repository_for(Order).get(body.order_id))


# ---------------------------------------------------------------------------
# Gateway callbacks
# ---------------------------------------------------------------------------
@payment_router.post("/webhook", response_model=WebhookAckResponse)
async def gateway_webhook(
    request: Request,
    signature: str | None = Header(None, alias="Paymongo-Signature"),
) -> WebhookAckResponse:
    payload = await request.body()
    if not get_gateway().verify_webhook_signature(payload, signature):
        logger.warning("Rejected webhook with invalid signature")
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    event = parse_webhook(payload)
    command = ProcessGatewayWebhook(
        event_type=event.event_type,
        resource_id=event.resource_id,
        attributes=json.dumps(event.attributes),
    )
    # source.chargeable calls the gateway
    status = await run_in_threadpool(current_domain.process, command, asynchronous=False)
    return WebhookAckResponse(status=status)


@payment_router.post("/gateway/configure", response_model=StatusResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> StatusResponse:
    """Steer the fake gateway's outcomes. Unavailable in production."""
    gateway = get_gateway()
    if is_production() or not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=403, detail="Gateway configuration is only available with the fake gateway")
    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        intent_outcome=body.intent_outcome,
    )
    return StatusResponse()
