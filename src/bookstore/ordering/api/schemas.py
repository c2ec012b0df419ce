"""Pydantic request/response schemas for the Ordering API."""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class CartItemRequest(BaseModel):
    book_id: str
    quantity: int = Field(ge=1, default=1)


class UpdateCartItemRequest(BaseModel):
    book_id: str
    quantity: int = Field(ge=0)


class RemoveCartItemRequest(BaseModel):
    book_id: str


class MergeGuestCartRequest(BaseModel):
    items: list[CartItemRequest]

    model_config = {
        "json_schema_extra": {
            "examples": [{"items": [{"book_id": "b6f1c3d2-...", "quantity": 1}]}]
        }
    }


class CartLineResponse(BaseModel):
    book_id: str
    publisher_id: str | None = None
    title: str | None = None
    quantity: int
    price: float
    subtotal: float


class CartResponse(BaseModel):
    id: str
    customer_id: str
    items: list[CartLineResponse]
    item_count: int
    total_price: float

    @classmethod
    def from_cart(cls, cart) -> "CartResponse":
        return cls(
            id=str(cart.id),
            customer_id=str(cart.customer_id),
            items=[
                CartLineResponse(
                    book_id=str(line.book_id),
                    publisher_id=str(line.publisher_id) if line.publisher_id else None,
                    title=line.title,
                    quantity=line.quantity,
                    price=line.price,
                    subtotal=line.subtotal,
                )
                for line in cart.items
            ],
            item_count=cart.item_count,
            total_price=cart.total_price or 0.0,
        )


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    payment_method: str
    notes: str | None = None

    model_config = {"json_schema_extra": {"examples": [{"payment_method": "gcash", "notes": None}]}}


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str
    reason: str | None = None


class PlaceOrderResponse(BaseModel):
    order_id: str
    transaction_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class DownloadLinkResponse(BaseModel):
    download_url: str


class OrderItemResponse(BaseModel):
    book_id: str
    publisher_id: str | None = None
    title: str | None = None
    quantity: int
    price: float
    subtotal: float


class PaymentProofResponse(BaseModel):
    proof_url: str
    customer_notes: str | None = None
    status: str
    submitted_by: str
    submitted_at: datetime
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    admin_notes: str | None = None


class OrderResponse(BaseModel):
    id: str
    transaction_id: str
    customer_id: str
    items: list[OrderItemResponse]
    total_price: float
    payment_method: str
    status: str
    payment_proof: PaymentProofResponse | None = None
    gateway_reference: str | None = None
    refund_requested: bool
    refund_processed: bool
    refund_reason: str | None = None
    access_granted: bool
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        proof = order.payment_proof
        return cls(
            id=str(order.id),
            transaction_id=order.transaction_id,
            customer_id=str(order.customer_id),
            items=[
                OrderItemResponse(
                    book_id=str(item.book_id),
                    publisher_id=str(item.publisher_id) if item.publisher_id else None,
                    title=item.title,
                    quantity=item.quantity,
                    price=item.price,
                    subtotal=item.subtotal,
                )
                for item in order.items
            ],
            total_price=order.total_price,
            payment_method=order.payment_method,
            status=order.status,
            payment_proof=PaymentProofResponse(
                proof_url=f"/api/payment/proof/{order.id}",
                customer_notes=proof.customer_notes,
                status=proof.status,
                submitted_by=str(proof.submitted_by),
                submitted_at=proof.submitted_at,
                reviewed_by=str(proof.reviewed_by) if proof.reviewed_by else None,
                reviewed_at=proof.reviewed_at,
                admin_notes=proof.admin_notes,
            )
            if proof
            else None,
            gateway_reference=order.gateway_reference,
            refund_requested=bool(order.refund_requested),
            refund_processed=bool(order.refund_processed),
            refund_reason=order.refund_reason,
            access_granted=bool(order.access_granted),
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
