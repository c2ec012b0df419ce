"""FastAPI routes for the Ordering context — carts and orders."""

import json
from pathlib import PurePosixPath

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from protean.utils.globals import current_domain

from bookstore.accounts.account.user import User
from bookstore.accounts.admin.admin import Admin, Permission
from bookstore.accounts.customer.customer import Customer
from bookstore.api.security import admin_with, current_customer, current_user
from bookstore.catalogue.book.book import Book
from bookstore.ordering.api.schemas import (
    CancelOrderRequest,
    CartItemRequest,
    CartResponse,
    DownloadLinkResponse,
    MergeGuestCartRequest,
    OrderResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    RemoveCartItemRequest,
    StatusResponse,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
)
from bookstore.ordering.cart.management import (
    AddToCart,
    ClearCart,
    MergeGuestCart,
    RemoveFromCart,
    UpdateCartQuantity,
    cart_for,
)
from bookstore.ordering.order.checkout import PlaceOrder
from bookstore.ordering.order.lifecycle import CancelOrder, GrantBookAccess, UpdateOrderStatus
from bookstore.ordering.order.order import Order
from bookstore.utils.storage import resolve_upload


def order_visible_to(order_id: str, user: User, permission: Permission = Permission.ORDER_MANAGEMENT) -> Order:
    """Load an order the user may act on: their own, or any for an admin holding ``permission``."""
    order = current_domain.repository_for(Order).get(order_id)
    customer = current_domain.repository_for(Customer).find_by_user(user.id)
    if customer is not None and str(customer.id) == str(order.customer_id):
        return order

    admin = current_domain.repository_for(Admin).find_by_user(user.id)
    if admin is not None and admin.has_permission(permission.value):
        return order
    raise HTTPException(status_code=403, detail="Not allowed to access this order")


def _cart_response(customer: Customer) -> CartResponse:
    return CartResponse.from_cart(cart_for(customer.id))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/api/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(customer: Customer = Depends(current_customer)) -> CartResponse:
    return _cart_response(customer)


@cart_router.post("/add", response_model=CartResponse)
async def add_to_cart(body: CartItemRequest, customer: Customer = Depends(current_customer)) -> CartResponse:
    command = AddToCart(customer_id=str(customer.id), book_id=body.book_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return _cart_response(customer)


@cart_router.post("/update", response_model=CartResponse)
async def update_cart_quantity(
    body: UpdateCartItemRequest, customer: Customer = Depends(current_customer)
) -> CartResponse:
    command = UpdateCartQuantity(customer_id=str(customer.id), book_id=body.book_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return _cart_response(customer)


@cart_router.post("/remove", response_model=CartResponse)
async def remove_from_cart(
    body: RemoveCartItemRequest, customer: Customer = Depends(current_customer)
) -> CartResponse:
    current_domain.process(RemoveFromCart(customer_id=str(customer.id), book_id=body.book_id), asynchronous=False)
    return _cart_response(customer)


@cart_router.post("/clear", response_model=CartResponse)
async def clear_cart(customer: Customer = Depends(current_customer)) -> CartResponse:
    current_domain.process(ClearCart(customer_id=str(customer.id)), asynchronous=False)
    return _cart_response(customer)


@cart_router.post("/merge", response_model=CartResponse)
async def merge_guest_cart(
    body: MergeGuestCartRequest, customer: Customer = Depends(current_customer)
) -> CartResponse:
    command = MergeGuestCart(
        customer_id=str(customer.id),
        guest_items=json.dumps([item.model_dump() for item in body.items]),
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(customer)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/api/order", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlaceOrderResponse)
async def place_order(body: PlaceOrderRequest, customer: Customer = Depends(current_customer)):
    command = PlaceOrder(customer_id=str(customer.id), payment_method=body.payment_method, notes=body.notes)
    order_id = current_domain.process(command, asynchronous=False)
    order = current_domain.repository_for(Order).get(order_id)
    return PlaceOrderResponse(order_id=order_id, transaction_id=order.transaction_id)


@order_router.get("/my-orders", response_model=list[OrderResponse])
async def my_orders(customer: Customer = Depends(current_customer)) -> list[OrderResponse]:
    orders = current_domain.repository_for(Order).for_customer(customer.id)
    return [OrderResponse.from_order(order) for order in orders]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, user: User = Depends(current_user)) -> OrderResponse:
    return OrderResponse.from_order(order_visible_to(order_id, user))


@order_router.post("/{order_id}/access", response_model=StatusResponse)
async def grant_access(order_id: str, admin: Admin = Depends(admin_with(Permission.ORDER_MANAGEMENT))):
    current_domain.process(GrantBookAccess(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.get("/{order_id}/download-link/{book_id}", response_model=DownloadLinkResponse)
async def download_link(order_id: str, book_id: str, user: User = Depends(current_user)):
    order = order_visible_to(order_id, user)
    return DownloadLinkResponse(download_url=order.download_link(book_id))


@order_router.get("/{order_id}/download/{book_id}")
async def download_book(order_id: str, book_id: str, user: User = Depends(current_user)) -> FileResponse:
    order = order_visible_to(order_id, user)
    order.download_link(book_id)  # access and membership checks

    book = current_domain.repository_for(Book).get(book_id)
    path = resolve_upload(book.file_path)
    if not path.exists():
        raise HTTPException(status_code=404, detail="Book file is missing")
    filename = f"{book.title}{PurePosixPath(book.file_path).suffix}"
    return FileResponse(path, filename=filename)


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest, user: User = Depends(current_user)):
    order_visible_to(order_id, user)
    current_domain.process(CancelOrder(order_id=order_id, reason=body.reason), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    admin: Admin = Depends(admin_with(Permission.ORDER_MANAGEMENT)),
) -> OrderResponse:
    command = UpdateOrderStatus(order_id=order_id, status=body.status, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return OrderResponse.from_order(current_domain.repository_for(Order).get(order_id))
