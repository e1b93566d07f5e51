"""FastAPI routes for checkout: cart, orders, payment webhooks and discounts.

Callers are authenticated upstream; the customer is identified by the
X-Customer-Id header.
"""

from fastapi import APIRouter, BackgroundTasks, Header, Request
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.api.schemas import (
    AddCartItemRequest,
    CancelOrderRequest,
    CartLineResponse,
    CartResponse,
    CreateDiscountRequest,
    DiscountIdResponse,
    DiscountPreviewResponse,
    GatewayRequestResponse,
    InitiateOrderRequest,
    InitiateOrderResponse,
    OrderLineResponse,
    OrderPricingResponse,
    OrderResponse,
    ReapOrdersRequest,
    ReapOrdersResponse,
    StatusResponse,
    WebhookAckResponse,
)
from checkout.cart.cart import Cart
from checkout.cart.management import AddCartItem
from checkout.discount import ledger
from checkout.discount.discount import DiscountType
from checkout.discount.management import CreateDiscount, DeactivateDiscount
from checkout.errors import CouponRejected
from checkout.notifications.confirmation import OrderConfirmation, send_order_confirmation
from checkout.order.abandonment import ReapAbandonedOrders
from checkout.order.fulfillment import CancelOrder, DeliverOrder, ShipOrder
from checkout.order.initiation import InitiateOrder
from checkout.order.order import Order
from checkout.order.pricing import discount_amount_for
from checkout.payments.reconciliation import process_payment_webhook
from checkout.payments.webhook import SIGNATURE_HEADER
from checkout.utils.logging import clear_context


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        customer_id=str(order.customer_id),
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        items=[
            OrderLineResponse(
                book_id=str(line.book_id),
                title=line.title,
                quantity=line.quantity,
                unit_price=line.unit_price,
                seller_id=str(line.seller_id) if line.seller_id else None,
            )
            for line in order.items
        ],
        pricing=OrderPricingResponse(
            subtotal=order.pricing.subtotal,
            discount_amount=order.pricing.discount_amount,
            handling_fee=order.pricing.handling_fee,
            delivery_fee=order.pricing.delivery_fee,
            final_amount=order.pricing.final_amount,
            currency=order.pricing.currency,
        ),
        coupon_code=order.coupon_code,
        gateway_order_ref=order.gateway_order_ref,
        gateway_payment_ref=order.gateway_payment_ref,
        failure_reason=order.failure_reason,
        created_at=order.created_at,
        settled_at=order.settled_at,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.post("/items", response_model=StatusResponse)
async def add_cart_item(body: AddCartItemRequest, x_customer_id: str = Header()) -> StatusResponse:
    command = AddCartItem(customer_id=x_customer_id, book_id=body.book_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.get("", response_model=CartResponse)
async def get_cart(x_customer_id: str = Header()) -> CartResponse:
    cart = current_domain.repository_for(Cart).for_customer(x_customer_id)
    lines = [CartLineResponse(book_id=str(line.book_id), quantity=line.quantity) for line in (cart.lines if cart else [])]
    return CartResponse(customer_id=x_customer_id, lines=lines)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=InitiateOrderResponse)
async def initiate_order(
    body: InitiateOrderRequest,
    background_tasks: BackgroundTasks,
    x_customer_id: str = Header(),
    idempotency_key: str | None = Header(default=None),
) -> InitiateOrderResponse:
    """Turn the caller's cart into an order.

    Cash-on-delivery orders come back PROCESSING. Online orders come back
    PENDING together with the gateway request the client completes payment with.
    """
    command = InitiateOrder(
        customer_id=x_customer_id,
        payment_method=body.payment_method,
        coupon_code=body.coupon_code,
        idempotency_key=idempotency_key,
    )
    result = current_domain.process(command, asynchronous=False)
    order = current_domain.repository_for(Order).get(result.order_id)

    if order.is_cash_on_delivery and not result.replayed:
        background_tasks.add_task(send_order_confirmation, OrderConfirmation.of(order))

    gateway_request = (
        GatewayRequestResponse(**result.gateway_request.to_dict()) if result.gateway_request is not None else None
    )
    return InitiateOrderResponse(order=_order_response(order), gateway_request=gateway_request)


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(x_customer_id: str = Header()) -> list[OrderResponse]:
    orders = current_domain.repository_for(Order).for_customer(x_customer_id)
    return [_order_response(order) for order in orders]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, x_customer_id: str = Header()) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    if str(order.customer_id) != x_customer_id:
        raise ObjectNotFoundError({"_entity": f"Order {order_id} not found"})
    return _order_response(order)


@order_router.put("/{order_id}/ship", response_model=StatusResponse)
async def ship_order(order_id: str) -> StatusResponse:
    current_domain.process(ShipOrder(order_id=order_id), asynchronous=False)
    return StatusResponse(status="shipped")


@order_router.put("/{order_id}/deliver", response_model=StatusResponse)
async def deliver_order(order_id: str) -> StatusResponse:
    current_domain.process(DeliverOrder(order_id=order_id), asynchronous=False)
    return StatusResponse(status="delivered")


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest | None = None) -> StatusResponse:
    reason = body.reason if body else None
    current_domain.process(CancelOrder(order_id=order_id, reason=reason), asynchronous=False)
    return StatusResponse(status="cancelled")


@order_router.post("/maintenance/reap", response_model=ReapOrdersResponse)
async def reap_abandoned_orders(body: ReapOrdersRequest | None = None) -> ReapOrdersResponse:
    """Retire unpaid online orders. Meant to be called by a scheduler."""
    older_than_hours = body.older_than_hours if body else None
    reaped = current_domain.process(ReapAbandonedOrders(older_than_hours=older_than_hours), asynchronous=False)
    return ReapOrdersResponse(reaped=reaped or 0)


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/webhook", response_model=WebhookAckResponse)
async def payment_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    signature: str | None = Header(default=None, alias=SIGNATURE_HEADER),
) -> WebhookAckResponse:
    """Receive a payment notification from the gateway.

    The signature is checked against the raw request bytes, so the body is
    read unparsed.
    """
    raw_body = await request.body()
    try:
        ack = process_payment_webhook(raw_body, signature)
        if ack.status == "settled":
            order = current_domain.repository_for(Order).get(ack.order_id)
            background_tasks.add_task(send_order_confirmation, OrderConfirmation.of(order))
    finally:
        clear_context()
    return WebhookAckResponse(status=ack.status, order_id=ack.order_id)


# ---------------------------------------------------------------------------
# Discount Router
# ---------------------------------------------------------------------------
discount_router = APIRouter(prefix="/discounts", tags=["discounts"])


@discount_router.post("", status_code=201, response_model=DiscountIdResponse)
async def create_discount(body: CreateDiscountRequest) -> DiscountIdResponse:
    command = CreateDiscount(
        coupon_code=body.coupon_code,
        description=body.description,
        discount_type=body.discount_type,
        value=body.value,
        min_cart_value=body.min_cart_value,
        max_uses=body.max_uses,
        max_uses_per_user=body.max_uses_per_user,
        start_date=body.start_date,
        end_date=body.end_date,
    )
    result = current_domain.process(command, asynchronous=False)
    return DiscountIdResponse(discount_id=result)


@discount_router.put("/{discount_id}/deactivate", response_model=StatusResponse)
async def deactivate_discount(discount_id: str) -> StatusResponse:
    current_domain.process(DeactivateDiscount(discount_id=discount_id), asynchronous=False)
    return StatusResponse(status="deactivated")


@discount_router.get("/{coupon_code}", response_model=DiscountPreviewResponse)
async def preview_discount(coupon_code: str, subtotal: float, x_customer_id: str = Header()) -> DiscountPreviewResponse:
    """Check whether a coupon applies to a cart of `subtotal`. Never records usage."""
    code = coupon_code.strip().upper()
    try:
        discount = ledger.validate(code, x_customer_id, subtotal)
    except CouponRejected as exc:
        return DiscountPreviewResponse(coupon_code=code, applicable=False, reason=exc.reason, message=exc.message)

    return DiscountPreviewResponse(
        coupon_code=discount.coupon_code,
        applicable=True,
        discount_type=discount.discount_type,
        discount_amount=discount_amount_for(subtotal, discount),
        free_delivery=discount.discount_type == DiscountType.FREE_DELIVERY.value,
    )
