"""Pydantic request/response schemas for the checkout API.

These are external contracts, kept separate from the internal protean
commands the routes translate them into.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    book_id: str
    quantity: int = Field(default=1, ge=1)


class CartLineResponse(BaseModel):
    book_id: str
    quantity: int


class CartResponse(BaseModel):
    customer_id: str
    lines: list[CartLineResponse] = []


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class InitiateOrderRequest(BaseModel):
    payment_method: str
    coupon_code: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"payment_method": "UPI", "coupon_code": "WELCOME10"},
                {"payment_method": "CASH_ON_DELIVERY"},
            ]
        }
    }


class OrderLineResponse(BaseModel):
    book_id: str
    title: str
    quantity: int
    unit_price: float
    seller_id: str | None = None


class OrderPricingResponse(BaseModel):
    subtotal: float
    discount_amount: float
    handling_fee: float
    delivery_fee: float
    final_amount: float
    currency: str


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str
    status: str
    payment_status: str
    payment_method: str
    items: list[OrderLineResponse]
    pricing: OrderPricingResponse
    coupon_code: str | None = None
    gateway_order_ref: str | None = None
    gateway_payment_ref: str | None = None
    failure_reason: str | None = None
    created_at: datetime | None = None
    settled_at: datetime | None = None


class GatewayRequestResponse(BaseModel):
    key_id: str
    gateway_order_ref: str
    amount: int
    currency: str
    receipt: str


class InitiateOrderResponse(BaseModel):
    order: OrderResponse
    gateway_request: GatewayRequestResponse | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class ReapOrdersRequest(BaseModel):
    older_than_hours: int | None = Field(default=None, ge=0)


class ReapOrdersResponse(BaseModel):
    reaped: int


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class WebhookAckResponse(BaseModel):
    status: str
    order_id: str | None = None


# ---------------------------------------------------------------------------
# Discounts
# ---------------------------------------------------------------------------
class CreateDiscountRequest(BaseModel):
    coupon_code: str = Field(min_length=1, max_length=50)
    description: str | None = None
    discount_type: str
    value: float = Field(ge=0)
    min_cart_value: float = Field(default=0.0, ge=0)
    max_uses: int | None = Field(default=None, ge=0)
    max_uses_per_user: int | None = Field(default=None, ge=0)
    start_date: datetime | None = None
    end_date: datetime | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "coupon_code": "WELCOME10",
                    "description": "10% off your first order above 400",
                    "discount_type": "PERCENTAGE",
                    "value": 10,
                    "min_cart_value": 400,
                    "max_uses": 1000,
                    "max_uses_per_user": 1,
                }
            ]
        }
    }


class DiscountIdResponse(BaseModel):
    discount_id: str


class DiscountPreviewResponse(BaseModel):
    coupon_code: str
    applicable: bool
    discount_type: str | None = None
    discount_amount: float = 0.0
    free_delivery: bool = False
    reason: str | None = None
    message: str | None = None
