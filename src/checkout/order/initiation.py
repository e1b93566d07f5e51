"""Order initiation: turn a customer's cart into a priced order.

One InitiateOrder command is one unit of work. Either everything below is
committed, or (on a stock conflict, a rejected coupon or a gateway failure)
nothing is:

1. Replay: an order already stored under the idempotency key is returned as
   is, provided it was created for the same request.
2. Validate the payment method and the cart together.
3. Check stock against (possibly cached) catalogue snapshots.
4. Validate the coupon and price the cart.
5. Place the order. Cash on delivery moves straight to PROCESSING, withdraws
   stock, clears the cart and records coupon usage. Online payments register a remote payment with
   the gateway and wait for settlement.
"""

import hashlib
from dataclasses import asdict, dataclass

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.cart.cart import Cart
from checkout.catalogue.reader import load_books
from checkout.catalogue.stock import check_stock, withdraw_stock
from checkout.config import get_settings
from checkout.discount import ledger
from checkout.domain import checkout
from checkout.errors import IdempotencyConflict
from checkout.order.order import Order, PaymentMethod
from checkout.order.pricing import price_order, subtotal_of
from checkout.payments.gateway import get_gateway

logger = structlog.get_logger(__name__)


@checkout.command(part_of="Order")
class InitiateOrder:
    customer_id = Identifier(required=True)
    payment_method = String(required=True, max_length=50)
    coupon_code = String(max_length=50)
    idempotency_key = String(max_length=255)


@dataclass(frozen=True)
class PricedItem:
    book_id: str
    title: str
    quantity: int
    unit_price: float
    seller_id: str | None = None


@dataclass(frozen=True)
class GatewayRequest:
    """What the client needs to complete an online payment."""

    key_id: str
    gateway_order_ref: str
    amount: int
    currency: str
    receipt: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class InitiationResult:
    order_id: str
    gateway_request: GatewayRequest | None = None
    replayed: bool = False


def request_fingerprint(customer_id: str, payment_method: str, coupon_code: str | None) -> str:
    raw = "|".join([str(customer_id), payment_method or "", (coupon_code or "").strip().upper()])
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def gateway_request_for(order: Order) -> GatewayRequest | None:
    if order.is_cash_on_delivery or not order.gateway_order_ref:
        return None
    return GatewayRequest(
        key_id=get_gateway().key_id,
        gateway_order_ref=order.gateway_order_ref,
        amount=order.amount_minor,
        currency=order.pricing.currency,
        receipt=str(order.id),
    )


def _validated_items(command, cart, books) -> list[PricedItem]:
    """Check the payment method and the cart in one pass, reporting every problem."""
    errors: dict[str, list[str]] = {}

    supported = [m.value for m in PaymentMethod]
    if command.payment_method not in supported:
        errors["payment_method"] = [f"Unsupported payment method; expected one of {', '.join(supported)}"]

    if cart is None or cart.is_empty:
        errors["cart"] = ["Cart is empty"]
    else:
        missing = [str(line.book_id) for line in cart.lines if str(line.book_id) not in books]
        if missing:
            errors["cart"] = [f"Book {book_id} is no longer available" for book_id in missing]

    if errors:
        raise ValidationError(errors)

    return [
        PricedItem(
            book_id=str(line.book_id),
            title=books[str(line.book_id)].title,
            quantity=line.quantity,
            unit_price=books[str(line.book_id)].price,
            seller_id=books[str(line.book_id)].seller_id,
        )
        for line in cart.lines
    ]


@checkout.command_handler(part_of=Order)
class InitiateOrderHandler:
    @handle(InitiateOrder)
    def initiate_order(self, command):
        settings = get_settings()
        repo = current_domain.repository_for(Order)
        coupon_code = (command.coupon_code or "").strip().upper() or None
        fingerprint = request_fingerprint(command.customer_id, command.payment_method, coupon_code)

        if command.idempotency_key:
            existing = repo.by_idempotency_key(command.idempotency_key)
            if existing is not None:
                if existing.request_fingerprint != fingerprint:
                    raise IdempotencyConflict(
                        "Idempotency key was already used for a different request",
                        idempotency_key=command.idempotency_key,
                    )
                logger.info(
                    "Replaying order initiation",
                    order_id=str(existing.id),
                    idempotency_key=command.idempotency_key,
                )
                return InitiationResult(
                    order_id=str(existing.id),
                    gateway_request=gateway_request_for(existing),
                    replayed=True,
                )

        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.for_customer(command.customer_id)
        books = load_books([line.book_id for line in cart.lines]) if cart is not None else {}
        items = _validated_items(command, cart, books)

        check_stock(items, books)

        discount = None
        if coupon_code:
            discount = ledger.validate(coupon_code, command.customer_id, subtotal_of(items))

        breakdown = price_order(
            items,
            handling_fee=settings.handling_fee,
            base_delivery_fee=settings.base_delivery_fee,
            discount=discount,
        )

        order = Order.place(
            customer_id=command.customer_id,
            lines=[asdict(item) for item in items],
            breakdown=breakdown,
            currency=settings.currency,
            payment_method=command.payment_method,
            coupon_code=discount.coupon_code if discount else None,
            applied_discount_id=str(discount.id) if discount else None,
            idempotency_key=command.idempotency_key,
            request_fingerprint=fingerprint,
        )

        if order.is_cash_on_delivery:
            order.accept_cash_on_delivery()
            repo.add(order)
            withdraw_stock(items, str(order.id))
            cart_repo.clear_for(command.customer_id, str(order.id))
            if discount is not None:
                ledger.record_usage(str(discount.id), command.customer_id, str(order.id))
        else:
            remote = get_gateway().create_remote_payment(
                amount_minor=order.amount_minor,
                currency=settings.currency,
                receipt=str(order.id),
            )
            order.attach_gateway_order(remote.gateway_order_ref)
            repo.add(order)

        logger.info(
            "Order initiated",
            order_id=str(order.id),
            customer_id=str(command.customer_id),
            payment_method=order.payment_method,
            final_amount=order.pricing.final_amount,
            coupon_code=order.coupon_code,
        )
        return InitiationResult(order_id=str(order.id), gateway_request=gateway_request_for(order))
