"""Checkout error taxonomy.

Domain input problems keep using protean's ValidationError (HTTP 400) and
missing aggregates protean's ObjectNotFoundError (HTTP 404). The classes here
cover the outcomes protean has no vocabulary for. Each carries the HTTP status
and stable error code the API layer reports.
"""


class CheckoutError(Exception):
    """Base class for checkout failures surfaced to callers."""

    status_code = 500
    code = "checkout_error"

    def __init__(self, message: str, **details) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ConflictError(CheckoutError):
    """The request is well-formed but collides with current state."""

    status_code = 409
    code = "conflict"


class StockConflict(ConflictError):
    """An ordered quantity exceeds the stock available for a book."""

    code = "stock_conflict"

    def __init__(self, book_id: str, title: str, requested: int, available: int) -> None:
        if available > 0:
            message = f"Only {available} of '{title}' in stock, {requested} requested"
        else:
            message = f"'{title}' is out of stock"
        super().__init__(
            message,
            book_id=book_id,
            requested=requested,
            available=available,
        )
        self.book_id = book_id
        self.requested = requested
        self.available = available


class CouponRejected(ConflictError):
    """A coupon cannot be applied (or redeemed) for this customer and cart."""

    status_code = 400
    code = "coupon_rejected"

    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_YET_ACTIVE = "not_yet_active"
    EXPIRED = "expired"
    BELOW_MINIMUM = "below_minimum"
    USAGE_EXHAUSTED = "usage_exhausted"
    PER_USER_EXHAUSTED = "per_user_exhausted"

    def __init__(self, coupon_code: str, reason: str, message: str) -> None:
        super().__init__(message, coupon_code=coupon_code, reason=reason)
        self.coupon_code = coupon_code
        self.reason = reason


class IdempotencyConflict(ConflictError):
    """An idempotency key was reused for a different request."""

    code = "idempotency_conflict"


class SignatureError(CheckoutError):
    """A webhook failed signature verification."""

    status_code = 400
    code = "invalid_signature"


class InvalidPayload(CheckoutError):
    """A verified webhook body is missing the references settlement needs."""

    status_code = 400
    code = "invalid_payload"


class GatewayError(CheckoutError):
    """The payment gateway was unreachable or rejected the request. Retryable."""

    status_code = 502
    code = "gateway_error"
    retryable = True
