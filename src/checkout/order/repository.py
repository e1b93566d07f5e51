"""Repository for the Order aggregate.

Queries that return lists lift protean's default page size with
`limit(None)`, applied last because cloning a queryset restores the default.
"""

from datetime import UTC, datetime

from checkout.domain import checkout
from checkout.order.order import Order, OrderStatus, PaymentMethod, PaymentStatus


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


@checkout.repository(part_of=Order)
class OrderRepository:
    def by_idempotency_key(self, idempotency_key: str) -> Order | None:
        return self._dao.query.filter(idempotency_key=idempotency_key).all().first

    def by_gateway_order_ref(self, gateway_order_ref: str) -> Order | None:
        return self._dao.query.filter(gateway_order_ref=gateway_order_ref).all().first

    def for_customer(self, customer_id: str) -> list[Order]:
        """All of the customer's orders, newest first."""
        orders = self._dao.query.filter(customer_id=str(customer_id)).limit(None).all().items
        return sorted(orders, key=lambda o: _naive_utc(o.created_at), reverse=True)

    def unpaid_online_orders(self, placed_before: datetime) -> list[Order]:
        """Online orders still awaiting payment that were placed before `placed_before`."""
        cutoff = _naive_utc(placed_before)
        pending = (
            self._dao.query.filter(
                status=OrderStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
            )
            .exclude(payment_method=PaymentMethod.CASH_ON_DELIVERY.value)
            .limit(None)
            .all()
            .items
        )
        return [order for order in pending if order.created_at and _naive_utc(order.created_at) <= cutoff]
