"""Abandoned-order reaper: retire online orders whose payment never arrived.

Designed to be triggered periodically by an external scheduler (cron, K8s
CronJob) through the maintenance endpoint or `manage.py reap-orders`. Each
stale order is retired in its own AbandonOrder command, so one order that
cannot be retired does not hold back the rest.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError, InvalidOperationError, ValidationError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from checkout.config import get_settings
from checkout.domain import checkout
from checkout.order.order import Order

logger = structlog.get_logger(__name__)


@checkout.command(part_of="Order")
class ReapAbandonedOrders:
    """Retire unpaid online orders placed more than `older_than_hours` ago."""

    older_than_hours = Integer(min_value=0)  # Optional: defaults to ABANDONED_ORDER_HOURS
    as_of = DateTime()  # Optional: defaults to now


@checkout.command(part_of="Order")
class AbandonOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@checkout.command_handler(part_of=Order)
class AbandonmentHandler:
    @handle(ReapAbandonedOrders)
    def reap_abandoned_orders(self, command):
        as_of = command.as_of or datetime.now(UTC)
        threshold_hours = (
            command.older_than_hours if command.older_than_hours is not None else get_settings().abandoned_order_hours
        )
        cutoff = as_of - timedelta(hours=threshold_hours)

        logger.info("Checking for abandoned orders", cutoff=cutoff.isoformat(), threshold_hours=threshold_hours)

        stale = current_domain.repository_for(Order).unpaid_online_orders(placed_before=cutoff)
        if not stale:
            logger.info("No abandoned orders found")
            return 0

        reason = f"Payment not received within {threshold_hours} hours"
        reaped = 0
        for order in stale:
            try:
                current_domain.process(
                    AbandonOrder(order_id=str(order.id), reason=reason),
                    asynchronous=False,
                )
                reaped += 1
                logger.info("Abandoned order retired", order_id=str(order.id), created_at=str(order.created_at))
            except (ValidationError, InvalidOperationError, ExpectedVersionError) as exc:
                logger.warning("Failed to retire abandoned order", order_id=str(order.id), error=str(exc))

        logger.info("Abandoned order reaping complete", reaped=reaped)
        return reaped

    @handle(AbandonOrder)
    def abandon_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.abandon(command.reason or "Payment not received")
        repo.add(order)
