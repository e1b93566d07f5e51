"""Configurable fake payment gateway for development and testing.

Simulates the gateway without any external calls. It can be configured at
runtime to succeed or fail, and records every call for assertions.
"""

from uuid import uuid4

from checkout.errors import GatewayError
from checkout.payments.gateway.port import PaymentGateway, RemotePayment


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, key_id: str = "fake_key") -> None:
        self.key_id = key_id
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_remote_payment(self, amount_minor: int, currency: str, receipt: str) -> RemotePayment:
        self.calls.append(
            {
                "method": "create_remote_payment",
                "amount_minor": amount_minor,
                "currency": currency,
                "receipt": receipt,
            }
        )

        if not self.should_succeed:
            raise GatewayError(self.failure_reason, receipt=receipt)

        return RemotePayment(
            gateway_order_ref=f"order_fake_{uuid4().hex[:14]}",
            amount_minor=amount_minor,
            currency=currency,
            receipt=receipt,
            gateway_status="created",
        )
