"""Payment gateway port (abstract interface).

Defines the contract the order initiation flow relies on. Adapters raise
GatewayError for any failure (network, timeout, provider rejection) so the
initiating unit of work rolls back instead of keeping an order that points
at a remote payment that does not exist.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RemotePayment:
    """A payment request registered with the gateway, awaiting the customer."""

    gateway_order_ref: str
    amount_minor: int
    currency: str
    receipt: str
    gateway_status: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    #: Publishable key handed to the client to complete payment.
    key_id: str = ""

    @abstractmethod
    def create_remote_payment(self, amount_minor: int, currency: str, receipt: str) -> RemotePayment:
        """Register a payment of `amount_minor` (paise for INR) for order `receipt`."""
        ...
