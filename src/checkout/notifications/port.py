"""Customer notification port: abstract interface for message dispatch."""

from abc import ABC, abstractmethod


class CustomerNotifier(ABC):
    """Abstract interface for customer notification adapters."""

    @abstractmethod
    def send(self, customer_id: str, subject: str, body: str) -> dict:
        """Send a message to a customer.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
