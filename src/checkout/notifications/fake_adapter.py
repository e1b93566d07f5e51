"""Fake notifier: records sent messages for testing."""

from uuid import uuid4

from checkout.notifications.port import CustomerNotifier


class FakeNotifier(CustomerNotifier):
    """Notifier that records messages in memory for test assertions."""

    def __init__(self):
        self.sent_messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Delivery failed"
        self.raise_on_send = False

    def configure(self, should_succeed: bool = True, failure_reason: str = "Delivery failed", raise_on_send=False):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.raise_on_send = raise_on_send

    def send(self, customer_id: str, subject: str, body: str) -> dict:
        if self.raise_on_send:
            raise ConnectionError(self.failure_reason)
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"msg-{uuid4().hex[:12]}"
        self.sent_messages.append(
            {
                "message_id": message_id,
                "customer_id": customer_id,
                "subject": subject,
                "body": body,
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        """Clear sent messages (useful between tests)."""
        self.sent_messages.clear()
        self.should_succeed = True
        self.failure_reason = "Delivery failed"
        self.raise_on_send = False
