"""Fake notifier — records messages in memory for test assertions."""

from procurement.fulfillment.order_graph import OrderGraph
from procurement.notifier.port import DeliveryError, Notifier


class FakeNotifier(Notifier):
    def __init__(self):
        self.sent_messages: list[dict] = []
        self.calls = 0
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        """Configure the fake notifier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send(
        self,
        recipients: list[str],
        subject: str,
        order: OrderGraph,
        document_reference: str,
        document: bytes,
        idempotency_key: str,
    ) -> str:
        self.calls += 1
        if not self.should_succeed:
            raise DeliveryError(self.failure_reason)

        message_id = f"<{idempotency_key}@procurement.local>"
        self.sent_messages.append(
            {
                "message_id": message_id,
                "recipients": list(recipients),
                "subject": subject,
                "order_number": order.order_number,
                "document_reference": document_reference,
                "attachment_size": len(document),
                "idempotency_key": idempotency_key,
            }
        )
        return message_id

    def reset(self):
        """Clear sent messages (useful between tests)."""
        self.sent_messages.clear()
        self.calls = 0
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"
