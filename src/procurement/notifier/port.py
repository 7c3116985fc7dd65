"""Factory notifier port (abstract interface).

Delivers a submitted order's document to the factory. Adapters receive the
job's idempotency key and must make a repeated send of the same key safe to
the recipient (e.g. by reusing it as the message id).
"""

from abc import ABC, abstractmethod

from procurement.fulfillment.order_graph import OrderGraph


class DeliveryError(Exception):
    """The notification was not accepted for delivery. Retryable."""


class Notifier(ABC):
    @abstractmethod
    def send(
        self,
        recipients: list[str],
        subject: str,
        order: OrderGraph,
        document_reference: str,
        document: bytes,
        idempotency_key: str,
    ) -> str:
        """Send the order document and return the message id.

        Raises:
            DeliveryError: the message was not accepted.
        """
        ...
