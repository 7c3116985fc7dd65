"""Document renderer port (abstract interface).

Turns an order graph into a durable document and returns a reference to it
(a file path for the PDF renderer). Adapters: FakeDocumentRenderer (dev/test)
and PdfDocumentRenderer (production).
"""

from abc import ABC, abstractmethod

from procurement.fulfillment.order_graph import OrderGraph


class RenderError(Exception):
    """The document could not be produced. Retryable."""


class DocumentRenderer(ABC):
    @abstractmethod
    def render(self, graph: OrderGraph) -> str:
        """Render the order document and return its reference."""
        ...

    @abstractmethod
    def read(self, reference: str) -> bytes:
        """Return the document content for a reference."""
        ...

    @abstractmethod
    def discard(self, reference: str) -> None:
        """Remove a document that will never become the canonical one."""
        ...
