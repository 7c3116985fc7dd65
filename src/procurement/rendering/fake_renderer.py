"""Fake document renderer — keeps rendered documents in memory for tests."""

from uuid import uuid4

from procurement.fulfillment.order_graph import OrderGraph
from procurement.rendering.port import DocumentRenderer, RenderError


class FakeDocumentRenderer(DocumentRenderer):
    def __init__(self):
        self.documents: dict[str, bytes] = {}
        self.discarded: list[str] = []
        self.rendered: list[str] = []
        self.should_succeed = True
        self.failure_reason = "Document rendering failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Document rendering failed"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def render(self, graph: OrderGraph) -> str:
        if not self.should_succeed:
            raise RenderError(self.failure_reason)

        reference = f"fake://documents/order-{graph.order_number}-{uuid4().hex[:8]}.pdf"
        self.documents[reference] = f"%PDF-fake {graph.order_number} {graph.total_amount}".encode()
        self.rendered.append(reference)
        return reference

    def read(self, reference: str) -> bytes:
        try:
            return self.documents[reference]
        except KeyError as exc:
            raise FileNotFoundError(reference) from exc

    def discard(self, reference: str) -> None:
        self.documents.pop(reference, None)
        self.discarded.append(reference)

    def reset(self):
        self.documents.clear()
        self.discarded.clear()
        self.rendered.clear()
        self.should_succeed = True
        self.failure_reason = "Document rendering failed"
