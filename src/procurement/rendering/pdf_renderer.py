"""PDF document renderer.

Renders the order sheet to HTML and prints it to an A4 PDF with a headless
Chromium subprocess. Documents are written to the storage directory as
`order-<number>-<uuid>.pdf`; the file path is the document reference.
"""

import os
import subprocess
import tempfile
from pathlib import Path
from uuid import uuid4

import structlog

from procurement.fulfillment.order_graph import OrderGraph
from procurement.rendering.port import DocumentRenderer, RenderError
from procurement.rendering.templates import OrderDocumentTemplate

logger = structlog.get_logger(__name__)

DEFAULT_STORAGE_PATH = "/tmp/vendora-documents"


class PdfDocumentRenderer(DocumentRenderer):
    def __init__(self, storage_path: str | None = None, chromium_binary: str | None = None, timeout: float = 60.0):
        self.storage_path = Path(storage_path or os.environ.get("DOCUMENT_STORAGE_PATH", DEFAULT_STORAGE_PATH))
        self.chromium_binary = chromium_binary or os.environ.get("CHROMIUM_BINARY", "chromium")
        self.timeout = timeout

    def render(self, graph: OrderGraph) -> str:
        self.storage_path.mkdir(parents=True, exist_ok=True)
        target = self.storage_path / f"order-{graph.order_number}-{uuid4()}.pdf"
        html = OrderDocumentTemplate.render(graph)

        with tempfile.TemporaryDirectory(prefix="order-render-") as workdir:
            source = Path(workdir) / "order.html"
            source.write_text(html, encoding="utf-8")
            self._print_to_pdf(source, target)

        if not target.exists() or target.stat().st_size == 0:
            raise RenderError(f"Renderer produced no output for order {graph.order_number}")

        logger.info("Order document rendered", order_number=graph.order_number, path=str(target))
        return str(target)

    def _print_to_pdf(self, source: Path, target: Path) -> None:
        command = [
            self.chromium_binary,
            "--headless",
            "--disable-gpu",
            "--no-sandbox",
            "--no-pdf-header-footer",
            f"--print-to-pdf={target}",
            source.as_uri(),
        ]
        try:
            completed = subprocess.run(command, capture_output=True, timeout=self.timeout, check=False)
        except subprocess.TimeoutExpired as exc:
            self.discard(str(target))
            raise RenderError(f"Renderer timed out after {self.timeout}s") from exc
        except OSError as exc:
            raise RenderError(f"Could not start renderer: {exc}") from exc

        if completed.returncode != 0:
            self.discard(str(target))
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise RenderError(f"Renderer exited with status {completed.returncode}: {stderr[:500]}")

    def read(self, reference: str) -> bytes:
        return Path(reference).read_bytes()

    def discard(self, reference: str) -> None:
        try:
            Path(reference).unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not discard document", path=reference)
