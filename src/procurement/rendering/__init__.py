"""Document renderer factory.

Provides get_renderer() / set_renderer() to swap implementations:
- FakeDocumentRenderer for development and testing (DOCUMENT_RENDERER unset or "fake")
- PdfDocumentRenderer for production (DOCUMENT_RENDERER=pdf)
"""

import os

from procurement.fulfillment.settings import get_settings
from procurement.rendering.fake_renderer import FakeDocumentRenderer
from procurement.rendering.pdf_renderer import PdfDocumentRenderer
from procurement.rendering.port import DocumentRenderer

_current_renderer: DocumentRenderer | None = None


def get_renderer() -> DocumentRenderer:
    """Return the current document renderer, chosen by DOCUMENT_RENDERER on first use."""
    global _current_renderer
    if _current_renderer is None:
        if os.environ.get("DOCUMENT_RENDERER", "fake").lower() == "pdf":
            _current_renderer = PdfDocumentRenderer(timeout=get_settings().render_timeout_seconds)
        else:
            _current_renderer = FakeDocumentRenderer()
    return _current_renderer


def set_renderer(renderer: DocumentRenderer) -> None:
    """Override the active renderer (useful for tests)."""
    global _current_renderer
    _current_renderer = renderer


def reset_renderer() -> None:
    """Reset to the default renderer."""
    global _current_renderer
    _current_renderer = None
