import io
from collections.abc import Callable

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from labelcheck.documents.models import Document

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _pdf_with_pages(*lines: str) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for line in lines:
        c.drawString(72, 720, line)
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    return _pdf_with_pages("PARACETAMOL 500 mg")


@pytest.fixture()
def three_page_pdf_bytes() -> bytes:
    """Generate a three-page PDF with known text on each page."""
    return _pdf_with_pages("Page one", "Page two", "Page three")


@pytest.fixture()
def png_bytes() -> bytes:
    """Bytes standing in for an uploaded label photo; never decoded locally."""
    return PNG_SIGNATURE + b"label-photo"


@pytest.fixture()
def make_document() -> Callable[..., Document]:
    def _make(
        filename: str = "label.png",
        content_type: str = "image/png",
        content: bytes = PNG_SIGNATURE + b"label-photo",
        page_count: int | None = None,
    ) -> Document:
        return Document(
            filename=filename,
            content_type=content_type,
            content=content,
            page_count=page_count,
        )

    return _make
