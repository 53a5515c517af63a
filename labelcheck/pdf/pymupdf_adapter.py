import pymupdf

from labelcheck.pdf.base import BasePageCounter
from labelcheck.pdf.exceptions import PdfInspectionError


class PyMuPdfAdapter(BasePageCounter):
    """Counts PDF pages using PyMuPDF."""

    def count_pages(self, pdf_bytes: bytes) -> int:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                return int(doc.page_count)
        except Exception as exc:
            raise PdfInspectionError(f"pymupdf could not open PDF: {exc}") from exc
