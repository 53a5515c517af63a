import mimetypes
from pathlib import Path

from labelcheck.documents.exceptions import RejectedDocumentError
from labelcheck.documents.models import Document, MediaCategory, category_for
from labelcheck.logging.logger import Log
from labelcheck.pdf.base import BasePageCounter
from labelcheck.pdf.exceptions import PdfInspectionError

_EXTENSION_MEDIA_TYPES: dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".pdf": "application/pdf",
}


def media_type_for_path(path: Path) -> str:
    """Resolve a declared content type from a file name."""
    media_type = _EXTENSION_MEDIA_TYPES.get(path.suffix.lower())
    if media_type is not None:
        return media_type
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


class DocumentLoader:
    """Builds Documents from files on disk or from uploaded bytes."""

    def __init__(self, page_counter: BasePageCounter | None = None) -> None:
        self._page_counter = page_counter

    def load(self, path: Path) -> Document:
        """Read a file from disk and build a Document.

        Raises:
            RejectedDocumentError: if the file is missing, empty or of an
                unaccepted type.
        """
        if not path.is_file():
            raise RejectedDocumentError(f"File not found: {path}")
        return self.from_upload(path.name, media_type_for_path(path), path.read_bytes())

    def from_upload(self, filename: str, content_type: str, content: bytes) -> Document:
        """Build a Document from bytes whose content type was declared by the caller.

        Raises:
            RejectedDocumentError: if the content is empty or the type is not accepted.
        """
        category = category_for(content_type)
        if category is None:
            raise RejectedDocumentError(
                f"Unsupported file type '{content_type}' for {filename}"
            )
        if not content:
            raise RejectedDocumentError(f"File is empty: {filename}")
        page_count = None
        if category is MediaCategory.PAGED_DOCUMENT:
            page_count = self._count_pages(filename, content)
        return Document(
            filename=filename,
            content_type=content_type.strip().lower(),
            content=content,
            page_count=page_count,
        )

    def _count_pages(self, filename: str, content: bytes) -> int | None:
        if self._page_counter is None:
            return None
        try:
            return self._page_counter.count_pages(content)
        except PdfInspectionError as exc:
            Log.warning(f"Could not count pages of {filename}: {exc}")
            return None
