import uuid
from dataclasses import dataclass, field
from enum import Enum


class MediaCategory(str, Enum):
    """Coarse document category driving the endpoint and progress estimate."""

    IMAGE = "image"
    PAGED_DOCUMENT = "paged-document"


PDF_MEDIA_TYPE = "application/pdf"

ACCEPTED_MEDIA_TYPES: frozenset[str] = frozenset({
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/bmp",
    "image/tiff",
    PDF_MEDIA_TYPE,
})


def category_for(content_type: str) -> MediaCategory | None:
    """Map a declared content type onto its category, or None if not accepted."""
    normalized = content_type.strip().lower()
    if normalized not in ACCEPTED_MEDIA_TYPES:
        return None
    if normalized == PDF_MEDIA_TYPE:
        return MediaCategory.PAGED_DOCUMENT
    return MediaCategory.IMAGE


@dataclass(frozen=True)
class Document:
    """A selected file. Immutable; a new selection replaces it wholesale."""

    filename: str
    content_type: str
    content: bytes = field(repr=False)
    page_count: int | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def category(self) -> MediaCategory | None:
        return category_for(self.content_type)

    @property
    def size_bytes(self) -> int:
        return len(self.content)
