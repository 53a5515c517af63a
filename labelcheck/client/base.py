from abc import ABC, abstractmethod

from labelcheck.client.models import (
    ComparisonResult,
    ExtractionResult,
    ValidationResult,
    VerifiedControl,
)
from labelcheck.documents.models import Document


class BaseServiceClient(ABC):
    """Contract for the remote extraction/validation service.

    Every call either returns a parsed model or raises a ServiceError
    subclass. Adapters never leak transport exceptions.
    """

    @abstractmethod
    async def submit_document(self, document: Document) -> ExtractionResult:
        """Send a document for text extraction."""

    @abstractmethod
    async def validate_text(self, text: str) -> ValidationResult:
        """Assess extracted text against the compliance rules."""

    @abstractmethod
    async def list_verified_controls(self) -> list[VerifiedControl]:
        """Fetch the reviewed reference texts."""

    @abstractmethod
    async def run_comparison(self, document: Document) -> ComparisonResult:
        """Compare a document against the verified controls."""

    @abstractmethod
    async def probe_health(self) -> bool:
        """Return True if the service answered the liveness endpoint with 2xx."""

    async def aclose(self) -> None:
        """Release any held connections."""
