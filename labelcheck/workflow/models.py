from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from labelcheck.client.models import ExtractionResult, ValidationResult
from labelcheck.documents.models import Document


class WorkflowPhase(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    EXTRACTING = "extracting"
    EXTRACTED = "extracted"
    VALIDATING = "validating"
    COMPLETED = "completed"
    FAILED = "failed"


class ErrorSource(str, Enum):
    EXTRACTION = "extraction"
    VALIDATION = "validation"


@dataclass(frozen=True)
class WorkflowState:
    """Single source of truth for one submission run.

    Replaced as a whole on every transition, so observers never see a
    validation paired with a different document than its extraction.
    """

    phase: WorkflowPhase = WorkflowPhase.IDLE
    document: Document | None = None
    extraction: ExtractionResult | None = None
    validation: ValidationResult | None = None
    error: str | None = None
    error_source: ErrorSource | None = None
    last_extracted_at: datetime | None = None

    @property
    def busy(self) -> bool:
        return self.phase in (WorkflowPhase.EXTRACTING, WorkflowPhase.VALIDATING)

    @property
    def can_extract(self) -> bool:
        return self.phase is WorkflowPhase.SELECTED and self.document is not None
