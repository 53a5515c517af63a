from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    UNKNOWN = "UNKNOWN"


class ControlStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ExtractionResult:
    """Output of a successful submit-document call."""

    text: str
    engine_name: str
    processing_time_seconds: float
    pages_processed: int | None = None


@dataclass(frozen=True)
class ValidationResult:
    """Compliance verdict for a piece of extracted label text."""

    drug_name: str | None = None
    strength: str | None = None
    batch_number: str | None = None
    manufacturing_date: str | None = None
    expiry_date: str | None = None
    manufacturer: str | None = None
    license_number: str | None = None
    serialization_present: bool | None = None
    missing_fields: list[str] = field(default_factory=list)
    risk_level: RiskLevel = RiskLevel.UNKNOWN
    confidence_score: float | None = None
    analysis_summary: str | None = None


@dataclass(frozen=True)
class VerifiedControl:
    """A reviewed reference text kept by the service."""

    control_name: str
    verified_text: str
    status: ControlStatus = ControlStatus.UNKNOWN
    approved_at: datetime | None = None


@dataclass(frozen=True)
class ValidationDetails:
    dosage_format: bool = False
    expiry_format: bool = False
    batch_number: bool = False
    manufacturer_presence: bool = False


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of comparing a document against the verified controls."""

    decision: str
    similarity_score: float
    authenticity_score: float
    validation_details: ValidationDetails = field(default_factory=ValidationDetails)
    extracted_text: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.decision == "VALID"
