"""Offline service client adapter.

Answers every call with a canned payload and makes no network calls. Useful
for local development, demos and integration tests of the workflow.
"""

import asyncio
from typing import ClassVar

from labelcheck.client.base import BaseServiceClient
from labelcheck.client.models import (
    ComparisonResult,
    ExtractionResult,
    ValidationResult,
    VerifiedControl,
)
from labelcheck.client.parsers import (
    build_comparison_result,
    build_extraction_result,
    build_validation_result,
    build_verified_controls,
)
from labelcheck.documents.models import Document, MediaCategory


class ExampleServiceClient(BaseServiceClient):
    """Deterministic adapter returning fixed extraction and validation payloads."""

    EXTRACTION_RESPONSE: ClassVar[dict[str, object]] = {
        "extracted_text": (
            "PARACETAMOL 500 mg Tablets\n"
            "Batch No: PCM2401\n"
            "Mfg: 01/2024 Exp: 12/2026\n"
            "Mfd by: Example Pharma Ltd\n"
            "Lic No: EX/25/1234"
        ),
        "model_name": "example-ocr",
        "processing_time": 0.0,
    }

    VALIDATION_RESPONSE: ClassVar[dict[str, object]] = {
        "drug_name": "Paracetamol",
        "strength": "500 mg",
        "batch_number": "PCM2401",
        "manufacturing_date": "01/2024",
        "expiry_date": "12/2026",
        "manufacturer": "Example Pharma Ltd",
        "license_number": "EX/25/1234",
        "serialization_present": False,
        "missing_fields": [],
        "risk_level": "LOW",
        "confidence_score": 92,
        "analysis_summary": "All mandatory label fields are present.",
    }

    CONTROLS_RESPONSE: ClassVar[list[dict[str, object]]] = [
        {
            "control_name": "Paracetamol 500 mg label",
            "verified_text": "PARACETAMOL 500 mg Tablets",
            "status": "approved",
            "approved_at": "2024-02-01T09:30:00Z",
        },
    ]

    COMPARISON_RESPONSE: ClassVar[dict[str, object]] = {
        "decision": "VALID",
        "similarity_score": 96.5,
        "authenticity_score": 94.0,
        "validation_details": {
            "dosage_format": True,
            "expiry_format": True,
            "batch_number": True,
            "manufacturer_presence": True,
        },
    }

    def __init__(self, latency_seconds: float = 0.0) -> None:
        self._latency_seconds = latency_seconds

    async def submit_document(self, document: Document) -> ExtractionResult:
        await self._wait()
        payload = dict(self.EXTRACTION_RESPONSE)
        if document.category is MediaCategory.PAGED_DOCUMENT:
            payload["pages_processed"] = document.page_count or 1
        return build_extraction_result(payload)

    async def validate_text(self, text: str) -> ValidationResult:
        _ = text
        await self._wait()
        return build_validation_result(self.VALIDATION_RESPONSE)

    async def list_verified_controls(self) -> list[VerifiedControl]:
        await self._wait()
        return build_verified_controls(self.CONTROLS_RESPONSE)

    async def run_comparison(self, document: Document) -> ComparisonResult:
        await self._wait()
        payload = dict(self.COMPARISON_RESPONSE)
        payload["extracted_text"] = self.EXTRACTION_RESPONSE["extracted_text"]
        _ = document
        return build_comparison_result(payload)

    async def probe_health(self) -> bool:
        return True

    async def _wait(self) -> None:
        if self._latency_seconds > 0:
            await asyncio.sleep(self._latency_seconds)
