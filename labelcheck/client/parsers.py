"""Turns raw service JSON into client models, rejecting unusable payloads."""

from datetime import datetime
from typing import Any

from labelcheck.client.exceptions import ServiceResponseError
from labelcheck.client.models import (
    ComparisonResult,
    ControlStatus,
    ExtractionResult,
    RiskLevel,
    ValidationDetails,
    ValidationResult,
    VerifiedControl,
)
from labelcheck.logging.logger import Log

_UNKNOWN_ENGINE = "Unknown"


def unwrap_payload(body: Any, default_error: str) -> Any:
    """Return the useful part of a response envelope.

    The service answers either `{"success": bool, "data": ..., "error": ...}`
    or the bare payload.

    Raises:
        ServiceResponseError: if the body is not an object or reports failure.
    """
    if not isinstance(body, dict):
        raise ServiceResponseError(f"{default_error}: response must be a JSON object")
    if body.get("success") is False:
        error = body.get("error")
        raise ServiceResponseError(error if isinstance(error, str) and error else default_error)
    if "data" in body and body["data"] is not None:
        return body["data"]
    return body


def build_extraction_result(payload: Any) -> ExtractionResult:
    if not isinstance(payload, dict):
        raise ServiceResponseError("Extraction payload must be an object")
    text = payload.get("extracted_text")
    if text is None:
        text = ""
    if not isinstance(text, str):
        raise ServiceResponseError("'extracted_text' must be a string")
    engine = payload.get("model_name") or payload.get("ocr_engine") or _UNKNOWN_ENGINE
    return ExtractionResult(
        text=text,
        engine_name=str(engine),
        processing_time_seconds=_parse_seconds(payload.get("processing_time")),
        pages_processed=_optional_int(payload.get("pages_processed"), "pages_processed"),
    )


def build_validation_result(payload: Any) -> ValidationResult:
    if not isinstance(payload, dict):
        raise ServiceResponseError("Validation payload must be an object")
    missing = payload.get("missing_fields") or []
    if not isinstance(missing, list):
        raise ServiceResponseError("'missing_fields' must be a list")
    return ValidationResult(
        drug_name=_optional_str(payload.get("drug_name")),
        strength=_optional_str(payload.get("strength")),
        batch_number=_optional_str(payload.get("batch_number")),
        manufacturing_date=_optional_str(payload.get("manufacturing_date")),
        expiry_date=_optional_str(payload.get("expiry_date")),
        manufacturer=_optional_str(payload.get("manufacturer")),
        license_number=_optional_str(payload.get("license_number")),
        serialization_present=_optional_bool(payload.get("serialization_present")),
        missing_fields=[str(item) for item in missing],
        risk_level=_parse_risk_level(payload.get("risk_level")),
        confidence_score=_optional_float(payload.get("confidence_score"), "confidence_score"),
        analysis_summary=_optional_str(payload.get("analysis_summary")),
    )


def build_verified_controls(payload: Any) -> list[VerifiedControl]:
    if not isinstance(payload, list):
        raise ServiceResponseError("Verified controls payload must be a list")
    controls: list[VerifiedControl] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ServiceResponseError(f"Control at index {index} must be an object")
        controls.append(
            VerifiedControl(
                control_name=str(item.get("control_name") or ""),
                verified_text=str(item.get("verified_text") or ""),
                status=_parse_control_status(item.get("status")),
                approved_at=_parse_timestamp(item.get("approved_at")),
            )
        )
    return controls


def build_comparison_result(payload: Any) -> ComparisonResult:
    if not isinstance(payload, dict):
        raise ServiceResponseError("Comparison payload must be an object")
    decision = payload.get("decision")
    if not isinstance(decision, str) or not decision:
        raise ServiceResponseError("'decision' must be a non-empty string")
    details = payload.get("validation_details") or {}
    if not isinstance(details, dict):
        raise ServiceResponseError("'validation_details' must be an object")
    return ComparisonResult(
        decision=decision,
        similarity_score=_optional_float(payload.get("similarity_score"), "similarity_score") or 0.0,
        authenticity_score=_optional_float(payload.get("authenticity_score"), "authenticity_score")
        or 0.0,
        validation_details=ValidationDetails(
            dosage_format=_optional_bool(details.get("dosage_format")) is True,
            expiry_format=_optional_bool(details.get("expiry_format")) is True,
            batch_number=_optional_bool(details.get("batch_number")) is True,
            manufacturer_presence=_optional_bool(details.get("manufacturer_presence")) is True,
        ),
        extracted_text=_optional_str(payload.get("extracted_text")),
    )


def _parse_seconds(raw: Any) -> float:
    # Display-only; unreadable values become 0.
    if raw is None:
        return 0.0
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return float(raw)
    if isinstance(raw, str):
        cleaned = raw.strip().lower().removesuffix("s").strip()
        try:
            return float(cleaned)
        except ValueError:
            pass
    Log.warning(f"Ignoring unreadable processing_time {raw!r}")
    return 0.0


def _optional_bool(raw: Any) -> bool | None:
    if raw is None or isinstance(raw, bool):
        return raw
    if isinstance(raw, int):
        return raw != 0
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in ("true", "yes", "1"):
            return True
        if normalized in ("false", "no", "0"):
            return False
    Log.warning(f"Ignoring non-boolean flag {raw!r}")
    return None


def _optional_int(raw: Any, name: str) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ServiceResponseError(f"'{name}' must be an integer")
    return raw


def _optional_float(raw: Any, name: str) -> float | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ServiceResponseError(f"'{name}' must be a number")
    return float(raw)


def _optional_str(raw: Any) -> str | None:
    if raw is None or raw == "":
        return None
    return str(raw)


def _parse_risk_level(raw: Any) -> RiskLevel:
    if not isinstance(raw, str):
        return RiskLevel.UNKNOWN
    try:
        return RiskLevel(raw.strip().upper())
    except ValueError:
        return RiskLevel.UNKNOWN


def _parse_control_status(raw: Any) -> ControlStatus:
    if not isinstance(raw, str):
        return ControlStatus.UNKNOWN
    try:
        return ControlStatus(raw.strip().lower())
    except ValueError:
        return ControlStatus.UNKNOWN


def _parse_timestamp(raw: Any) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
