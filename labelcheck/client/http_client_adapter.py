from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from labelcheck.client.base import BaseServiceClient
from labelcheck.client.exceptions import ServiceNetworkError, ServiceResponseError
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
    unwrap_payload,
)
from labelcheck.documents.models import Document, MediaCategory
from labelcheck.logging.logger import Log


class HttpServiceClient(BaseServiceClient):
    """Service client adapter built on httpx.AsyncClient."""

    OCR_PDF_PATH = "/api/ocr/pdf"
    OCR_IMAGE_PATH = "/api/ocr/image"
    VALIDATE_TEXT_PATH = "/api/validation/validate-text"
    VERIFIED_CONTROLS_PATH = "/api/verified/"
    COMPARISON_PATH = "/api/comparison/run/"

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float,
        health_path: str = "/health",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._health_path = health_path
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def submit_document(self, document: Document) -> ExtractionResult:
        path = (
            self.OCR_PDF_PATH
            if document.category is MediaCategory.PAGED_DOCUMENT
            else self.OCR_IMAGE_PATH
        )
        body = await self._send(
            "Failed to upload file",
            lambda: self._client.post(path, files=self._file_field(document)),
        )
        return build_extraction_result(unwrap_payload(body, "Failed to upload file"))

    async def validate_text(self, text: str) -> ValidationResult:
        body = await self._send(
            "Failed to validate text",
            lambda: self._client.post(self.VALIDATE_TEXT_PATH, json={"text": text}),
        )
        return build_validation_result(unwrap_payload(body, "Failed to validate text"))

    async def list_verified_controls(self) -> list[VerifiedControl]:
        body = await self._send(
            "Failed to fetch rules",
            lambda: self._client.get(self.VERIFIED_CONTROLS_PATH),
        )
        payload = unwrap_payload(body, "Failed to fetch rules")
        if isinstance(payload, dict):
            payload = []
        return build_verified_controls(payload)

    async def run_comparison(self, document: Document) -> ComparisonResult:
        body = await self._send(
            "Failed to run comparison",
            lambda: self._client.post(self.COMPARISON_PATH, files=self._file_field(document)),
        )
        return build_comparison_result(unwrap_payload(body, "Failed to run comparison"))

    async def probe_health(self) -> bool:
        try:
            response = await self._client.get(self._health_path)
        except httpx.HTTPError as exc:
            raise ServiceNetworkError(f"Health probe failed: {exc}") from exc
        return response.is_success

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _file_field(document: Document) -> dict[str, tuple[str, bytes, str]]:
        return {"file": (document.filename, document.content, document.content_type)}

    @staticmethod
    async def _send(
        default_error: str,
        request: Callable[[], Awaitable[httpx.Response]],
    ) -> Any:
        try:
            response = await request()
        except httpx.TimeoutException as exc:
            Log.error(f"{default_error}: request timed out")
            raise ServiceNetworkError(f"{default_error}: request timed out") from exc
        except httpx.HTTPError as exc:
            Log.error(f"{default_error}: {exc}")
            raise ServiceNetworkError(str(exc) or default_error) from exc

        if response.is_error:
            message = _error_from_body(response) or f"{default_error} (HTTP {response.status_code})"
            Log.error(f"{default_error}: {message}")
            raise ServiceResponseError(message)

        try:
            return response.json()
        except ValueError as exc:
            raise ServiceResponseError(f"{default_error}: invalid JSON response") from exc


def _error_from_body(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error:
            return error
    return None
