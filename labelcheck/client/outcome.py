"""Call boundary between the service client and the workflow.

Every remote failure is turned into a `ServiceOutcome` with `success=False`
and a display message, so callers never handle transport exceptions.
"""

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Generic, TypeVar

from labelcheck.client.base import BaseServiceClient
from labelcheck.client.exceptions import ServiceError
from labelcheck.client.models import (
    ComparisonResult,
    ExtractionResult,
    ValidationResult,
    VerifiedControl,
)
from labelcheck.documents.models import Document
from labelcheck.logging.logger import Log

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceOutcome(Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: T) -> "ServiceOutcome[T]":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, error: str) -> "ServiceOutcome[T]":
        return cls(success=False, error=error)


class ServiceGateway:
    """Wraps a BaseServiceClient and normalizes failures into outcomes."""

    def __init__(self, client: BaseServiceClient) -> None:
        self._client = client

    @property
    def client(self) -> BaseServiceClient:
        return self._client

    async def submit_document(self, document: Document) -> ServiceOutcome[ExtractionResult]:
        return await self._guard(
            self._client.submit_document(document), "Failed to extract text"
        )

    async def validate_text(self, text: str) -> ServiceOutcome[ValidationResult]:
        return await self._guard(self._client.validate_text(text), "Failed to validate text")

    async def list_verified_controls(self) -> ServiceOutcome[list[VerifiedControl]]:
        return await self._guard(self._client.list_verified_controls(), "Failed to fetch rules")

    async def run_comparison(self, document: Document) -> ServiceOutcome[ComparisonResult]:
        return await self._guard(
            self._client.run_comparison(document), "Failed to run comparison"
        )

    @staticmethod
    async def _guard(call: Awaitable[T], default_error: str) -> ServiceOutcome[T]:
        try:
            return ServiceOutcome.ok(await call)
        except ServiceError as exc:
            message = str(exc) or default_error
            Log.warning(f"{default_error}: {message}")
            return ServiceOutcome.failed(message)
