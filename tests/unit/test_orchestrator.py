import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from labelcheck.client import ServiceGateway
from labelcheck.client.base import BaseServiceClient
from labelcheck.client.exceptions import ServiceNetworkError, ServiceResponseError
from labelcheck.client.models import ExtractionResult, RiskLevel, ValidationResult
from labelcheck.config.settings import Settings
from labelcheck.documents.models import MediaCategory
from labelcheck.progress.estimator import ProgressEstimator
from labelcheck.progress.models import IDLE_SNAPSHOT, ProgressStatus
from labelcheck.workflow.exceptions import WorkflowTransitionError
from labelcheck.workflow.models import ErrorSource, WorkflowPhase
from labelcheck.workflow.orchestrator import WorkflowOrchestrator, build_orchestrator

EXTRACTION = ExtractionResult(
    text="PARACETAMOL 500 mg",
    engine_name="tesseract",
    processing_time_seconds=2.0,
    pages_processed=3,
)
VERDICT = ValidationResult(drug_name="Paracetamol", risk_level=RiskLevel.LOW)


def _client() -> MagicMock:
    client = MagicMock(spec=BaseServiceClient)
    client.submit_document = AsyncMock(return_value=EXTRACTION)
    client.validate_text = AsyncMock(return_value=VERDICT)
    return client


def _orchestrator(client: MagicMock) -> WorkflowOrchestrator:
    estimator = ProgressEstimator(
        {MediaCategory.IMAGE: 12.0, MediaCategory.PAGED_DOCUMENT: 30.0},
        tick_seconds=0.01,
        reset_delay_seconds=0.02,
    )
    return WorkflowOrchestrator(ServiceGateway(client), estimator)


@pytest.fixture()
def pdf_document(make_document):
    return make_document(
        filename="leaflet.pdf",
        content_type="application/pdf",
        content=b"%PDF-1.4",
        page_count=3,
    )


class TestSelection:
    def test_starts_idle(self) -> None:
        orchestrator = _orchestrator(_client())

        assert orchestrator.state.phase is WorkflowPhase.IDLE
        assert not orchestrator.state.can_extract

    def test_accepts_supported_document(self, make_document) -> None:
        orchestrator = _orchestrator(_client())
        document = make_document()

        assert orchestrator.select_document(document) is True
        assert orchestrator.state.phase is WorkflowPhase.SELECTED
        assert orchestrator.state.document is document
        assert orchestrator.state.can_extract

    def test_ignores_empty_selection(self) -> None:
        orchestrator = _orchestrator(_client())

        assert orchestrator.select_document(None) is False
        assert orchestrator.state.phase is WorkflowPhase.IDLE

    def test_rejects_unsupported_type(self, make_document) -> None:
        orchestrator = _orchestrator(_client())
        orchestrator.select_document(make_document())
        accepted = orchestrator.state

        rejected = make_document(filename="notes.txt", content_type="text/plain")

        assert orchestrator.select_document(rejected) is False
        assert orchestrator.state is accepted

    def test_rejects_empty_file(self, make_document) -> None:
        orchestrator = _orchestrator(_client())

        assert orchestrator.select_document(make_document(content=b"")) is False
        assert orchestrator.state.phase is WorkflowPhase.IDLE

    def test_extract_without_selection_raises(self) -> None:
        orchestrator = _orchestrator(_client())

        with pytest.raises(WorkflowTransitionError, match="idle"):
            asyncio.run(orchestrator.extract())


class TestExtraction:
    @pytest.mark.asyncio
    async def test_pdf_runs_through_to_completed(self, pdf_document) -> None:
        client = _client()
        orchestrator = _orchestrator(client)
        phases: list[WorkflowPhase] = []
        orchestrator.subscribe(lambda state: phases.append(state.phase))
        orchestrator.select_document(pdf_document)

        state = await orchestrator.extract()

        assert state.phase is WorkflowPhase.COMPLETED
        assert state.extraction == EXTRACTION
        assert state.validation == VERDICT
        assert state.error is None
        assert state.last_extracted_at is not None
        assert phases == [
            WorkflowPhase.SELECTED,
            WorkflowPhase.EXTRACTING,
            WorkflowPhase.EXTRACTED,
            WorkflowPhase.VALIDATING,
            WorkflowPhase.COMPLETED,
        ]
        client.submit_document.assert_awaited_once_with(pdf_document)
        client.validate_text.assert_awaited_once_with(EXTRACTION.text)
        orchestrator.close()

    @pytest.mark.asyncio
    async def test_progress_completes_when_extraction_resolves(self, pdf_document) -> None:
        orchestrator = _orchestrator(_client())
        orchestrator.select_document(pdf_document)

        await orchestrator.extract()

        assert orchestrator.progress.status is ProgressStatus.SUCCEEDED
        assert orchestrator.progress.fraction == 100.0
        await asyncio.sleep(0.05)
        assert orchestrator.progress == IDLE_SNAPSHOT

    @pytest.mark.asyncio
    async def test_extraction_failure(self, make_document) -> None:
        client = _client()
        client.submit_document.side_effect = ServiceResponseError("Failed to extract text")
        orchestrator = _orchestrator(client)
        statuses: list[ProgressStatus] = []
        orchestrator._estimator.subscribe(lambda snapshot: statuses.append(snapshot.status))
        orchestrator.select_document(make_document())

        state = await orchestrator.extract()

        assert state.phase is WorkflowPhase.FAILED
        assert state.error == "Failed to extract text"
        assert state.error_source is ErrorSource.EXTRACTION
        assert state.extraction is None
        assert state.validation is None
        assert state.last_extracted_at is None
        client.validate_text.assert_not_awaited()

        assert orchestrator.progress.fraction == 100.0
        assert orchestrator.progress.status is ProgressStatus.FAILED
        await asyncio.sleep(0.05)
        assert orchestrator.progress.fraction == 0.0
        assert statuses[-2:] == [ProgressStatus.FAILED, ProgressStatus.IDLE]

    @pytest.mark.asyncio
    async def test_empty_text_halts_without_validation(self, make_document) -> None:
        client = _client()
        client.submit_document.return_value = ExtractionResult(
            text="", engine_name="tesseract", processing_time_seconds=1.0
        )
        orchestrator = _orchestrator(client)
        orchestrator.select_document(make_document())

        state = await orchestrator.extract()

        assert state.phase is WorkflowPhase.EXTRACTED
        assert state.extraction is not None
        assert state.validation is None
        client.validate_text.assert_not_awaited()
        orchestrator.close()

    @pytest.mark.asyncio
    async def test_validation_failure_keeps_extraction(self, make_document) -> None:
        client = _client()
        client.validate_text.side_effect = ServiceNetworkError("Failed to validate text")
        orchestrator = _orchestrator(client)
        orchestrator.select_document(make_document())

        state = await orchestrator.extract()

        assert state.phase is WorkflowPhase.COMPLETED
        assert state.extraction == EXTRACTION
        assert state.validation is None
        assert state.error == "Failed to validate text"
        assert state.error_source is ErrorSource.VALIDATION
        assert orchestrator.progress.status is ProgressStatus.SUCCEEDED
        orchestrator.close()

    @pytest.mark.asyncio
    async def test_extract_twice_requires_reselection(self, make_document) -> None:
        orchestrator = _orchestrator(_client())
        document = make_document()
        orchestrator.select_document(document)
        await orchestrator.extract()

        with pytest.raises(WorkflowTransitionError, match="completed"):
            await orchestrator.extract()

        orchestrator.select_document(document)
        state = await orchestrator.extract()
        assert state.phase is WorkflowPhase.COMPLETED
        orchestrator.close()

    @pytest.mark.asyncio
    async def test_unexpected_error_fails_and_reraises(self, make_document) -> None:
        client = _client()
        client.submit_document.side_effect = RuntimeError("decoder bug")
        orchestrator = _orchestrator(client)
        orchestrator.select_document(make_document())

        with pytest.raises(RuntimeError, match="decoder bug"):
            await orchestrator.extract()

        assert orchestrator.state.phase is WorkflowPhase.FAILED
        assert orchestrator.state.error == "decoder bug"
        orchestrator.close()


class TestConcurrentSelection:
    @pytest.mark.asyncio
    async def test_reselection_discards_in_flight_response(self, make_document) -> None:
        release = asyncio.Event()
        client = _client()

        async def slow_submit(document):
            await release.wait()
            return EXTRACTION

        client.submit_document.side_effect = slow_submit
        orchestrator = _orchestrator(client)
        first = make_document(filename="first.png")
        second = make_document(filename="second.png")
        orchestrator.select_document(first)

        task = orchestrator.start_extraction()
        await asyncio.sleep(0)
        assert orchestrator.state.phase is WorkflowPhase.EXTRACTING
        assert orchestrator.state.busy

        orchestrator.select_document(second)
        assert orchestrator.state.phase is WorkflowPhase.SELECTED
        assert orchestrator.state.document is second
        assert orchestrator.state.extraction is None
        assert orchestrator.progress == IDLE_SNAPSHOT

        release.set()
        await task

        assert orchestrator.state.phase is WorkflowPhase.SELECTED
        assert orchestrator.state.document is second
        assert orchestrator.state.extraction is None
        client.validate_text.assert_not_awaited()
        orchestrator.close()

    @pytest.mark.asyncio
    async def test_reselection_during_validation_discards_verdict(self, make_document) -> None:
        release = asyncio.Event()
        client = _client()

        async def slow_validate(text):
            await release.wait()
            return VERDICT

        client.validate_text.side_effect = slow_validate
        orchestrator = _orchestrator(client)
        orchestrator.select_document(make_document(filename="first.png"))
        task = orchestrator.start_extraction()
        while orchestrator.state.phase is not WorkflowPhase.VALIDATING:
            await asyncio.sleep(0)

        second = make_document(filename="second.png")
        orchestrator.select_document(second)
        release.set()
        await task

        assert orchestrator.state.document is second
        assert orchestrator.state.validation is None
        assert orchestrator.state.phase is WorkflowPhase.SELECTED
        orchestrator.close()

    @pytest.mark.asyncio
    async def test_reselection_keeps_last_extracted_at(self, make_document) -> None:
        orchestrator = _orchestrator(_client())
        orchestrator.select_document(make_document())
        await orchestrator.extract()
        stamp = orchestrator.state.last_extracted_at

        orchestrator.select_document(make_document(filename="next.png"))

        assert orchestrator.state.last_extracted_at == stamp
        assert orchestrator.state.validation is None
        orchestrator.close()

    @pytest.mark.asyncio
    async def test_start_extraction_requires_selection(self) -> None:
        orchestrator = _orchestrator(_client())

        with pytest.raises(WorkflowTransitionError):
            orchestrator.start_extraction()

    @pytest.mark.asyncio
    async def test_close_cancels_owned_task(self, make_document) -> None:
        client = _client()

        async def hanging_submit(document):
            await asyncio.sleep(10)

        client.submit_document.side_effect = hanging_submit
        orchestrator = _orchestrator(client)
        orchestrator.select_document(make_document())
        task = orchestrator.start_extraction()
        await asyncio.sleep(0)

        orchestrator.close()

        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_close_cancels_superseded_tasks(self, make_document) -> None:
        client = _client()

        async def hanging_submit(document):
            await asyncio.sleep(10)

        client.submit_document.side_effect = hanging_submit
        orchestrator = _orchestrator(client)
        orchestrator.select_document(make_document(filename="first.png"))
        first = orchestrator.start_extraction()
        await asyncio.sleep(0)
        orchestrator.select_document(make_document(filename="second.png"))
        second = orchestrator.start_extraction()
        await asyncio.sleep(0)

        orchestrator.close()
        await asyncio.gather(first, second, return_exceptions=True)

        assert first.done()
        assert second.done()
        assert orchestrator._tasks == set()

    @pytest.mark.asyncio
    async def test_close_during_extraction_returns_to_selected(self, make_document) -> None:
        client = _client()

        async def hanging_submit(document):
            await asyncio.sleep(10)

        client.submit_document.side_effect = hanging_submit
        orchestrator = _orchestrator(client)
        document = make_document()
        orchestrator.select_document(document)
        task = orchestrator.start_extraction()
        await asyncio.sleep(0)

        orchestrator.close()
        await asyncio.gather(task, return_exceptions=True)

        assert orchestrator.state.phase is WorkflowPhase.SELECTED
        assert orchestrator.state.document is document
        assert not orchestrator.state.busy
        assert orchestrator.progress == IDLE_SNAPSHOT

    @pytest.mark.asyncio
    async def test_close_during_validation_keeps_extraction(self, make_document) -> None:
        client = _client()

        async def hanging_validate(text):
            await asyncio.sleep(10)

        client.validate_text.side_effect = hanging_validate
        orchestrator = _orchestrator(client)
        orchestrator.select_document(make_document())
        task = orchestrator.start_extraction()
        while orchestrator.state.phase is not WorkflowPhase.VALIDATING:
            await asyncio.sleep(0)

        orchestrator.close()
        await asyncio.gather(task, return_exceptions=True)

        assert orchestrator.state.phase is WorkflowPhase.COMPLETED
        assert orchestrator.state.extraction == EXTRACTION
        assert orchestrator.state.error_source is ErrorSource.VALIDATION
        assert not orchestrator.state.busy

    @pytest.mark.asyncio
    async def test_failed_task_is_released(self, make_document) -> None:
        client = _client()
        client.submit_document.side_effect = RuntimeError("decoder bug")
        orchestrator = _orchestrator(client)
        orchestrator.select_document(make_document())

        task = orchestrator.start_extraction()
        await asyncio.gather(task, return_exceptions=True)

        assert isinstance(task.exception(), RuntimeError)
        assert orchestrator._tasks == set()
        orchestrator.close()


class TestBuildOrchestrator:
    def test_builds_from_settings(self) -> None:
        client = _client()
        orchestrator = build_orchestrator(Settings(), client)

        assert orchestrator.state.phase is WorkflowPhase.IDLE
        assert orchestrator._gateway.client is client
