import asyncio
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from labelcheck.client.base import BaseServiceClient
from labelcheck.client.models import ExtractionResult
from labelcheck.client.outcome import ServiceGateway
from labelcheck.config.settings import Settings
from labelcheck.documents.models import Document
from labelcheck.logging.logger import Log
from labelcheck.progress.estimator import ProgressEstimator, build_estimator
from labelcheck.progress.models import ProgressSnapshot
from labelcheck.workflow.exceptions import WorkflowTransitionError
from labelcheck.workflow.models import ErrorSource, WorkflowPhase, WorkflowState

StateListener = Callable[[WorkflowState], None]


class WorkflowOrchestrator:
    """Sequences selection -> extraction -> automatic validation -> result.

    Each accepted selection bumps a generation counter. Remote calls are
    tagged with the generation active at dispatch, and a response whose
    generation no longer matches is dropped without touching state.
    """

    def __init__(self, gateway: ServiceGateway, estimator: ProgressEstimator) -> None:
        self._gateway = gateway
        self._estimator = estimator
        self._state = WorkflowState()
        self._generation = 0
        self._listeners: list[StateListener] = []
        self._tasks: set[asyncio.Task[WorkflowState]] = set()

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def progress(self) -> ProgressSnapshot:
        return self._estimator.snapshot

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def select_document(self, document: Document | None) -> bool:
        """Make `document` the active one, clearing every derived result.

        Allowed from any phase. Returns False, without any transition, for an
        empty selection or a document whose type is not accepted.
        """
        if document is None:
            Log.info("Empty selection ignored")
            return False
        if document.category is None:
            Log.warning(f"Rejected {document.filename}: unsupported type '{document.content_type}'")
            return False
        if not document.content:
            Log.warning(f"Rejected {document.filename}: file is empty")
            return False

        self._generation += 1
        self._estimator.cancel()
        self._set_state(
            WorkflowState(
                phase=WorkflowPhase.SELECTED,
                document=document,
                last_extracted_at=self._state.last_extracted_at,
            )
        )
        return True

    async def extract(self) -> WorkflowState:
        """Run extraction and, when it yields text, validation. Returns the final state.

        Raises:
            WorkflowTransitionError: if no document is waiting in the Selected phase.
        """
        state = self._state
        if not state.can_extract or state.document is None:
            raise WorkflowTransitionError(f"Cannot extract from phase '{state.phase.value}'")
        document = state.document
        category = document.category
        if category is None:
            raise WorkflowTransitionError(f"Document {document.filename} has no accepted type")
        generation = self._generation

        self._set_state(replace(state, phase=WorkflowPhase.EXTRACTING))
        self._estimator.start(category, document.page_count)
        try:
            outcome = await self._gateway.submit_document(document)
        except asyncio.CancelledError:
            if not self._is_stale(generation):
                self._estimator.cancel()
                self._set_state(replace(self._state, phase=WorkflowPhase.SELECTED))
            raise
        except Exception as exc:
            if not self._is_stale(generation):
                self._fail_extraction(str(exc) or "Failed to extract text")
            raise

        if self._is_stale(generation):
            Log.debug(f"Discarded extraction response for replaced document {document.filename}")
            return self._state
        if not outcome.success or outcome.data is None:
            self._fail_extraction(outcome.error or "Failed to extract text")
            return self._state

        self._record_extraction(outcome.data)
        if not outcome.data.text:
            Log.info(f"No text extracted from {document.filename}; validation skipped")
            return self._state
        await self._validate(generation)
        return self._state

    def start_extraction(self) -> "asyncio.Task[WorkflowState]":
        """Schedule `extract()` so the caller stays free to select another document."""
        if not self._state.can_extract:
            raise WorkflowTransitionError(
                f"Cannot extract from phase '{self._state.phase.value}'"
            )
        task = asyncio.get_running_loop().create_task(self.extract())
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def close(self) -> None:
        """Cancel the progress timers and every extraction task this orchestrator owns.

        A run cancelled during extraction returns to Selected; one cancelled
        during validation completes without a verdict.
        """
        self._estimator.close()
        for task in list(self._tasks):
            task.cancel()

    def _on_task_done(self, task: "asyncio.Task[WorkflowState]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            Log.error(f"Extraction task failed: {exc}")

    def _record_extraction(self, extraction: ExtractionResult) -> None:
        self._estimator.complete(success=True)
        self._set_state(
            replace(
                self._state,
                phase=WorkflowPhase.EXTRACTED,
                extraction=extraction,
                validation=None,
                error=None,
                error_source=None,
                last_extracted_at=datetime.now(),
            )
        )

    def _fail_extraction(self, message: str) -> None:
        self._estimator.complete(success=False)
        self._set_state(
            replace(
                self._state,
                phase=WorkflowPhase.FAILED,
                extraction=None,
                validation=None,
                error=message,
                error_source=ErrorSource.EXTRACTION,
            )
        )

    async def _validate(self, generation: int) -> None:
        extraction = self._state.extraction
        if extraction is None:
            return
        self._set_state(replace(self._state, phase=WorkflowPhase.VALIDATING))
        try:
            outcome = await self._gateway.validate_text(extraction.text)
        except asyncio.CancelledError:
            if not self._is_stale(generation):
                self._fail_validation("Validation cancelled")
            raise
        except Exception as exc:
            if not self._is_stale(generation):
                self._fail_validation(str(exc) or "Failed to validate text")
            raise

        if self._is_stale(generation):
            Log.debug("Discarded validation response for replaced document")
            return
        if outcome.success and outcome.data is not None:
            self._set_state(
                replace(self._state, phase=WorkflowPhase.COMPLETED, validation=outcome.data)
            )
            return
        self._fail_validation(outcome.error or "Failed to validate text")

    def _fail_validation(self, message: str) -> None:
        # Extraction stays; the run completes without a verdict.
        self._set_state(
            replace(
                self._state,
                phase=WorkflowPhase.COMPLETED,
                validation=None,
                error=message,
                error_source=ErrorSource.VALIDATION,
            )
        )

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _set_state(self, state: WorkflowState) -> None:
        previous = self._state.phase
        self._state = state
        if state.phase is not previous:
            name = state.document.filename if state.document else "-"
            Log.info(f"Workflow {previous.value} -> {state.phase.value} ({name})")
        for listener in list(self._listeners):
            listener(state)


def build_orchestrator(settings: Settings, client: BaseServiceClient) -> WorkflowOrchestrator:
    """Build a WorkflowOrchestrator around an existing service client."""
    return WorkflowOrchestrator(
        gateway=ServiceGateway(client),
        estimator=build_estimator(settings),
    )
