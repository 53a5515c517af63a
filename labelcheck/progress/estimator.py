"""Simulated determinate progress for a remote call of unknown duration.

The estimator never sees real server progress. It maps elapsed wall-clock
time linearly onto [0, 95] using an expected duration per media category,
holds at 95 until the call resolves, then jumps to 100 and resets after a
short display delay.
"""

import asyncio
import math
import time
from collections.abc import Callable, Mapping

from labelcheck.config.settings import Settings
from labelcheck.documents.models import MediaCategory
from labelcheck.logging.logger import Log
from labelcheck.progress.models import IDLE_SNAPSHOT, ProgressSnapshot, ProgressStatus

ProgressListener = Callable[[ProgressSnapshot], None]

CEILING = 95.0
RUNNING_LABEL = "Extracting..."
SUCCESS_LABEL = "✓ Extraction complete"
FAILURE_LABEL = "Extraction failed"


class ProgressEstimator:
    """Owns the progress tick and the delayed reset as cancellable tasks."""

    def __init__(
        self,
        expected_seconds: Mapping[MediaCategory, float],
        *,
        tick_seconds: float = 0.1,
        reset_delay_seconds: float = 1.5,
        scale_by_page_count: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        missing = [category.value for category in MediaCategory if category not in expected_seconds]
        if missing:
            raise ValueError(f"Missing expected duration for categories: {missing}")
        if tick_seconds <= 0:
            raise ValueError("tick_seconds must be positive")
        self._expected_seconds = dict(expected_seconds)
        self._tick_seconds = tick_seconds
        self._reset_delay_seconds = reset_delay_seconds
        self._scale_by_page_count = scale_by_page_count
        self._clock = clock
        self._snapshot = IDLE_SNAPSHOT
        self._listeners: list[ProgressListener] = []
        self._tick_task: asyncio.Task[None] | None = None
        self._reset_task: asyncio.Task[None] | None = None
        self._started_at = 0.0
        self._expected = 0.0

    @property
    def snapshot(self) -> ProgressSnapshot:
        return self._snapshot

    @property
    def running(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def expected_seconds_for(
        self, category: MediaCategory, page_count: int | None = None
    ) -> float:
        expected = self._expected_seconds[category]
        if (
            self._scale_by_page_count
            and category is MediaCategory.PAGED_DOCUMENT
            and page_count
        ):
            return expected * page_count
        return expected

    def start(self, category: MediaCategory, page_count: int | None = None) -> None:
        """Begin ticking. Must be called from within the running event loop."""
        self._cancel_tasks()
        self._expected = self.expected_seconds_for(category, page_count)
        self._started_at = self._clock()
        self._publish(ProgressSnapshot(label=RUNNING_LABEL, status=ProgressStatus.RUNNING))
        self._tick_task = asyncio.get_running_loop().create_task(self._run_ticks())
        Log.debug(f"Progress started: expecting ~{self._expected:.1f}s for {category.value}")

    def complete(self, success: bool) -> None:
        """Fill the bar, show the outcome, and reset after the display delay."""
        self._cancel_tasks()
        self._publish(
            ProgressSnapshot(
                fraction=100.0,
                label=SUCCESS_LABEL if success else FAILURE_LABEL,
                terminal=True,
                status=ProgressStatus.SUCCEEDED if success else ProgressStatus.FAILED,
            )
        )
        self._reset_task = asyncio.get_running_loop().create_task(self._reset_later())

    def cancel(self) -> None:
        """Stop immediately and reset without delay."""
        self._cancel_tasks()
        self._publish(IDLE_SNAPSHOT)

    def close(self) -> None:
        self._cancel_tasks()

    def _on_tick(self) -> None:
        elapsed = max(self._clock() - self._started_at, 0.0)
        if self._expected > 0:
            fraction = min(elapsed / self._expected * 100.0, CEILING)
        else:
            fraction = CEILING
        fraction = max(fraction, self._snapshot.fraction)
        if fraction >= CEILING:
            remaining = max(self._expected - math.floor(elapsed), 0)
            self._publish(
                ProgressSnapshot(
                    fraction=CEILING,
                    label=f"{RUNNING_LABEL} ~{remaining:.0f}s remaining",
                    status=ProgressStatus.STALLED,
                )
            )
        else:
            self._publish(
                ProgressSnapshot(
                    fraction=fraction,
                    label=RUNNING_LABEL,
                    status=ProgressStatus.RUNNING,
                )
            )

    async def _run_ticks(self) -> None:
        while True:
            await asyncio.sleep(self._tick_seconds)
            self._on_tick()

    async def _reset_later(self) -> None:
        await asyncio.sleep(self._reset_delay_seconds)
        self._reset_task = None
        self._publish(IDLE_SNAPSHOT)

    def _cancel_tasks(self) -> None:
        for task in (self._tick_task, self._reset_task):
            if task is not None and not task.done():
                task.cancel()
        self._tick_task = None
        self._reset_task = None

    def _publish(self, snapshot: ProgressSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)


def build_estimator(settings: Settings) -> ProgressEstimator:
    """Build a ProgressEstimator from application settings."""
    return ProgressEstimator(
        {
            MediaCategory.IMAGE: settings.progress_image_seconds,
            MediaCategory.PAGED_DOCUMENT: settings.progress_paged_document_seconds,
        },
        tick_seconds=settings.progress_tick_seconds,
        reset_delay_seconds=settings.progress_reset_delay_seconds,
        scale_by_page_count=settings.progress_scale_by_page_count,
    )
