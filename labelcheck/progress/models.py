from dataclasses import dataclass
from enum import Enum


class ProgressStatus(str, Enum):
    """Presentation hint for the progress indicator."""

    IDLE = "idle"
    RUNNING = "running"
    STALLED = "stalled"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ProgressSnapshot:
    fraction: float = 0.0
    label: str = ""
    terminal: bool = False
    status: ProgressStatus = ProgressStatus.IDLE

    @property
    def visible(self) -> bool:
        return self.fraction > 0


IDLE_SNAPSHOT = ProgressSnapshot()
