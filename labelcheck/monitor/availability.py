import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from types import TracebackType

from labelcheck.client.base import BaseServiceClient
from labelcheck.client.exceptions import ServiceError
from labelcheck.config.settings import Settings
from labelcheck.logging.logger import Log


@dataclass(frozen=True)
class AvailabilitySignal:
    online: bool = False
    checked_at: datetime | None = None


AvailabilityListener = Callable[[AvailabilitySignal], None]


class AvailabilityMonitor:
    """Poll loop: probe -> publish -> sleep, independent of the workflow."""

    def __init__(
        self,
        client: BaseServiceClient,
        *,
        interval_seconds: float = 10.0,
        timeout_seconds: float = 5.0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._client = client
        self._interval_seconds = interval_seconds
        self._timeout_seconds = timeout_seconds
        self._signal = AvailabilitySignal()
        self._listeners: list[AvailabilityListener] = []
        self._task: asyncio.Task[None] | None = None

    @property
    def signal(self) -> AvailabilitySignal:
        return self._signal

    @property
    def online(self) -> bool:
        return self._signal.online

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, listener: AvailabilityListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def start(self) -> None:
        """Probe immediately, then every interval until stopped."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        Log.info(f"Availability monitor started, probing every {self._interval_seconds}s")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        Log.info("Availability monitor stopped")

    async def probe_once(self) -> bool:
        """Run a single probe and overwrite the signal with its result."""
        online = await self._probe()
        self._signal = AvailabilitySignal(online=online, checked_at=datetime.now())
        for listener in list(self._listeners):
            listener(self._signal)
        return online

    async def __aenter__(self) -> "AvailabilityMonitor":
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def _run(self) -> None:
        while True:
            await self.probe_once()
            await asyncio.sleep(self._interval_seconds)

    async def _probe(self) -> bool:
        try:
            healthy = await asyncio.wait_for(
                self._client.probe_health(), timeout=self._timeout_seconds
            )
        except asyncio.TimeoutError:
            Log.warning(f"Health probe timed out after {self._timeout_seconds}s")
            return False
        except ServiceError as exc:
            Log.warning(f"Health probe failed: {exc}")
            return False
        except Exception as exc:
            Log.warning(f"Health probe raised unexpectedly: {exc}")
            return False
        return healthy is True


def build_monitor(settings: Settings, client: BaseServiceClient) -> AvailabilityMonitor:
    """Build an AvailabilityMonitor from application settings."""
    return AvailabilityMonitor(
        client,
        interval_seconds=settings.health_poll_interval_seconds,
        timeout_seconds=settings.health_timeout_seconds,
    )
