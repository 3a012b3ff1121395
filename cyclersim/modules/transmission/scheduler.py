"""
Transmission Module - Scheduler
Runs the generate -> send cycle on a fixed cadence.

Cycles never overlap. A tick that comes due while a cycle is still in flight
is skipped, including across a stop/start pair, so changing the interval
never duplicates a pending cycle.
"""
import asyncio
import inspect
from collections.abc import Awaitable, Callable
from enum import Enum

from cyclersim.core.exceptions import ConfigurationError
from cyclersim.core.logging import get_logger
from cyclersim.core.metrics import record_cycle, record_skipped_tick
from cyclersim.core.sentry import capture_exception
from cyclersim.modules.simulation.service import TelemetryGenerator
from cyclersim.modules.transmission.client import TransmissionClient
from cyclersim.modules.transmission.events import EventChannel
from cyclersim.modules.transmission.schemas import (
    CycleOutcome,
    DeviceProfile,
    LogLevel,
    TransmissionStats,
)

logger = get_logger(__name__)

ProfileProvider = Callable[[], DeviceProfile | Awaitable[DeviceProfile]]


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class TransmissionScheduler:
    """
    Fixed-rate transmission loop.

    The loop runs as one asyncio task; ``start``, ``stop`` and
    ``change_interval`` must be called from the event loop that owns it.
    Connectivity transitions from the client, cycle outcomes and log lines
    are published on ``events``.
    """

    def __init__(
        self,
        generator: TelemetryGenerator,
        client: TransmissionClient,
        events: EventChannel | None = None,
    ):
        self.generator = generator
        self.client = client
        self.events = events or EventChannel()
        self.stats = TransmissionStats()
        self.interval_ms: int | None = None

        self._provider: ProfileProvider | None = None
        self._task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self._stop_event: asyncio.Event | None = None
        self._cycle_lock = asyncio.Lock()
        self._device_id: str | None = None

        if self.client.on_status_changed is None:
            self.client.on_status_changed = self.events.publish

    @property
    def state(self) -> SchedulerState:
        if (
            self._task is not None
            and not self._task.done()
            and self._stop_event is not None
            and not self._stop_event.is_set()
        ):
            return SchedulerState.RUNNING
        return SchedulerState.IDLE

    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle_lock.locked()

    # ============== Control ==============

    def start(self, interval_ms: int, provider: ProfileProvider) -> None:
        """
        Arm the timer: one cycle now, then one every ``interval_ms``.

        Args:
            interval_ms: Cadence in milliseconds
            provider: Returns the current device profile, called once per cycle
        """
        if self.is_running:
            logger.warning("Transmission already running", interval_ms=self.interval_ms)
            return
        if interval_ms <= 0:
            raise ConfigurationError("send_interval_ms", "Send interval must be positive.")

        self.interval_ms = interval_ms
        self._provider = provider
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(
            self._run(interval_ms / 1000.0, provider, self._stop_event),
            name="cyclersim-transmission",
        )
        self._tasks.add(self._task)
        self._task.add_done_callback(self._tasks.discard)

        logger.info("Transmission started", interval_ms=interval_ms)
        self.events.log(LogLevel.INFORMATION, f"Started transmission with {interval_ms}ms interval")

    def stop(self, cancel_in_flight: bool = False) -> None:
        """
        Disarm the timer. Idempotent.

        An in-flight cycle finishes unless ``cancel_in_flight`` is set, in
        which case its network call is cancelled. This covers cycles still
        running from a run replaced by ``change_interval``.
        """
        if cancel_in_flight:
            for task in list(self._tasks):
                task.cancel()

        if self._stop_event is None or self._stop_event.is_set():
            return

        self._stop_event.set()
        logger.info("Transmission stopped", packets_sent=self.stats.packets_sent)
        self.events.log(LogLevel.INFORMATION, "Transmission stopped")

    def change_interval(self, interval_ms: int) -> None:
        """Restart the cadence with a new interval."""
        if not self.is_running or self._provider is None:
            self.interval_ms = interval_ms
            return

        provider = self._provider
        self.stop()
        self.start(interval_ms, provider)

    async def wait_stopped(self) -> None:
        """Wait until every loop task started so far, including its last cycle, has ended."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    # ============== Cycle ==============

    async def run_cycle(self, provider: ProfileProvider) -> CycleOutcome | None:
        """
        Generate one snapshot, send it and publish the outcome.

        Returns:
            The outcome, or None when the cycle body failed unexpectedly
        """
        try:
            profile = provider()
            if inspect.isawaitable(profile):
                profile = await profile

            if self._device_id is not None and profile.device_id != self._device_id:
                logger.info("Device identity changed", previous=self._device_id, device_id=profile.device_id)
                self.generator.reset()
            self._device_id = profile.device_id

            snapshot = self.generator.next(
                profile.device_id,
                profile.channel_count,
                profile.aux_count,
                profile.can_count,
                profile.lin_count,
            )
            success = await self.client.send(snapshot)

            self.stats.record(success)
            record_cycle(profile.device_id, success)

            outcome = CycleOutcome(
                success=success,
                packets_sent=self.stats.packets_sent,
                successful_packets=self.stats.successful_packets,
                snapshot=snapshot,
            )
            self.events.publish(outcome)
            return outcome
        except Exception as e:
            logger.exception("Error during data transmission")
            capture_exception(e, interval_ms=self.interval_ms)
            self.events.log(LogLevel.ERROR, f"Transmission error: {e}")
            return None

    async def _run(self, interval: float, provider: ProfileProvider, stop_event: asyncio.Event) -> None:
        loop = asyncio.get_running_loop()
        next_fire = loop.time()

        while not stop_event.is_set():
            if self._cycle_lock.locked():
                logger.debug("Previous cycle still in flight, skipping tick")
                record_skipped_tick()
            else:
                async with self._cycle_lock:
                    await self.run_cycle(provider)

            next_fire += interval
            now = loop.time()
            if next_fire <= now:
                missed = int((now - next_fire) // interval) + 1
                next_fire += missed * interval
                for _ in range(missed):
                    record_skipped_tick()
                logger.debug("Cycle overran interval", skipped_ticks=missed)

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=next_fire - now)
            except asyncio.TimeoutError:
                continue

        logger.debug("Transmission loop exited")
