"""
Transmission Module - Event Channel

The engine never touches presentation state. It publishes events here and
the console drains them on its own task.
"""
import asyncio

from cyclersim.core.logging import get_logger
from cyclersim.modules.transmission.schemas import LogEvent, LogLevel, TransmissionEvent

logger = get_logger(__name__)


class EventChannel:
    """
    Bounded queue of operator events.

    When the consumer falls behind, the oldest event is dropped so the
    producer never blocks.
    """

    def __init__(self, max_size: int = 1000):
        self.max_size = max_size
        self._queue: asyncio.Queue[TransmissionEvent] = asyncio.Queue(maxsize=max_size)
        self.dropped = 0

    def publish(self, event: TransmissionEvent) -> None:
        """Enqueue an event without blocking."""
        while True:
            try:
                self._queue.put_nowait(event)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()
                self.dropped += 1
                if self.dropped % 100 == 1:
                    logger.warning("Event channel full, dropping oldest events", dropped=self.dropped)

    def log(self, level: LogLevel, message: str) -> None:
        self.publish(LogEvent(level=level, message=message))

    async def get(self) -> TransmissionEvent:
        """Wait for the next event."""
        return await self._queue.get()

    def drain(self) -> list[TransmissionEvent]:
        """Return every queued event without waiting."""
        events: list[TransmissionEvent] = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    def __len__(self) -> int:
        return self._queue.qsize()
