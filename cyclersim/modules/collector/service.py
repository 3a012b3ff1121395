"""
Collector Module - Service
In-memory bookkeeping of received snapshots. Nothing is persisted.
"""
from collections import Counter
from datetime import datetime

from cyclersim.core.logging import get_logger
from cyclersim.core.metrics import record_snapshot_received
from cyclersim.modules.collector.schemas import DeviceSummary, SnapshotEnvelope

logger = get_logger(__name__)


class CollectorService:
    """Tracks how many snapshots each device has delivered."""

    def __init__(self):
        self._received: Counter[str] = Counter()
        self._last_seen: dict[str, datetime] = {}
        self._last_channels: dict[str, int] = {}

    def ingest(self, envelope: SnapshotEnvelope) -> int:
        """Record one snapshot and return the device's running total."""
        device_id = envelope.device_id
        self._received[device_id] += 1
        self._last_seen[device_id] = envelope.timestamp
        self._last_channels[device_id] = len(envelope.channels)
        record_snapshot_received(device_id)

        logger.debug(
            "Snapshot received",
            device_id=device_id,
            channels=len(envelope.channels),
            alarms=len(envelope.alarm_data),
        )
        return self._received[device_id]

    def devices(self) -> list[DeviceSummary]:
        return [
            DeviceSummary(
                device_id=device_id,
                snapshots_received=count,
                last_seen=self._last_seen[device_id],
                channel_count=self._last_channels[device_id],
            )
            for device_id, count in sorted(self._received.items())
        ]
