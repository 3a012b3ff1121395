"""
Transmission Module - Schemas
Generator inputs, delivery statistics and the events handed to the operator
console.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from cyclersim.core.config import Settings
from cyclersim.modules.simulation.schemas import DeviceSnapshot


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DeviceProfile(BaseModel):
    """Generator inputs, read once per transmission cycle."""
    device_id: str = Field(..., min_length=1)
    channel_count: int = Field(default=8, ge=0)
    aux_count: int = Field(default=4, ge=0)
    can_count: int = Field(default=2, ge=0)
    lin_count: int = Field(default=2, ge=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DeviceProfile":
        return cls(
            device_id=settings.device_id,
            channel_count=settings.channel_count,
            aux_count=settings.aux_count,
            can_count=settings.can_count,
            lin_count=settings.lin_count,
        )


class SendResult(str, Enum):
    """Classification of a single client call."""
    SUCCESS = "success"
    SERVER_REJECTED = "server_rejected"
    NETWORK_FAILURE = "network_failure"
    TIMEOUT = "timeout"
    UNEXPECTED_FAILURE = "unexpected_failure"


class LogLevel(str, Enum):
    """Severity of an operator log line."""
    DEBUG = "Debug"
    INFORMATION = "Information"
    WARNING = "Warning"
    ERROR = "Error"


@dataclass(slots=True)
class TransmissionStats:
    """Cumulative delivery counters, owned by the scheduler."""

    packets_sent: int = 0
    successful_packets: int = 0

    def record(self, success: bool) -> None:
        self.packets_sent += 1
        if success:
            self.successful_packets += 1

    @property
    def success_rate(self) -> float:
        """Percentage of accepted packets, 0.0 before the first send."""
        if self.packets_sent == 0:
            return 0.0
        return self.successful_packets * 100.0 / self.packets_sent


# ============== Operator Events ==============

@dataclass(frozen=True, slots=True)
class ConnectivityEvent:
    """Reachability of the collection server changed."""

    is_connected: bool
    message: str
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True, slots=True)
class CycleOutcome:
    """Result of one generate/send cycle."""

    success: bool
    packets_sent: int
    successful_packets: int
    snapshot: DeviceSnapshot
    timestamp: datetime = field(default_factory=_now)

    @property
    def success_rate(self) -> float:
        if self.packets_sent == 0:
            return 0.0
        return self.successful_packets * 100.0 / self.packets_sent


@dataclass(frozen=True, slots=True)
class LogEvent:
    """Free-text line for the operator log."""

    level: LogLevel
    message: str
    timestamp: datetime = field(default_factory=_now)


TransmissionEvent = ConnectivityEvent | CycleOutcome | LogEvent
