"""
Simulation Module - Pydantic Schemas (DTOs)

Field names stay snake_case in Python; the wire names are the PascalCase
aliases the collection server expects.
"""
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_pascal

from cyclersim.modules.simulation.models import AlarmSeverity, ChannelMode, ChannelStatus


def format_timespan(value: timedelta) -> str:
    """Format a duration as ``[d.]hh:mm:ss``."""
    total = int(value.total_seconds())
    sign = "-" if total < 0 else ""
    total = abs(total)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    clock = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{sign}{days}.{clock}" if days else f"{sign}{clock}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WireModel(BaseModel):
    """Base schema with PascalCase wire aliases."""
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)


# ============== Channel Schemas ==============

class ChannelReading(WireModel):
    """Electrical state of one cycler channel at one tick."""
    channel_number: int = Field(..., ge=1)
    status: ChannelStatus
    mode: ChannelMode
    cycle_no: int
    step_no: int
    cycler_loop: int
    voltage: float
    current: float
    capacity: float
    power: float
    chamber_temperature: float
    step_time: timedelta
    total_time: timedelta
    test_name: str = ""
    schedule: str = ""

    @field_serializer("step_time", "total_time", when_used="json")
    def serialize_elapsed(self, value: timedelta) -> str:
        return format_timespan(value)


# ============== Sensor Schemas ==============

class AuxReading(WireModel):
    """Auxiliary sensor reading. Limits are advisory only."""
    sensor_id: int
    sensor_name: str
    value: float
    safe_upper_limit: float
    safe_lower_limit: float


class BusSignal(WireModel):
    """Named value from a simulated vehicle bus (CAN or LIN)."""
    name: str
    value: float
    bms_id: int
    max: float
    min: float


class AlarmEvent(WireModel):
    """Device alarm."""
    id: int
    name: str
    description: str
    timestamp: datetime = Field(default_factory=_utcnow)
    severity: AlarmSeverity


# ============== Snapshot Schemas ==============

class DeviceSnapshot(WireModel):
    """One complete telemetry payload for a device."""
    device_id: str
    timestamp: datetime = Field(default_factory=_utcnow)
    channels: list[ChannelReading] = Field(default_factory=list)
    aux_readings: list[AuxReading] = Field(default_factory=list, alias="AuxData")
    can_signals: list[BusSignal] = Field(default_factory=list, alias="CANData")
    lin_signals: list[BusSignal] = Field(default_factory=list, alias="LINData")
    alarms: list[AlarmEvent] = Field(default_factory=list, alias="AlarmData")

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using wire names, without null fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def summary(self) -> str:
        """Short human-readable description for log output."""
        text = (
            f"Device: {self.device_id} "
            f"Channels: {len(self.channels)} "
            f"Aux: {len(self.aux_readings)} "
            f"CAN: {len(self.can_signals)} "
            f"LIN: {len(self.lin_signals)}"
        )
        if self.channels:
            first = self.channels[0]
            text += (
                f" | Ch{first.channel_number}: {first.status.value}, "
                f"V={first.voltage:.3f}, I={first.current:.3f}"
            )
        return text
