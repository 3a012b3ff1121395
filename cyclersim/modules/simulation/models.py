"""
Simulation Module - Domain Models
Channel enumerations and the per-channel simulation state.

ChannelSimulationState is the only entity that carries memory between
generator ticks. Enum values equal their member names because the
collection server expects enumerations by name.
"""
from dataclasses import dataclass
from enum import Enum


class ChannelStatus(str, Enum):
    """Channel operating status."""
    IDLE = "Idle"
    REST = "Rest"
    DISCHARGE = "Discharge"
    CHARGE = "Charge"
    PAUSE = "Pause"
    FINISH = "Finish"


class ChannelMode(str, Enum):
    """Channel control mode."""
    REST = "Rest"
    CHARGE_CC = "ChargeCC"
    CHARGE_CCCV = "ChargeCCCV"
    CHARGE_CP = "ChargeCP"
    CHARGE_CPCV = "ChargeCPCV"
    DISCHARGE_CC = "DischargeCC"
    DISCHARGE_CCCV = "DischargeCCCV"
    DISCHARGE_CP = "DischargeCP"
    DISCHARGE_CPCV = "DischargeCPCV"


class AlarmSeverity(str, Enum):
    """Alarm severity level."""
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"
    CRITICAL = "Critical"


@dataclass(slots=True)
class ChannelSimulationState:
    """Mutable per-channel state, owned by the telemetry generator."""

    status: ChannelStatus = ChannelStatus.IDLE
    mode: ChannelMode = ChannelMode.REST
    cycle_no: int = 1
    step_no: int = 1
    cycler_loop: int = 0
    accumulated_capacity: float = 0.0
    step_time_seconds: int = 0
    total_time_seconds: int = 0

    @property
    def is_active(self) -> bool:
        """True while the channel moves charge in either direction."""
        return self.status in (ChannelStatus.CHARGE, ChannelStatus.DISCHARGE)
