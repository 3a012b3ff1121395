"""
Simulation Module - Channel state and telemetry snapshot generation.

Models: ChannelSimulationState, ChannelStatus, ChannelMode, AlarmSeverity
"""
from cyclersim.modules.simulation.models import (
    AlarmSeverity,
    ChannelMode,
    ChannelSimulationState,
    ChannelStatus,
)
from cyclersim.modules.simulation.schemas import (
    AlarmEvent,
    AuxReading,
    BusSignal,
    ChannelReading,
    DeviceSnapshot,
)
from cyclersim.modules.simulation.service import TelemetryGenerator

__all__ = [
    "AlarmSeverity",
    "ChannelMode",
    "ChannelSimulationState",
    "ChannelStatus",
    "AlarmEvent",
    "AuxReading",
    "BusSignal",
    "ChannelReading",
    "DeviceSnapshot",
    "TelemetryGenerator",
]
