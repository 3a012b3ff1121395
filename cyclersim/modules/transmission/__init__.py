"""
Transmission Module - HTTP client, send scheduler and operator events.
"""
from cyclersim.modules.transmission.client import TransmissionClient
from cyclersim.modules.transmission.events import EventChannel
from cyclersim.modules.transmission.scheduler import SchedulerState, TransmissionScheduler
from cyclersim.modules.transmission.schemas import (
    ConnectivityEvent,
    CycleOutcome,
    DeviceProfile,
    LogEvent,
    LogLevel,
    SendResult,
    TransmissionEvent,
    TransmissionStats,
)

__all__ = [
    "TransmissionClient",
    "EventChannel",
    "SchedulerState",
    "TransmissionScheduler",
    "ConnectivityEvent",
    "CycleOutcome",
    "DeviceProfile",
    "LogEvent",
    "LogLevel",
    "SendResult",
    "TransmissionEvent",
    "TransmissionStats",
]
