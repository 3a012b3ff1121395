"""
Collector Module - Pydantic Schemas

The envelope only validates the top level of a snapshot; channel and sensor
entries are accepted as-is.
"""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SnapshotEnvelope(BaseModel):
    """Top-level shape of a posted device snapshot."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    device_id: str = Field(..., min_length=1, alias="DeviceId")
    timestamp: datetime = Field(..., alias="Timestamp")
    channels: list[dict[str, Any]] = Field(default_factory=list, alias="Channels")
    aux_data: list[dict[str, Any]] = Field(default_factory=list, alias="AuxData")
    can_data: list[dict[str, Any]] = Field(default_factory=list, alias="CANData")
    lin_data: list[dict[str, Any]] = Field(default_factory=list, alias="LINData")
    alarm_data: list[dict[str, Any]] = Field(default_factory=list, alias="AlarmData")


class IngestResponse(BaseModel):
    status: str = "accepted"
    device_id: str
    snapshots_received: int


class DeviceSummary(BaseModel):
    device_id: str
    snapshots_received: int
    last_seen: datetime
    channel_count: int
