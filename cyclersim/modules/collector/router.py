"""
Collector Module - API Router

Minimal stand-in for the collection server, for local runs and tests.

Endpoints:
- POST /api/Device/data - Receive one device snapshot
- GET /api/Device/devices - List devices seen so far (liveness probe)
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from cyclersim.modules.collector.schemas import DeviceSummary, IngestResponse, SnapshotEnvelope
from cyclersim.modules.collector.service import CollectorService

router = APIRouter(prefix="/api/Device", tags=["Device"])


def get_collector_service(request: Request) -> CollectorService:
    """Collector service stored on the application state."""
    return request.app.state.collector


CollectorServiceDep = Annotated[CollectorService, Depends(get_collector_service)]


@router.post(
    "/data",
    response_model=IngestResponse,
    status_code=status.HTTP_200_OK,
    summary="Receive device snapshot",
)
async def receive_data(envelope: SnapshotEnvelope, service: CollectorServiceDep) -> IngestResponse:
    total = service.ingest(envelope)
    return IngestResponse(device_id=envelope.device_id, snapshots_received=total)


@router.get(
    "/devices",
    response_model=list[DeviceSummary],
    summary="List known devices",
)
async def list_devices(service: CollectorServiceDep) -> list[DeviceSummary]:
    return service.devices()
