import pytest
from httpx import ASGITransport, AsyncClient


def snapshot_payload(device_id: str = "dev1", channels: int = 2) -> dict:
    return {
        "DeviceId": device_id,
        "Timestamp": "2026-10-18T08:30:00.000000Z",
        "Channels": [{"ChannelNumber": n, "Status": "Idle"} for n in range(1, channels + 1)],
        "AuxData": [],
        "CANData": [],
        "LINData": [],
        "AlarmData": [],
    }


@pytest.mark.asyncio
async def test_health_endpoint(collector_app):
    transport = ASGITransport(app=collector_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_receive_counts_per_device(collector_app):
    transport = ASGITransport(app=collector_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        first = await client.post("/api/Device/data", json=snapshot_payload("dev1"))
        second = await client.post("/api/Device/data", json=snapshot_payload("dev1", channels=5))
        await client.post("/api/Device/data", json=snapshot_payload("dev2"))
        devices = (await client.get("/api/Device/devices")).json()

    assert first.status_code == 200
    assert first.json()["snapshots_received"] == 1
    assert second.json()["snapshots_received"] == 2
    assert [d["device_id"] for d in devices] == ["dev1", "dev2"]
    assert devices[0]["channel_count"] == 5


@pytest.mark.asyncio
async def test_missing_device_id_rejected(collector_app):
    payload = snapshot_payload()
    del payload["DeviceId"]

    transport = ASGITransport(app=collector_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.post("/api/Device/data", json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_metrics_exposed(collector_app):
    transport = ASGITransport(app=collector_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        await client.post("/api/Device/data", json=snapshot_payload("metrics-dev"))
        response = await client.get("/metrics")

    assert response.status_code == 200
    assert 'cyclersim_collector_snapshots_total{device_id="metrics-dev"}' in response.text
