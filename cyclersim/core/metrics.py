"""
Prometheus Metrics - Transmission Monitoring

The runner exposes these on its own port; the local collector serves them at
the /metrics endpoint.
"""
import time

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

from cyclersim.core.config import settings

# === Application Info ===
APP_INFO = Info("cyclersim_app", "CyclerSim application info")
APP_INFO.info({
    "version": settings.app_version,
    "environment": settings.environment,
})

# === Transmission Metrics ===
PACKETS_SENT = Counter(
    "cyclersim_packets_sent_total",
    "Total snapshots handed to the transmission client",
    ["device_id"],
)

PACKETS_SUCCEEDED = Counter(
    "cyclersim_packets_succeeded_total",
    "Total snapshots accepted by the collection server",
    ["device_id"],
)

SEND_RESULTS = Counter(
    "cyclersim_request_results_total",
    "Collection server call outcomes by operation (send, test_connection) and classification",
    ["operation", "result"],
)

SEND_LATENCY = Histogram(
    "cyclersim_send_duration_seconds",
    "Round-trip time of a snapshot POST",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

SERVER_CONNECTED = Gauge(
    "cyclersim_server_connected",
    "1 when the collection server was reachable on the last call",
)

SCHEDULER_SKIPPED_TICKS = Counter(
    "cyclersim_scheduler_skipped_ticks_total",
    "Ticks skipped because the previous cycle was still in flight",
)

# === Collector Metrics ===
REQUEST_COUNT = Counter(
    "cyclersim_collector_requests_total",
    "Total HTTP requests served by the local collector",
    ["method", "endpoint", "status_code"],
)

REQUEST_LATENCY = Histogram(
    "cyclersim_collector_request_duration_seconds",
    "Local collector request latency",
    ["method", "endpoint"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5],
)

SNAPSHOTS_RECEIVED = Counter(
    "cyclersim_collector_snapshots_total",
    "Snapshots received by the local collector",
    ["device_id"],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect request metrics."""

    async def dispatch(self, request: Request, call_next) -> StarletteResponse:
        # Skip metrics endpoint itself
        if request.url.path == "/metrics":
            return await call_next(request)

        endpoint = request.url.path
        method = request.method

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        REQUEST_COUNT.labels(
            method=method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()

        REQUEST_LATENCY.labels(
            method=method,
            endpoint=endpoint,
        ).observe(duration)

        return response


# === Metrics Router ===
router = APIRouter(tags=["Health"])


@router.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# === Helper Functions ===

def record_send(operation: str, result: str, duration: float | None = None) -> None:
    """Record one classified call; only snapshot sends feed the latency histogram."""
    if not settings.prometheus_enabled:
        return
    SEND_RESULTS.labels(operation=operation, result=result).inc()
    if operation == "send" and duration is not None:
        SEND_LATENCY.observe(duration)


def record_connectivity(connected: bool) -> None:
    if settings.prometheus_enabled:
        SERVER_CONNECTED.set(1 if connected else 0)


def record_cycle(device_id: str, success: bool) -> None:
    """Record a completed generate/send cycle."""
    if not settings.prometheus_enabled:
        return
    PACKETS_SENT.labels(device_id=device_id).inc()
    if success:
        PACKETS_SUCCEEDED.labels(device_id=device_id).inc()


def record_skipped_tick() -> None:
    if settings.prometheus_enabled:
        SCHEDULER_SKIPPED_TICKS.inc()


def record_snapshot_received(device_id: str) -> None:
    if settings.prometheus_enabled:
        SNAPSHOTS_RECEIVED.labels(device_id=device_id).inc()
