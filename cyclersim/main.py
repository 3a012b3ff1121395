"""
CyclerSim Collector - Local collection server.

Implements the two device endpoints the simulator talks to, so a run can be
exercised end to end without the real backend:

    cyclersim-collector
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse

from cyclersim.core.config import settings
from cyclersim.core.logging import configure_logging, get_logger
from cyclersim.core.metrics import MetricsMiddleware, router as metrics_router
from cyclersim.core.sentry import init_sentry
from cyclersim.modules.collector import CollectorService, router as collector_router

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log collector startup and shutdown."""
    logger.info(
        "Starting CyclerSim collector",
        environment=settings.environment,
        debug=settings.debug,
    )
    yield
    logger.info(
        "Shutting down CyclerSim collector",
        devices=len(app.state.collector.devices()),
    )


def create_application() -> FastAPI:
    """
    Application factory function.
    Creates and configures the collector application.
    """
    app = FastAPI(
        title="CyclerSim Collector",
        summary="Local collection endpoint for the battery-cycler simulator",
        version=settings.app_version,
        default_response_class=ORJSONResponse,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.collector = CollectorService()

    init_sentry()

    if settings.prometheus_enabled:
        app.add_middleware(MetricsMiddleware)
        app.include_router(metrics_router)

    app.include_router(collector_router)

    @app.get("/health", tags=["health"], response_class=ORJSONResponse)
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "service": "cyclersim-collector"}

    return app


app = create_application()


def serve() -> None:
    """Run the collector with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run(app, host=settings.collector_host, port=settings.collector_port)


if __name__ == "__main__":
    serve()
