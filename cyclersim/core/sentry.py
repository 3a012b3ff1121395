"""
Sentry Integration - Error Tracking

Sentry captures:
- Unexpected failures inside a transmission cycle
- Unhandled exceptions in the local collector
"""
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.httpx import HttpxIntegration

from cyclersim.core.config import settings
from cyclersim.core.logging import get_logger

logger = get_logger(__name__)


def init_sentry() -> None:
    """
    Initialize Sentry SDK.

    Call this once at process startup; does nothing without a DSN.
    """
    if not settings.sentry_dsn:
        logger.info("Sentry DSN not configured, skipping initialization")
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=f"cyclersim@{settings.app_version}",
        traces_sample_rate=settings.sentry_traces_sample_rate,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            HttpxIntegration(),
        ],
        send_default_pii=False,
    )

    logger.info(
        "Sentry initialized",
        environment=settings.environment,
        dsn_configured=True,
    )


def capture_exception(exc: BaseException, **extra) -> None:
    """Capture an exception to Sentry with extra context."""
    with sentry_sdk.new_scope() as scope:
        for key, value in extra.items():
            scope.set_extra(key, value)
        sentry_sdk.capture_exception(exc)


def set_tag(key: str, value: str) -> None:
    """Set a tag for the current scope."""
    sentry_sdk.set_tag(key, value)
