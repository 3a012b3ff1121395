"""
Transmission Module - HTTP Client
Posts device snapshots to the collection server and tracks reachability.

Failures never propagate to the caller. Each call resolves to a boolean,
a log line and, when reachability flips, one connectivity event.
"""
import asyncio
import time
from collections.abc import Callable
from typing import Any

import httpx
import orjson

from cyclersim.core.config import settings
from cyclersim.core.exceptions import ConfigurationError
from cyclersim.core.logging import get_logger
from cyclersim.core.metrics import record_connectivity, record_send
from cyclersim.modules.simulation.schemas import DeviceSnapshot
from cyclersim.modules.transmission.schemas import ConnectivityEvent, SendResult

logger = get_logger(__name__)

DATA_PATH = "/api/Device/data"
DEVICES_PATH = "/api/Device/devices"

StatusCallback = Callable[[ConnectivityEvent], None]

_SEND_FAILURE_MESSAGES = {
    SendResult.NETWORK_FAILURE: "Connection failed",
    SendResult.TIMEOUT: "Connection timeout",
    SendResult.UNEXPECTED_FAILURE: "Unexpected error",
}


class TransmissionClient:
    """
    Collection server client.

    Provides:
    - ``send``: POST a snapshot to ``{server}/api/Device/data``
    - ``test_connection``: GET ``{server}/api/Device/devices`` as a liveness probe

    Only reachability *changes* are reported through ``on_status_changed``.
    The first call always reports, since there is no previous state.

    Usage:
        async with TransmissionClient("http://localhost:5000") as client:
            ok = await client.send(snapshot)
    """

    def __init__(
        self,
        server_url: str,
        *,
        timeout: float | None = None,
        user_agent: str | None = None,
        on_status_changed: StatusCallback | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the client.

        Args:
            server_url: Collection server base URL, trailing slash optional
            timeout: Per-request timeout in seconds. Uses settings if not provided.
            user_agent: Identification header. Uses settings if not provided.
            on_status_changed: Called on every connectivity transition
            http_client: Pre-built client (tests, shared pools). Not closed by ``aclose``.
        """
        server_url = (server_url or "").strip().rstrip("/")
        if not server_url:
            raise ConfigurationError("server_url", "Please enter a valid server URL.")

        self.server_url = server_url
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.user_agent = user_agent or settings.user_agent
        self.on_status_changed = on_status_changed
        self._client = http_client
        self._owns_client = http_client is None
        self._is_connected: bool | None = None

    @property
    def is_connected(self) -> bool:
        return bool(self._is_connected)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "TransmissionClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ============== Public API ==============

    async def send(self, snapshot: DeviceSnapshot) -> bool:
        """
        Send one snapshot.

        Returns:
            True when the server answered 2xx, False otherwise
        """
        try:
            body = orjson.dumps(snapshot.to_wire())
        except Exception:
            logger.exception("Failed to serialize snapshot", device_id=snapshot.device_id)
            record_send("send", SendResult.UNEXPECTED_FAILURE.value)
            self._set_connectivity(False, _SEND_FAILURE_MESSAGES[SendResult.UNEXPECTED_FAILURE])
            return False

        result, response = await self._call(
            "send",
            "POST",
            DATA_PATH,
            content=body,
            headers={"Content-Type": "application/json"},
        )

        if result is SendResult.SUCCESS:
            self._set_connectivity(True, "Connected to server")
            return True

        if result is SendResult.SERVER_REJECTED:
            logger.warning(
                "Failed to send data",
                status_code=response.status_code,
                reason=response.reason_phrase,
                device_id=snapshot.device_id,
            )
            self._set_connectivity(False, f"Server error: {response.status_code}")
        else:
            self._set_connectivity(False, _SEND_FAILURE_MESSAGES[result])
        return False

    async def test_connection(self) -> bool:
        """
        Probe the server.

        Returns:
            True when the device list endpoint answered 2xx
        """
        result, response = await self._call("test_connection", "GET", DEVICES_PATH)

        if result is SendResult.SUCCESS:
            self._set_connectivity(True, "Connection test successful")
            return True

        if result is SendResult.SERVER_REJECTED:
            self._set_connectivity(False, f"Connection test failed: {response.status_code}")
        else:
            self._set_connectivity(False, "Connection test failed")
        return False

    # ============== Internals ==============

    async def _call(
        self,
        operation: str,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> tuple[SendResult, httpx.Response | None]:
        """
        Issue one request and classify the result.

        ``timeout`` bounds the whole call, body included, not just each
        connect or read.

        ``asyncio.CancelledError`` is not an ``Exception`` and propagates.
        """
        url = f"{self.server_url}{path}"
        headers = {"User-Agent": self.user_agent, **kwargs.pop("headers", {})}
        started = time.perf_counter()

        try:
            client = await self._get_client()
            async with asyncio.timeout(self.timeout):
                response = await client.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except (httpx.TimeoutException, TimeoutError):
            logger.error("Request timed out", method=method, url=url, timeout=self.timeout)
            result, response = SendResult.TIMEOUT, None
        except httpx.TransportError as e:
            logger.error("HTTP request failed", method=method, url=url, error=str(e))
            result, response = SendResult.NETWORK_FAILURE, None
        except Exception:
            logger.exception("Unexpected error during request", method=method, url=url)
            result, response = SendResult.UNEXPECTED_FAILURE, None
        else:
            result = SendResult.SUCCESS if response.is_success else SendResult.SERVER_REJECTED

        duration = time.perf_counter() - started
        record_send(operation, result.value, duration)
        logger.debug(
            "Request completed",
            operation=operation,
            method=method,
            url=url,
            result=result.value,
            duration=round(duration, 4),
        )
        return result, response

    def _set_connectivity(self, connected: bool, message: str) -> None:
        """Record reachability and report it if it changed."""
        if self._is_connected is connected:
            return

        self._is_connected = connected
        record_connectivity(connected)

        if connected:
            logger.info("Server reachable", server_url=self.server_url, message=message)
        else:
            logger.warning("Server unreachable", server_url=self.server_url, message=message)

        if self.on_status_changed is None:
            return
        try:
            self.on_status_changed(ConnectivityEvent(is_connected=connected, message=message))
        except Exception:
            logger.exception("Connectivity listener failed", message=message)
