"""
Pytest Configuration and Fixtures.

Shared fixtures for generator, client and scheduler tests.
"""
import asyncio
import random
from collections.abc import Callable

import httpx
import pytest

from cyclersim.main import create_application
from cyclersim.modules.simulation.service import TelemetryGenerator
from cyclersim.modules.transmission.client import TransmissionClient
from cyclersim.modules.transmission.schemas import ConnectivityEvent, DeviceProfile

SERVER_URL = "http://collector.test"


class FixedRandom(random.Random):
    """Random source whose ``random()`` always returns the same value."""

    def __init__(self, value: float):
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


class FakeClient:
    """Stand-in for TransmissionClient with scripted outcomes."""

    def __init__(self, outcomes: list[bool | Exception] | None = None, delay: float = 0.0):
        self.outcomes = list(outcomes or [])
        self.delay = delay
        self.sent = []
        self.on_status_changed = None

    async def send(self, snapshot) -> bool:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.sent.append(snapshot)
        outcome = self.outcomes.pop(0) if self.outcomes else True
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def generator() -> TelemetryGenerator:
    """Generator with a seeded random source."""
    return TelemetryGenerator(rng=random.Random(1234))


@pytest.fixture
def profile() -> DeviceProfile:
    return DeviceProfile(device_id="dev1", channel_count=2, aux_count=1, can_count=1, lin_count=1)


@pytest.fixture
def status_events() -> list[ConnectivityEvent]:
    return []


@pytest.fixture
def make_client(status_events) -> Callable[..., TransmissionClient]:
    """Build a TransmissionClient whose requests go to a mock handler."""

    def _make(handler, server_url: str = SERVER_URL, timeout: float | None = None) -> TransmissionClient:
        return TransmissionClient(
            server_url,
            timeout=timeout,
            on_status_changed=status_events.append,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    return _make


@pytest.fixture
def collector_app():
    """Fresh collector application."""
    return create_application()


@pytest.fixture
def fixed_random() -> type[FixedRandom]:
    return FixedRandom


@pytest.fixture
def fake_client() -> type[FakeClient]:
    return FakeClient
