"""Console runner: configures the simulator, transmits, and prints events."""
from __future__ import annotations

import argparse
import asyncio
import signal
import sys

from prometheus_client import start_http_server
from pydantic import ValidationError

from cyclersim.core.config import Settings, get_settings
from cyclersim.core.exceptions import ConfigurationError, CyclerSimException
from cyclersim.core.logging import bind_device_context, clear_device_context, configure_logging, get_logger
from cyclersim.core.sentry import init_sentry, set_tag
from cyclersim.modules.simulation.service import TelemetryGenerator
from cyclersim.modules.transmission.client import TransmissionClient
from cyclersim.modules.transmission.events import EventChannel
from cyclersim.modules.transmission.scheduler import TransmissionScheduler
from cyclersim.modules.transmission.schemas import (
    ConnectivityEvent,
    CycleOutcome,
    DeviceProfile,
    LogEvent,
    LogLevel,
    TransmissionEvent,
)

logger = get_logger("cyclersim.console")

# Settings field -> CLI destination
_OVERRIDES = {
    "server_url": "server_url",
    "device_id": "device_id",
    "channel_count": "channels",
    "aux_count": "aux",
    "can_count": "can",
    "lin_count": "lin",
    "send_interval_ms": "interval_ms",
    "metrics_port": "metrics_port",
}


def display_event(event: TransmissionEvent) -> None:
    """Render one engine event on the console log."""
    match event:
        case ConnectivityEvent(is_connected=True):
            logger.info("Connected", message=event.message)
        case ConnectivityEvent():
            logger.warning("Disconnected", message=event.message)
        case CycleOutcome():
            logger.info(
                "Packet sent" if event.success else "Packet failed",
                packets_sent=event.packets_sent,
                success_rate=f"{event.success_rate:.1f}%",
                preview=event.snapshot.summary(),
            )
        case LogEvent(level=LogLevel.ERROR):
            logger.error(event.message)
        case LogEvent(level=LogLevel.WARNING):
            logger.warning(event.message)
        case LogEvent(level=LogLevel.DEBUG):
            logger.debug(event.message)
        case LogEvent():
            logger.info(event.message)


async def _consume_events(events: EventChannel) -> None:
    while True:
        display_event(await events.get())


def _install_stop_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handlers; Ctrl+C raises instead.
            pass


async def run(config: Settings, *, test_connection: bool = False, duration: float | None = None) -> int:
    """
    Run one simulated device until stopped.

    Returns:
        Process exit code
    """
    if not config.device_id:
        raise ConfigurationError("device_id", "Please enter a valid device ID.")

    bind_device_context(config.device_id, config.server_url)
    set_tag("device_id", config.device_id)

    profile = DeviceProfile.from_settings(config)
    events = EventChannel()
    consumer = asyncio.create_task(_consume_events(events))
    exit_code = 0

    try:
        async with TransmissionClient(
            config.server_url,
            timeout=config.request_timeout_seconds,
            user_agent=config.user_agent,
            on_status_changed=events.publish,
        ) as client:
            events.log(LogLevel.INFORMATION, f"Communication service created for {config.server_url}")
            scheduler = TransmissionScheduler(TelemetryGenerator(), client, events)

            if test_connection:
                if await client.test_connection():
                    events.log(LogLevel.INFORMATION, "Connection test successful")
                else:
                    events.log(LogLevel.ERROR, "Connection test failed")
                    exit_code = 1
                if exit_code or not config.auto_start:
                    return exit_code

            stop = asyncio.Event()
            _install_stop_handlers(stop)
            scheduler.start(config.send_interval_ms, lambda: profile)

            try:
                await asyncio.wait_for(stop.wait(), timeout=duration)
            except asyncio.TimeoutError:
                pass

            scheduler.stop()
            await scheduler.wait_stopped()

            logger.info(
                "Transmission summary",
                packets_sent=scheduler.stats.packets_sent,
                successful_packets=scheduler.stats.successful_packets,
                success_rate=f"{scheduler.stats.success_rate:.1f}%",
            )
    finally:
        for event in events.drain():
            display_event(event)
        consumer.cancel()
        await asyncio.gather(consumer, return_exceptions=True)
        clear_device_context()

    return exit_code


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Simulate a battery-cycler device and push its telemetry to a collection server."
    )
    parser.add_argument("-s", "--server-url", dest="server_url", help="Collection server base URL.")
    parser.add_argument("-d", "--device-id", dest="device_id", help="Simulated device identifier.")
    parser.add_argument("-c", "--channels", type=int, help="Number of cycler channels.")
    parser.add_argument("--aux", type=int, help="Number of auxiliary sensors.")
    parser.add_argument("--can", type=int, help="Number of CAN bus signals.")
    parser.add_argument("--lin", type=int, help="Number of LIN bus signals.")
    parser.add_argument("-i", "--interval-ms", dest="interval_ms", type=int, help="Send interval in milliseconds.")
    parser.add_argument("--duration", type=float, help="Stop after this many seconds (default: run until CTRL+C).")
    parser.add_argument(
        "--test-connection",
        action="store_true",
        help="Probe the server first; transmission starts only if it answers and auto start is enabled.",
    )
    parser.add_argument("--metrics-port", dest="metrics_port", type=int, help="Expose Prometheus metrics on this port.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every request and cycle at DEBUG level.")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Settings from environment, overridden by any CLI values given."""
    overrides = {
        field: getattr(args, dest)
        for field, dest in _OVERRIDES.items()
        if getattr(args, dest) is not None
    }
    if not overrides:
        return get_settings()
    return Settings(**overrides)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)

    try:
        config = build_settings(args)
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            logger.error("Invalid configuration", field=field, error=error["msg"])
        sys.exit(2)

    init_sentry()
    if config.prometheus_enabled and config.metrics_port:
        start_http_server(config.metrics_port)
        logger.info("Metrics exposed", port=config.metrics_port)

    try:
        exit_code = asyncio.run(run(config, test_connection=args.test_connection, duration=args.duration))
    except CyclerSimException as e:
        logger.error(e.message, code=e.code, **e.details)
        sys.exit(2)
    except KeyboardInterrupt:
        logger.info("Simulator stopped by user")
        exit_code = 0

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
