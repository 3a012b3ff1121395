"""
Simulation Module - Telemetry Generator
Advances per-channel state one tick and derives a device snapshot.

Status transitions are drawn uniformly at random; there is no schedule
engine behind the cycle and step counters.
"""
import random
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from cyclersim.core.logging import get_logger
from cyclersim.modules.simulation.models import (
    AlarmSeverity,
    ChannelMode,
    ChannelSimulationState,
    ChannelStatus,
)
from cyclersim.modules.simulation.schemas import (
    AlarmEvent,
    AuxReading,
    BusSignal,
    ChannelReading,
    DeviceSnapshot,
)

logger = get_logger(__name__)

TICK_SECONDS = 1
CAPACITY_INCREMENT_MAX = 0.01
STATUS_CHANGE_PROBABILITY = 0.01
ALARM_PROBABILITY = 0.1
STEPS_PER_CYCLE = 10

TEST_NAMES = ("Capacity Test", "Life Cycle", "Performance", "Stability", "Rate Test")
SCHEDULES = ("Standard", "Fast Charge", "Slow Discharge", "Custom", "OCV")
AUX_SENSOR_NAMES = ("Temperature", "Humidity", "Pressure", "Voltage", "Current")
CAN_SIGNAL_NAMES = ("BMS_Voltage", "BMS_Current", "BMS_Temperature", "Cell_Voltage", "SOC")
LIN_SIGNAL_NAMES = ("Motor_Speed", "Battery_Temp", "System_Status", "Error_Code")

AUX_RANGE = (20.0, 80.0)
AUX_SAFE_LIMITS = (15.0, 75.0)
CAN_RANGE = (0.0, 100.0)
LIN_RANGE = (0.0, 50.0)

ALARM_DESCRIPTIONS: dict[AlarmSeverity, str] = {
    AlarmSeverity.CRITICAL: "Critical system failure detected",
    AlarmSeverity.ERROR: "Error condition requires attention",
    AlarmSeverity.WARNING: "Warning: Parameter out of normal range",
    AlarmSeverity.INFO: "Information: System status update",
}

# Shared by every generator unless one is injected.
_process_rng = random.Random()


class TelemetryGenerator:
    """
    Stateful telemetry source for one simulated cycler.

    Channel states are created lazily, keyed by channel number, and are only
    ever mutated by ``next``. Callers must not run two ``next`` calls
    concurrently; the transmission scheduler serializes its cycles.

    Usage:
        generator = TelemetryGenerator()
        snapshot = generator.next("GPIMS-001", channel_count=8, aux_count=4, can_count=2, lin_count=2)
    """

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or _process_rng
        self._channel_states: dict[int, ChannelSimulationState] = {}

    @property
    def channel_numbers(self) -> list[int]:
        return sorted(self._channel_states)

    def channel_state(self, channel_number: int) -> ChannelSimulationState | None:
        """Return a copy of a channel's state, or None if never generated."""
        state = self._channel_states.get(channel_number)
        return replace(state) if state is not None else None

    def reset(self) -> None:
        """Forget every channel state."""
        self._channel_states.clear()
        logger.info("Channel simulation states reset")

    def next(
        self,
        device_id: str,
        channel_count: int,
        aux_count: int,
        can_count: int,
        lin_count: int,
    ) -> DeviceSnapshot:
        """
        Generate the next snapshot for a device.

        Args:
            device_id: Device identifier copied into the snapshot
            channel_count: Number of channels, numbered 1..n
            aux_count: Number of auxiliary sensor readings
            can_count: Number of CAN bus signals
            lin_count: Number of LIN bus signals

        Returns:
            Snapshot with exactly the requested number of entries per list
            and at most one alarm
        """
        snapshot = DeviceSnapshot(
            device_id=device_id,
            timestamp=datetime.now(timezone.utc),
            channels=[self._channel_reading(number) for number in range(1, channel_count + 1)],
            aux_readings=[self._aux_reading(sensor_id) for sensor_id in range(1, aux_count + 1)],
            can_signals=[
                self._bus_signal(CAN_SIGNAL_NAMES, CAN_RANGE, bms_id)
                for bms_id in range(1, can_count + 1)
            ],
            lin_signals=[
                self._bus_signal(LIN_SIGNAL_NAMES, LIN_RANGE, bms_id)
                for bms_id in range(1, lin_count + 1)
            ],
        )

        if self._rng.random() < ALARM_PROBABILITY:
            snapshot.alarms.append(self._alarm())

        logger.debug(
            "Snapshot generated",
            device_id=device_id,
            channels=channel_count,
            alarms=len(snapshot.alarms),
        )
        return snapshot

    # ============== Channels ==============

    def _channel_reading(self, channel_number: int) -> ChannelReading:
        state = self._channel_states.get(channel_number)
        if state is None:
            state = self._channel_states[channel_number] = ChannelSimulationState()

        self._advance(state)
        voltage, current = self._electrical_values(state.status)

        return ChannelReading(
            channel_number=channel_number,
            status=state.status,
            mode=state.mode,
            cycle_no=state.cycle_no,
            step_no=state.step_no,
            cycler_loop=state.cycler_loop,
            voltage=voltage,
            current=current,
            power=round(voltage * abs(current), 2),
            capacity=round(state.accumulated_capacity, 2),
            chamber_temperature=round(self._rng.uniform(20.0, 30.0), 1),
            step_time=timedelta(seconds=state.step_time_seconds),
            total_time=timedelta(seconds=state.total_time_seconds),
            test_name=self._rng.choice(TEST_NAMES),
            schedule=self._rng.choice(SCHEDULES),
        )

    def _advance(self, state: ChannelSimulationState) -> None:
        """Move a channel forward by one tick."""
        state.step_time_seconds += TICK_SECONDS
        state.total_time_seconds += TICK_SECONDS

        if state.is_active:
            state.accumulated_capacity += self._rng.uniform(0.0, CAPACITY_INCREMENT_MAX)

        if self._rng.random() < STATUS_CHANGE_PROBABILITY:
            state.status = self._rng.choice(list(ChannelStatus))
            state.mode = self._rng.choice(list(ChannelMode))
            state.step_no += 1
            state.step_time_seconds = 0

            if state.step_no > STEPS_PER_CYCLE:
                state.cycle_no += 1
                state.step_no = 1

    def _electrical_values(self, status: ChannelStatus) -> tuple[float, float]:
        """Voltage and current for a status, from disjoint realistic ranges."""
        uniform = self._rng.uniform
        match status:
            case ChannelStatus.CHARGE:
                voltage, current = uniform(3.2, 4.2), uniform(0.5, 5.0)
            case ChannelStatus.DISCHARGE:
                voltage, current = uniform(2.8, 3.8), uniform(-5.0, -0.5)
            case ChannelStatus.REST:
                voltage, current = uniform(3.4, 3.8), uniform(-0.01, 0.01)
            case ChannelStatus.IDLE:
                return 0.0, 0.0
            case _:
                voltage, current = uniform(3.6, 3.8), uniform(-0.05, 0.05)
        return round(voltage, 3), round(current, 3)

    # ============== Sensors & Alarms ==============

    def _aux_reading(self, sensor_id: int) -> AuxReading:
        low, high = AUX_RANGE
        safe_lower, safe_upper = AUX_SAFE_LIMITS
        return AuxReading(
            sensor_id=sensor_id,
            sensor_name=f"{self._rng.choice(AUX_SENSOR_NAMES)}_{sensor_id}",
            value=round(self._rng.uniform(low, high), 2),
            safe_upper_limit=safe_upper,
            safe_lower_limit=safe_lower,
        )

    def _bus_signal(self, names: tuple[str, ...], bounds: tuple[float, float], bms_id: int) -> BusSignal:
        low, high = bounds
        return BusSignal(
            name=f"{self._rng.choice(names)}_{bms_id}",
            value=round(self._rng.uniform(low, high), 2),
            bms_id=bms_id,
            max=high,
            min=low,
        )

    def _alarm(self) -> AlarmEvent:
        severity = self._rng.choice(list(AlarmSeverity))
        return AlarmEvent(
            id=self._rng.randrange(1000, 9999),
            name=f"ALARM_{self._rng.randrange(100, 999)}",
            description=ALARM_DESCRIPTIONS[severity],
            timestamp=datetime.now(timezone.utc),
            severity=severity,
        )
