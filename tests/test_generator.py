"""
Telemetry Generator Tests.

Snapshot shape, channel state evolution and value ranges.
"""
from datetime import timedelta

import pytest

from cyclersim.modules.simulation.models import (
    AlarmSeverity,
    ChannelSimulationState,
    ChannelStatus,
)
from cyclersim.modules.simulation.schemas import format_timespan
from cyclersim.modules.simulation.service import TelemetryGenerator

VOLTAGE_RANGES = {
    ChannelStatus.CHARGE: ((3.2, 4.2), (0.5, 5.0)),
    ChannelStatus.DISCHARGE: ((2.8, 3.8), (-5.0, -0.5)),
    ChannelStatus.REST: ((3.4, 3.8), (-0.01, 0.01)),
    ChannelStatus.IDLE: ((0.0, 0.0), (0.0, 0.0)),
    ChannelStatus.PAUSE: ((3.6, 3.8), (-0.05, 0.05)),
    ChannelStatus.FINISH: ((3.6, 3.8), (-0.05, 0.05)),
}


class TestSnapshotShape:
    """Snapshot list lengths and numbering."""

    @pytest.mark.parametrize("channel_count", [0, 1, 5, 16])
    def test_channel_numbers_are_one_based(self, generator, channel_count):
        snapshot = generator.next("dev1", channel_count, 0, 0, 0)

        assert [c.channel_number for c in snapshot.channels] == list(range(1, channel_count + 1))

    def test_zero_counts_give_empty_lists(self, generator):
        snapshot = generator.next("dev1", 0, 0, 0, 0)

        assert snapshot.device_id == "dev1"
        assert snapshot.channels == []
        assert snapshot.aux_readings == []
        assert snapshot.can_signals == []
        assert snapshot.lin_signals == []

    def test_two_successive_snapshots(self, generator):
        """next("dev1", 2, 1, 1, 1) twice keeps the same shape."""
        for _ in range(2):
            snapshot = generator.next("dev1", 2, 1, 1, 1)

            assert len(snapshot.channels) == 2
            assert len(snapshot.aux_readings) == 1
            assert len(snapshot.can_signals) == 1
            assert len(snapshot.lin_signals) == 1
            assert [c.channel_number for c in snapshot.channels] == [1, 2]

    def test_timestamp_is_utc(self, generator):
        snapshot = generator.next("dev1", 1, 0, 0, 0)

        assert snapshot.timestamp.utcoffset() == timedelta(0)

    def test_at_most_one_alarm(self, generator):
        alarm_counts = [len(generator.next("dev1", 1, 0, 0, 0).alarms) for _ in range(500)]

        assert max(alarm_counts) == 1
        assert 0 in alarm_counts


class TestChannelState:
    """Per-channel state evolution."""

    def test_state_created_lazily(self, generator):
        assert generator.channel_state(3) is None

        generator.next("dev1", 3, 0, 0, 0)

        assert generator.channel_numbers == [1, 2, 3]
        state = generator.channel_state(3)
        assert state.total_time_seconds == 1

    def test_elapsed_counters_advance_each_tick(self, fixed_random):
        generator = TelemetryGenerator(rng=fixed_random(0.5))

        for _ in range(5):
            snapshot = generator.next("dev1", 1, 0, 0, 0)

        channel = snapshot.channels[0]
        assert channel.step_time == timedelta(seconds=5)
        assert channel.total_time == timedelta(seconds=5)

    def test_channel_state_returns_copy(self, generator):
        generator.next("dev1", 1, 0, 0, 0)

        copy = generator.channel_state(1)
        copy.total_time_seconds = 999

        assert generator.channel_state(1).total_time_seconds == 1

    def test_capacity_grows_only_while_active(self, fixed_random):
        generator = TelemetryGenerator(rng=fixed_random(0.5))
        generator._channel_states[1] = ChannelSimulationState(status=ChannelStatus.CHARGE)
        generator._channel_states[2] = ChannelSimulationState(status=ChannelStatus.IDLE)

        charging, idle = [], []
        for _ in range(10):
            snapshot = generator.next("dev1", 2, 0, 0, 0)
            charging.append(snapshot.channels[0].capacity)
            idle.append(snapshot.channels[1].capacity)

        assert charging == sorted(charging)
        assert charging[-1] > charging[0]
        assert idle == [0.0] * 10

    def test_capacity_non_decreasing_between_transitions(self, generator):
        previous = {}
        for _ in range(300):
            snapshot = generator.next("dev1", 8, 0, 0, 0)
            for channel in snapshot.channels:
                before = previous.get(channel.channel_number)
                key = (channel.cycle_no, channel.step_no)
                if before is not None and before[0] == key:
                    if channel.status in (ChannelStatus.CHARGE, ChannelStatus.DISCHARGE):
                        assert channel.capacity >= before[1]
                    else:
                        assert channel.capacity == before[1]
                previous[channel.channel_number] = (key, channel.capacity)

    def test_transition_resets_step_time(self, fixed_random):
        generator = TelemetryGenerator(rng=fixed_random(0.0))
        generator._channel_states[1] = ChannelSimulationState(step_no=4, step_time_seconds=30)

        channel = generator.next("dev1", 1, 0, 0, 0).channels[0]

        assert channel.step_no == 5
        assert channel.cycle_no == 1
        assert channel.step_time == timedelta(0)
        assert channel.total_time == timedelta(seconds=1)

    def test_step_rollover_starts_new_cycle(self, fixed_random):
        generator = TelemetryGenerator(rng=fixed_random(0.0))
        generator._channel_states[1] = ChannelSimulationState(step_no=10, cycle_no=3)

        channel = generator.next("dev1", 1, 0, 0, 0).channels[0]

        assert channel.cycle_no == 4
        assert channel.step_no == 1

    def test_reset_forgets_channels(self, generator):
        generator.next("dev1", 4, 0, 0, 0)

        generator.reset()

        assert generator.channel_numbers == []


class TestChannelValues:
    """Electrical values by status."""

    def test_power_matches_voltage_and_current(self, generator):
        for _ in range(200):
            for channel in generator.next("dev1", 8, 0, 0, 0).channels:
                assert channel.power == round(channel.voltage * abs(channel.current), 2)

    def test_values_within_status_ranges(self, generator):
        for _ in range(400):
            for channel in generator.next("dev1", 8, 0, 0, 0).channels:
                (v_low, v_high), (i_low, i_high) = VOLTAGE_RANGES[channel.status]
                assert v_low <= channel.voltage <= v_high
                assert i_low <= channel.current <= i_high
                assert 20.0 <= channel.chamber_temperature <= 30.0

    def test_idle_channel_is_dead(self, fixed_random):
        generator = TelemetryGenerator(rng=fixed_random(0.5))

        channel = generator.next("dev1", 1, 0, 0, 0).channels[0]

        assert channel.status == ChannelStatus.IDLE
        assert (channel.voltage, channel.current, channel.power) == (0.0, 0.0, 0.0)

    def test_labels_come_from_pools(self, generator):
        channel = generator.next("dev1", 1, 0, 0, 0).channels[0]

        assert channel.test_name in ("Capacity Test", "Life Cycle", "Performance", "Stability", "Rate Test")
        assert channel.schedule in ("Standard", "Fast Charge", "Slow Discharge", "Custom", "OCV")


class TestSensorsAndAlarms:
    """Aux, bus and alarm generation."""

    def test_aux_readings(self, generator):
        readings = generator.next("dev1", 0, 3, 0, 0).aux_readings

        assert [r.sensor_id for r in readings] == [1, 2, 3]
        for reading in readings:
            assert reading.sensor_name.endswith(f"_{reading.sensor_id}")
            assert 20.0 <= reading.value <= 80.0
            assert (reading.safe_lower_limit, reading.safe_upper_limit) == (15.0, 75.0)

    def test_bus_signals(self, generator):
        snapshot = generator.next("dev1", 0, 0, 2, 2)

        for signal in snapshot.can_signals:
            assert (signal.min, signal.max) == (0.0, 100.0)
            assert 0.0 <= signal.value <= 100.0
        for signal in snapshot.lin_signals:
            assert (signal.min, signal.max) == (0.0, 50.0)
            assert 0.0 <= signal.value <= 50.0
        assert [s.bms_id for s in snapshot.lin_signals] == [1, 2]
        assert snapshot.lin_signals[1].name.endswith("_2")

    def test_alarm_fields(self, fixed_random):
        generator = TelemetryGenerator(rng=fixed_random(0.0))

        alarms = generator.next("dev1", 0, 0, 0, 0).alarms

        assert len(alarms) == 1
        alarm = alarms[0]
        assert alarm.severity == AlarmSeverity.INFO
        assert alarm.description == "Information: System status update"
        assert 1000 <= alarm.id < 9999
        assert alarm.name.startswith("ALARM_")


class TestWireFormat:
    """Serialized snapshot layout."""

    def test_wire_names_and_enums(self, fixed_random):
        generator = TelemetryGenerator(rng=fixed_random(0.0))

        wire = generator.next("dev1", 1, 1, 1, 1).to_wire()

        assert set(wire) == {"DeviceId", "Timestamp", "Channels", "AuxData", "CANData", "LINData", "AlarmData"}
        channel = wire["Channels"][0]
        assert channel["ChannelNumber"] == 1
        assert channel["Status"] == "Idle"
        assert channel["Mode"] == "Rest"
        assert channel["StepTime"] == "00:00:00"
        assert channel["TotalTime"] == "00:00:01"
        assert wire["CANData"][0]["BmsId"] == 1
        assert wire["AlarmData"][0]["Severity"] == "Info"
        assert wire["Timestamp"].endswith("Z")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (timedelta(seconds=0), "00:00:00"),
            (timedelta(seconds=3723), "01:02:03"),
            (timedelta(days=2, seconds=59), "2.00:00:59"),
        ],
    )
    def test_format_timespan(self, value, expected):
        assert format_timespan(value) == expected
