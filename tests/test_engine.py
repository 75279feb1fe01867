"""Tests for the telemetry engine (snapshot builder)."""

import pytest

from battery_telemetry.counters import CounterSet
from battery_telemetry.engine import TelemetryEngine, TelemetrySnapshot, estimate_time_remaining
from battery_telemetry.estimators import HealthStatus


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def engine() -> TelemetryEngine:
    return TelemetryEngine()


def discharging(power_uw: int, capacity: int = 60) -> CounterSet:
    return CounterSet(
        capacity=capacity,
        status="Discharging",
        power_now=power_uw,
        energy_full=50_000_000,
        energy_full_design=57_000_000,
    )


def charging(power_uw: int, capacity: int = 60) -> CounterSet:
    return CounterSet(
        capacity=capacity,
        status="Charging",
        power_now=power_uw,
        energy_full=50_000_000,
    )


# =============================================================================
# SNAPSHOTS
# =============================================================================

def test_discharging_snapshot(engine):
    snapshot = engine.build_snapshot(discharging(5_000_000), 5)
    assert snapshot.capacity == 60
    assert snapshot.status == "Discharging"
    assert snapshot.is_charging is False
    assert snapshot.power == 5.0
    assert snapshot.rate == pytest.approx(-10.0)


def test_charging_snapshot(engine):
    snapshot = engine.build_snapshot(charging(10_000_000), 5)
    assert snapshot.is_charging is True
    assert snapshot.rate == pytest.approx(20.0)


def test_missing_capacity_gives_none(engine):
    counters = CounterSet(status="Charging", power_now=5_000_000, energy_full=50_000_000)
    assert engine.build_snapshot(counters, 5) is None


def test_missing_status_is_unknown(engine):
    counters = CounterSet(capacity=90, power_now=5_000_000, energy_full=50_000_000)
    snapshot = engine.build_snapshot(counters, 5)
    assert snapshot.status == "Unknown"
    assert snapshot.is_charging is False
    assert snapshot.rate <= 0


@pytest.mark.parametrize("status", ["Full", "Not charging", "Unknown", "Discharging"])
def test_only_charging_status_counts_as_charging(engine, status):
    counters = CounterSet(capacity=100, status=status, power_now=1_000_000, energy_full=50_000_000)
    assert engine.build_snapshot(counters, 5).is_charging is False


def test_no_capacity_counters_gives_zero_rate(engine):
    counters = CounterSet(capacity=40, status="Discharging", power_now=8_000_000)
    snapshot = engine.build_snapshot(counters, 5)
    assert snapshot.power == 8.0
    assert snapshot.rate == 0.0


def test_read_failure_gives_none(engine):
    class Broken:
        def batch(self):
            raise OSError("sensor gone")

        def read_int(self, name):
            return 1

        def read_string(self, name):
            return "Charging"

    assert engine.build_snapshot(Broken(), 5) is None


def test_rate_is_smoothed(engine):
    engine.build_snapshot(discharging(5_000_000), 3)  # -10
    engine.build_snapshot(discharging(10_000_000), 3)  # -20
    snapshot = engine.build_snapshot(discharging(15_000_000), 3)  # -30
    assert snapshot.rate == pytest.approx(-20.0)

    snapshot = engine.build_snapshot(discharging(20_000_000), 3)  # -40
    assert snapshot.rate == pytest.approx(-30.0)


def test_direction_switch_keeps_other_window(engine):
    engine.build_snapshot(discharging(5_000_000), 5)
    engine.build_snapshot(discharging(15_000_000), 5)

    snapshot = engine.build_snapshot(charging(10_000_000), 5)
    assert snapshot.rate == pytest.approx(20.0)
    assert engine.smoothing.samples(False) == pytest.approx((-10.0, -30.0))

    snapshot = engine.build_snapshot(discharging(10_000_000), 5)
    assert snapshot.rate == pytest.approx(-20.0)


def test_reset_smoothing(engine):
    engine.build_snapshot(discharging(5_000_000), 5)
    engine.build_snapshot(discharging(15_000_000), 5)
    engine.reset_smoothing()

    snapshot = engine.build_snapshot(discharging(12_500_000), 5)
    assert snapshot.rate == pytest.approx(-25.0)


def test_window_size_change_resets(engine):
    engine.build_snapshot(discharging(5_000_000), 5)
    engine.build_snapshot(discharging(15_000_000), 5)

    snapshot = engine.build_snapshot(discharging(12_500_000), 4)
    assert snapshot.rate == pytest.approx(-25.0)
    assert len(engine.smoothing.samples(False)) == 1


def test_window_of_one_is_idempotent(engine):
    counters = discharging(7_000_000)
    first = engine.build_snapshot(counters, 1)
    second = engine.build_snapshot(counters, 1)
    assert first == second


def test_windows_never_exceed_size(engine):
    for i in range(30):
        engine.build_snapshot(discharging(1_000_000 * (i + 1)), 4)
    assert len(engine.smoothing.samples(False)) == 4


def test_engines_do_not_share_state():
    a, b = TelemetryEngine(), TelemetryEngine()
    a.build_snapshot(discharging(5_000_000), 5)
    snapshot = b.build_snapshot(discharging(15_000_000), 5)
    assert snapshot.rate == pytest.approx(-30.0)


# =============================================================================
# SOURCE / HEALTH
# =============================================================================

def test_poll_without_source(engine):
    assert engine.has_source is False
    assert engine.poll(5) is None
    assert engine.estimate_health() is None


def test_poll_with_source():
    engine = TelemetryEngine(discharging(5_000_000))
    assert engine.has_source is True
    assert engine.poll(5).rate == pytest.approx(-10.0)


def test_estimate_health_from_source():
    engine = TelemetryEngine(CounterSet(charge_full=4000, charge_full_design=5000))
    health = engine.estimate_health()
    assert health.percent == 80.0
    assert health.status is HealthStatus.EXCELLENT


def test_estimate_health_explicit_counters(engine):
    health = engine.estimate_health(CounterSet(energy_full=1500, energy_full_design=5000))
    assert health.status is HealthStatus.POOR


# =============================================================================
# TIME REMAINING
# =============================================================================

def test_time_to_empty():
    snapshot = TelemetrySnapshot(capacity=50, status="Discharging", is_charging=False, power=5.0, rate=-20.0)
    assert estimate_time_remaining(snapshot) == (2, 30)


def test_time_to_full():
    snapshot = TelemetrySnapshot(capacity=70, status="Charging", is_charging=True, power=20.0, rate=40.0)
    assert estimate_time_remaining(snapshot) == (0, 45)


def test_no_time_estimate():
    idle = TelemetrySnapshot(capacity=50, status="Discharging", is_charging=False, power=0.0, rate=0.0)
    full = TelemetrySnapshot(capacity=100, status="Charging", is_charging=True, power=1.0, rate=2.0)
    assert estimate_time_remaining(idle) is None
    assert estimate_time_remaining(full) is None


# =============================================================================
# WINDOW SIZE
# =============================================================================

def test_default_window_keeps_ten_samples(engine):
    for i in range(12):
        engine.build_snapshot(discharging(1_000_000 * (i + 1)))
    assert len(engine.smoothing.samples(False)) == 10


@pytest.mark.parametrize("window_size", [None, "many", object()])
def test_bad_window_size_gives_none(engine, window_size):
    assert engine.build_snapshot(discharging(5_000_000), window_size) is None
