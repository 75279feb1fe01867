"""
Battery Telemetry - power draw and charge-rate estimation from battery counters.

This package provides:
- Power estimation from power_now or current_now * voltage_now
- Percent-per-hour rate from energy or charge capacity counters
- Per-direction sliding-window smoothing of the rate
- Battery health (wear) estimation
- Counter sources for sysfs power_supply devices and INA219 sensors
"""

__version__ = "1.0.0"

from .counters import (
    COUNTER_NAMES,
    CounterSet,
    CounterSource,
    read_counters,
)
from .engine import (
    TelemetryEngine,
    TelemetrySnapshot,
    estimate_time_remaining,
)
from .estimators import (
    Health,
    HealthStatus,
    estimate_health,
    estimate_power,
    estimate_rate,
)
from .smoothing import (
    DEFAULT_WINDOW_SIZE,
    MAX_WINDOW_SIZE,
    MIN_WINDOW_SIZE,
    SmoothingWindow,
)
from .sources import (
    CounterSourceUnavailable,
    Ina219CounterSource,
    SysfsCounterSource,
    find_battery_path,
)

__all__ = [
    "COUNTER_NAMES",
    "CounterSet",
    "CounterSource",
    "read_counters",
    "TelemetryEngine",
    "TelemetrySnapshot",
    "estimate_time_remaining",
    "Health",
    "HealthStatus",
    "estimate_health",
    "estimate_power",
    "estimate_rate",
    "DEFAULT_WINDOW_SIZE",
    "MAX_WINDOW_SIZE",
    "MIN_WINDOW_SIZE",
    "SmoothingWindow",
    "CounterSourceUnavailable",
    "Ina219CounterSource",
    "SysfsCounterSource",
    "find_battery_path",
]
