"""
Concrete counter sources.

- SysfsCounterSource: a Linux /sys/class/power_supply battery directory
- Ina219CounterSource: an INA219 shunt sensor on a UPS HAT (3S Li-ion pack)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional

LOGGER = logging.getLogger(__name__)

POWER_SUPPLY_ROOT = Path("/sys/class/power_supply")

# INA219 / battery pack configuration (3S Li-ion default)
NOMINAL_CAPACITY_MAH = 3400  # Adjust for your battery
SHUNT_OHMS = 0.1
I2C_ADDRESS = 0x41
I2C_BUS = 1

# Charging detection
CHARGE_CURRENT_THRESHOLD = 10  # mA - above this = charging

# 3S Li-ion discharge curve (voltage -> percent)
# More data points in the flat middle region for better accuracy
DISCHARGE_CURVE = [
    (12.60, 100),
    (12.50, 95),
    (12.40, 90),
    (12.30, 85),
    (12.20, 80),
    (12.00, 75),
    (11.90, 70),
    (11.80, 65),
    (11.70, 60),
    (11.60, 55),
    (11.50, 50),
    (11.40, 45),
    (11.30, 40),
    (11.20, 35),
    (11.10, 30),
    (11.00, 25),
    (10.80, 20),
    (10.60, 15),
    (10.40, 10),
    (10.20, 7),
    (10.00, 5),
    (9.80, 3),
    (9.60, 2),
    (9.40, 1),
    (9.00, 0),
]


class CounterSourceUnavailable(RuntimeError):
    """Raised when no battery device can be found or opened."""


def find_battery_path(root: Path = POWER_SUPPLY_ROOT) -> Optional[Path]:
    """Return the first power_supply entry whose type is ``Battery``."""
    try:
        candidates = sorted(root.iterdir())
    except OSError as e:
        LOGGER.warning("Error listing %s: %s", root, e)
        return None

    for candidate in candidates:
        try:
            if (candidate / "type").read_text().strip() == "Battery":
                return candidate
        except (OSError, UnicodeDecodeError):
            continue
    return None


class SysfsCounterSource:
    """Counters read from one power_supply directory, one file per counter."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def discover(cls, root: Path = POWER_SUPPLY_ROOT) -> "SysfsCounterSource":
        path = find_battery_path(root)
        if path is None:
            raise CounterSourceUnavailable(f"No battery found under {root}")
        LOGGER.info("Using battery at %s", path)
        return cls(path)

    def read_string(self, name: str) -> Optional[str]:
        try:
            raw = (self.path / name).read_text().strip()
        except (OSError, UnicodeDecodeError):
            return None
        return raw or None

    def read_int(self, name: str) -> Optional[int]:
        raw = self.read_string(name)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            LOGGER.debug("Non-numeric value in %s/%s: %s", self.path, name, raw)
            return None

    def __repr__(self) -> str:
        return f"SysfsCounterSource({str(self.path)!r})"


def voltage_to_percent(voltage: float) -> float:
    """Convert voltage to percentage using Li-ion discharge curve."""
    if voltage >= DISCHARGE_CURVE[0][0]:
        return 100.0
    if voltage <= DISCHARGE_CURVE[-1][0]:
        return 0.0

    for i in range(len(DISCHARGE_CURVE) - 1):
        v_high, p_high = DISCHARGE_CURVE[i]
        v_low, p_low = DISCHARGE_CURVE[i + 1]
        if v_low <= voltage <= v_high:
            ratio = (voltage - v_low) / (v_high - v_low)
            return p_low + ratio * (p_high - p_low)
    return 0.0


def _open_ina219():
    try:
        from ina219 import INA219
    except ImportError as e:
        raise CounterSourceUnavailable("ina219 library not installed") from e
    try:
        ina = INA219(SHUNT_OHMS, address=I2C_ADDRESS, busnum=I2C_BUS)
        ina.configure()
    except Exception as e:
        raise CounterSourceUnavailable(f"INA219 init error: {e}") from e
    return ina


class Ina219CounterSource:
    """
    Battery counters synthesised from an INA219 voltage/current sensor.

    The sensor only measures bus voltage, current and power, so:

    - capacity comes from the discharge curve
    - status comes from the current direction
    - charge_full_design is the nominal pack capacity

    Each read samples the sensor. Inside ``batch()`` the sensor is sampled
    once and every read is served from that sample, so voltage, current and
    power stay consistent within a snapshot.
    """

    def __init__(self, ina=None, capacity_mah: float = NOMINAL_CAPACITY_MAH):
        self.ina = ina if ina is not None else _open_ina219()
        self.capacity_mah = capacity_mah
        self._reading: Dict[str, object] = {}
        self._batched = False

    def refresh(self) -> None:
        """Sample the sensor and convert the reading to counters."""
        voltage = self.ina.voltage()  # V
        current = self.ina.current()  # mA, positive = charging
        power = self.ina.power()  # mW

        charging = current > CHARGE_CURRENT_THRESHOLD
        self._reading = {
            "voltage_now": int(round(voltage * 1_000_000)),
            "current_now": int(round(abs(current) * 1000)),
            "power_now": int(round(power * 1000)),
            "capacity": int(round(voltage_to_percent(voltage))),
            "charge_full_design": int(round(self.capacity_mah * 1000)),
            "status": "Charging" if charging else "Discharging",
            "technology": "Li-ion",
        }

    @contextmanager
    def batch(self) -> Iterator["Ina219CounterSource"]:
        """Serve all reads in the block from a single sensor sample."""
        self.refresh()
        self._batched = True
        try:
            yield self
        finally:
            self._batched = False

    def _value(self, name: str) -> object:
        if not self._batched:
            self.refresh()
        return self._reading.get(name)

    def read_int(self, name: str) -> Optional[int]:
        value = self._value(name)
        return value if isinstance(value, int) else None

    def read_string(self, name: str) -> Optional[str]:
        value = self._value(name)
        return value if isinstance(value, str) else None
