"""
Power, rate and health estimation from raw battery counters.

All functions here are pure: they take a CounterSet and return numbers.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .counters import CounterSet

LOGGER = logging.getLogger(__name__)

# sysfs micro-units
MICROWATTS_PER_WATT = 1_000_000
MICROAMPS_PER_AMP = 1_000_000
MICROVOLTS_PER_VOLT = 1_000_000

# Health thresholds (percent, inclusive lower bounds)
HEALTH_EXCELLENT = 80
HEALTH_GOOD = 60
HEALTH_FAIR = 40

RateStrategy = Callable[[float, CounterSet], Optional[float]]


def estimate_power(counters: CounterSet) -> float:
    """
    Instantaneous power in watts.

    Prefers ``power_now``; falls back to ``current_now * voltage_now``.
    Returns 0.0 when neither path has usable counters.
    """
    power_now = counters.get_int("power_now")
    if power_now is not None and power_now > 0:
        return power_now / MICROWATTS_PER_WATT

    current = counters.get_int("current_now")
    voltage = counters.get_int("voltage_now")
    if current is not None and voltage is not None:
        # some drivers report discharge current as negative
        return (abs(current) / MICROAMPS_PER_AMP) * (abs(voltage) / MICROVOLTS_PER_VOLT)
    return 0.0


def rate_from_energy(power: float, counters: CounterSet) -> Optional[float]:
    """Percent of full capacity per hour, from energy counters (uWh)."""
    energy_full = counters.first_positive("energy_full", "energy_full_design")
    if energy_full is None:
        return None
    energy_full_wh = energy_full / MICROWATTS_PER_WATT
    return power / energy_full_wh * 100


def rate_from_charge(power: float, counters: CounterSet) -> Optional[float]:
    """Percent of full capacity per hour, from charge counters (uAh) and voltage."""
    charge_full = counters.first_positive("charge_full", "charge_full_design")
    voltage = counters.get_int("voltage_now")
    if charge_full is None or voltage is None or voltage <= 0:
        return None
    energy_full_wh = (charge_full / MICROAMPS_PER_AMP) * (voltage / MICROVOLTS_PER_VOLT)
    if energy_full_wh <= 0:
        return None
    return power / energy_full_wh * 100


RATE_STRATEGIES: Sequence[RateStrategy] = (rate_from_energy, rate_from_charge)


def estimate_rate(
    power: float,
    is_charging: bool,
    counters: CounterSet,
    strategies: Sequence[RateStrategy] = RATE_STRATEGIES,
) -> float:
    """
    Raw signed rate in percent per hour, before smoothing.

    The first strategy giving a present, non-zero result wins. The magnitude
    is negated when the battery is not charging.
    """
    rate = 0.0
    for strategy in strategies:
        result = strategy(power, counters)
        if result:
            rate = result
            break
    else:
        LOGGER.debug("Rate is 0: zero power or no usable capacity counters (power=%.3fW)", power)

    return rate if is_charging else -rate


class HealthStatus(enum.Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Health:
    percent: float
    status: HealthStatus


def health_status(percent: float) -> HealthStatus:
    """Map a health percentage to its qualitative status."""
    if percent >= HEALTH_EXCELLENT:
        return HealthStatus.EXCELLENT
    if percent >= HEALTH_GOOD:
        return HealthStatus.GOOD
    if percent >= HEALTH_FAIR:
        return HealthStatus.FAIR
    return HealthStatus.POOR


def estimate_health(counters: CounterSet) -> Optional[Health]:
    """
    Wear estimate: current full capacity over design capacity.

    Returns None when either capacity is missing or zero.
    """
    current_full = counters.first_positive("charge_full", "energy_full")
    design_full = counters.first_positive("charge_full_design", "energy_full_design")
    if current_full is None or design_full is None:
        return None

    percent = round(current_full / design_full * 100, 2)
    return Health(percent=percent, status=health_status(percent))
