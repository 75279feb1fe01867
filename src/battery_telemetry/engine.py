"""
Telemetry engine - turns one poll of raw counters into a smoothed snapshot.

One engine instance per battery. The smoothing state lives inside the
instance and is mutated on every snapshot, so an engine must not be polled
from several threads at once.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .counters import CounterSource, read_counters
from .estimators import Health, estimate_health, estimate_power, estimate_rate
from .smoothing import DEFAULT_WINDOW_SIZE, SmoothingWindow, clamp_window_size

LOGGER = logging.getLogger(__name__)

STATUS_CHARGING = "Charging"
STATUS_UNKNOWN = "Unknown"


@dataclass(frozen=True)
class TelemetrySnapshot:
    capacity: int
    status: str
    is_charging: bool
    power: float  # watts, >= 0
    rate: float  # smoothed percent per hour, signed by charge direction


class TelemetryEngine:
    """
    Builds TelemetrySnapshots and health estimates for one battery.

    ``source`` is optional: an engine created without one reports the
    persistent "no data" state from ``poll`` but can still be fed counter
    sets directly through ``build_snapshot``.
    """

    def __init__(self, source: Optional[CounterSource] = None):
        self.source = source
        self._window = SmoothingWindow()
        self._window_size: Optional[int] = None

    @property
    def has_source(self) -> bool:
        return self.source is not None

    @property
    def smoothing(self) -> SmoothingWindow:
        return self._window

    def reset_smoothing(self) -> None:
        """Drop all smoothing samples in both charge directions."""
        self._window.reset()

    def build_snapshot(
        self, counters: CounterSource, window_size: int = DEFAULT_WINDOW_SIZE
    ) -> Optional[TelemetrySnapshot]:
        """
        Read ``counters`` and compute one snapshot.

        Returns None when ``capacity`` is missing, reading fails or
        ``window_size`` is not a number.
        """
        try:
            window_size = clamp_window_size(window_size)
            if self._window_size is not None and window_size != self._window_size:
                LOGGER.debug("Window size changed %d -> %d, resetting", self._window_size, window_size)
                self.reset_smoothing()
            self._window_size = window_size

            values = read_counters(counters)
            capacity = values.get_int("capacity")
            if capacity is None:
                LOGGER.warning("Battery capacity unavailable, no snapshot this poll")
                return None

            status = values.get_string("status") or STATUS_UNKNOWN
            is_charging = status == STATUS_CHARGING

            power = estimate_power(values)
            raw_rate = estimate_rate(power, is_charging, values)
            self._window.observe(raw_rate, is_charging, window_size)
            rate = self._window.smoothed_value(is_charging)
        except Exception as e:
            LOGGER.warning("Error reading battery data: %s", e)
            return None

        LOGGER.debug(
            "Snapshot capacity=%d%% status=%s power=%.2fW raw=%.2f%%/h smoothed=%.2f%%/h",
            capacity,
            status,
            power,
            raw_rate,
            rate,
        )
        return TelemetrySnapshot(
            capacity=capacity,
            status=status,
            is_charging=is_charging,
            power=power,
            rate=rate,
        )

    def poll(self, window_size: int = DEFAULT_WINDOW_SIZE) -> Optional[TelemetrySnapshot]:
        """Build a snapshot from the attached source, or None if there is none."""
        if self.source is None:
            return None
        return self.build_snapshot(self.source, window_size)

    def estimate_health(self, counters: Optional[CounterSource] = None) -> Optional[Health]:
        """
        Battery wear estimate from ``counters``, or from the attached source.

        Returns:
            Health, or None when it cannot be determined or reading fails
        """
        source = counters if counters is not None else self.source
        if source is None:
            return None
        try:
            return estimate_health(read_counters(source))
        except Exception as e:
            LOGGER.warning("Error reading battery health: %s", e)
            return None


def estimate_time_remaining(snapshot: TelemetrySnapshot) -> Optional[Tuple[int, int]]:
    """
    Time to full (charging) or to empty (discharging) at the smoothed rate.

    Returns:
        Tuple of (hours, minutes) or None if the rate gives no estimate
    """
    rate = abs(snapshot.rate)
    if rate <= 0:
        return None

    if snapshot.is_charging:
        hours_left = (100 - snapshot.capacity) / rate
    else:
        hours_left = snapshot.capacity / rate

    if hours_left <= 0 or not math.isfinite(hours_left):
        return None

    hours = int(hours_left)
    minutes = int((hours_left - hours) * 60)
    return (hours, minutes)
