"""
Sliding-window smoothing of the signed charge/discharge rate.

Charging and discharging samples are kept apart: a plug/unplug is a step
change, and averaging across it would lag the new trend.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Tuple

LOGGER = logging.getLogger(__name__)

MIN_WINDOW_SIZE = 1
MAX_WINDOW_SIZE = 20
DEFAULT_WINDOW_SIZE = 10  # smoothing-samples default of the panel indicator


def clamp_window_size(window_size: int) -> int:
    """Force ``window_size`` into [MIN_WINDOW_SIZE, MAX_WINDOW_SIZE]."""
    clamped = max(MIN_WINDOW_SIZE, min(MAX_WINDOW_SIZE, int(window_size)))
    if clamped != window_size:
        LOGGER.warning("Window size %s out of range, using %d", window_size, clamped)
    return clamped


class SmoothingWindow:
    """Two bounded FIFO sample sequences, one per charge direction."""

    def __init__(self):
        self._charging: Deque[float] = deque()
        self._discharging: Deque[float] = deque()

    def _select(self, is_charging: bool) -> Deque[float]:
        return self._charging if is_charging else self._discharging

    def observe(self, signed_rate: float, is_charging: bool, window_size: int) -> None:
        """
        Record a rate sample for the given charge direction.

        Oldest samples are evicted until at most ``window_size`` remain.
        """
        samples = self._select(is_charging)
        samples.append(signed_rate)
        while len(samples) > window_size:
            samples.popleft()

    def smoothed_value(self, is_charging: bool) -> float:
        """Mean of the samples for one direction, or 0.0 if there are none."""
        samples = self._select(is_charging)
        if not samples:
            return 0.0
        return sum(samples) / len(samples)

    def samples(self, is_charging: bool) -> Tuple[float, ...]:
        """Copy of the current samples for one direction, oldest first."""
        return tuple(self._select(is_charging))

    def reset(self) -> None:
        """Clear both directions."""
        self._charging.clear()
        self._discharging.clear()
