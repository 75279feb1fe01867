"""
Counter vocabulary and the read-side contract for battery telemetry sources.

Counters follow the Linux power_supply naming: integers in micro-units
(uW, uA, uV, uWh, uAh) plus a handful of short strings. An absent or unreadable
counter is always ``None``, never ``0``.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Mapping, Optional, Protocol, Union

LOGGER = logging.getLogger(__name__)

CounterValue = Union[int, str, None]

INT_COUNTERS = (
    "capacity",
    "power_now",
    "current_now",
    "voltage_now",
    "energy_full",
    "energy_full_design",
    "charge_full",
    "charge_full_design",
    "cycle_count",
)

STRING_COUNTERS = (
    "status",
    "manufacturer",
    "model_name",
    "technology",
)

COUNTER_NAMES = INT_COUNTERS + STRING_COUNTERS


class CounterSource(Protocol):
    """
    Read access to the named counters of one battery device.

    Every read returns a current value. A source that samples all counters
    at once may also provide ``batch()``, a context manager within which
    reads are served from a single sample (see ``read_counters``).
    """

    def read_int(self, name: str) -> Optional[int]:
        ...

    def read_string(self, name: str) -> Optional[str]:
        ...


class CounterSet(Mapping[str, CounterValue]):
    """Immutable snapshot of counter values for one poll."""

    def __init__(self, values: Optional[Mapping[str, CounterValue]] = None, **kwargs: CounterValue):
        data: Dict[str, CounterValue] = dict(values or {})
        data.update(kwargs)
        unknown = set(data) - set(COUNTER_NAMES)
        if unknown:
            raise KeyError(f"Unknown counter(s): {', '.join(sorted(unknown))}")
        self._values = data

    def __getitem__(self, name: str) -> CounterValue:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        present = {k: v for k, v in self._values.items() if v is not None}
        return f"CounterSet({present!r})"

    def get_int(self, name: str) -> Optional[int]:
        """Integer value of ``name``, or None if absent or not numeric."""
        value = self._values.get(name)
        if value is None or isinstance(value, str):
            return None
        return int(value)

    def get_string(self, name: str) -> Optional[str]:
        """String value of ``name``, or None if absent."""
        value = self._values.get(name)
        if value is None:
            return None
        return str(value)

    def first_positive(self, *names: str) -> Optional[int]:
        """Return the first of ``names`` that is present and > 0."""
        for name in names:
            value = self.get_int(name)
            if value is not None and value > 0:
                return value
        return None

    # CounterSource protocol, so a prepared set can drive the engine directly
    def read_int(self, name: str) -> Optional[int]:
        return self.get_int(name)

    def read_string(self, name: str) -> Optional[str]:
        return self.get_string(name)


def _read_all(source: CounterSource) -> CounterSet:
    values: Dict[str, CounterValue] = {}
    for name in INT_COUNTERS:
        try:
            values[name] = source.read_int(name)
        except Exception as e:
            LOGGER.debug("Reading counter %s failed: %s", name, e)
            values[name] = None
    for name in STRING_COUNTERS:
        try:
            values[name] = source.read_string(name)
        except Exception as e:
            LOGGER.debug("Reading counter %s failed: %s", name, e)
            values[name] = None
    return CounterSet(values)


def read_counters(source: CounterSource) -> CounterSet:
    """
    Read the whole vocabulary from ``source`` into a CounterSet.

    A counter whose read raises is recorded as absent; the failure is not
    propagated. Sources that sample every counter at once (e.g. a sensor)
    may offer a ``batch()`` context manager; the whole vocabulary is then
    read inside one batch, and a failure to open it does propagate since no
    counter of this poll can be trusted.
    """
    if isinstance(source, CounterSet):
        return source

    batch = getattr(source, "batch", None)
    if callable(batch):
        with batch():
            return _read_all(source)
    return _read_all(source)
