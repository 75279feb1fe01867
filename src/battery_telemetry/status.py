"""
Battery status helper for conky and other scripts.
Outputs battery info with power draw, rate and time remaining.
"""

import argparse
import logging
import os

from .engine import TelemetryEngine, estimate_time_remaining
from .smoothing import DEFAULT_WINDOW_SIZE
from .sources import CounterSourceUnavailable, Ina219CounterSource, SysfsCounterSource

WINDOW_ENV_VAR = "BATTERY_TELEMETRY_WINDOW"


def _default_window() -> int:
    try:
        return int(os.environ.get(WINDOW_ENV_VAR, DEFAULT_WINDOW_SIZE))
    except ValueError:
        return DEFAULT_WINDOW_SIZE


def open_source(kind: str):
    """Open the requested counter source, raising CounterSourceUnavailable."""
    if kind == "ina219":
        return Ina219CounterSource()
    return SysfsCounterSource.discover()


def format_status(snapshot, health=None) -> list:
    """Lines of conky-formatted output for one snapshot."""
    status = " CHG" if snapshot.is_charging else ""
    sign = "+" if snapshot.is_charging else "-"
    lines = [
        f"> {snapshot.capacity}%{status}",
        f"  {snapshot.power:.2f} W  {sign}{abs(snapshot.rate):.2f} %/h",
    ]

    remaining = estimate_time_remaining(snapshot)
    if remaining:
        h, m = remaining
        suffix = "to full" if snapshot.is_charging else "remaining"
        if h > 0:
            lines.append(f"${{color4}}  {h}h {m}m {suffix}")
        else:
            lines.append(f"${{color4}}  {m}m {suffix}")

    if health is not None:
        lines.append(f"  Health: {health.percent:.2f}% ({health.status})")
    return lines


def main(argv=None):
    """Entry point for battery status output."""
    parser = argparse.ArgumentParser(description="Print battery power and charge rate")
    parser.add_argument("--source", choices=("sysfs", "ina219"), default="sysfs")
    parser.add_argument("--window", type=int, default=_default_window(), help="smoothing samples (1-20)")
    parser.add_argument("--health", action="store_true", help="also print battery health")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.ERROR)

    try:
        source = open_source(args.source)
    except CounterSourceUnavailable:
        print("> N/A")
        return 0
    except Exception as e:
        logging.getLogger(__name__).error("Error opening battery source: %s", e)
        print("> ERR")
        return 0

    engine = TelemetryEngine(source)
    snapshot = engine.poll(args.window)
    if snapshot is None:
        print("> ERR")
        return 0

    health = engine.estimate_health() if args.health else None
    for line in format_status(snapshot, health):
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
