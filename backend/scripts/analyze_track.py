#!/usr/bin/env python3
"""Replay a recorded GPX track through a tracking session and print its stats.

Usage:
    python backend/scripts/analyze_track.py morning_run.gpx
    python backend/scripts/analyze_track.py morning_run.gpx --units imperial
    python backend/scripts/analyze_track.py morning_run.gpx --accuracy 8 -v
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")

sys.path.insert(0, str(Path(__file__).parent.parent))

from runtracker.exceptions import InvalidTrackError
from runtracker.features.gpx import GPXExporter
from runtracker.features.runs import FinishedRun, RunService
from runtracker.features.tracking import (
    Fix,
    ScriptedPositioningSource,
    TrackingConfig,
    TrackingSession,
)
from runtracker.shared.constants import UnitSystem
from runtracker.shared.formatters import (
    convert_pace,
    format_distance,
    format_duration,
    format_pace,
    format_speed,
)
from runtracker.storage import InMemoryStore


async def replay(path: Path, units: UnitSystem, accuracy: float | None) -> FinishedRun:
    """Feed every track point to a session as if it arrived live."""
    samples = GPXExporter.parse(path.read_bytes())
    fixes = [
        Fix(
            latitude=s.latitude,
            longitude=s.longitude,
            timestamp=s.timestamp_ms,
            altitude=s.altitude_m,
            accuracy=accuracy,
        )
        for s in samples
    ]

    store = InMemoryStore()
    source = ScriptedPositioningSource(fixes)
    session = TrackingSession(
        source,
        store,
        clock=lambda: samples[0].timestamp_ms,
        snapshot_interval_seconds=3600,
    )

    await session.start(TrackingConfig(high_accuracy=True, units=units))
    source.emit_all()
    recorded = await session.stop()

    return RunService(store).finish(recorded, session.started_at_ms, units)


def print_report(finished: FinishedRun, units: UnitSystem) -> None:
    record = finished.record
    label = units.distance_label

    print(f"\n{'=' * 50}")
    print(f"  Points:    {len(record.route)}")
    print(f"  Distance:  {format_distance(record.distance_km, units)} {label}")
    print(f"  Duration:  {format_duration(record.duration_seconds)}")
    pace = convert_pace(record.avg_pace_sec_per_km, units)
    print(f"  Avg pace:  {format_pace(pace)} /{label}")
    print(f"  Max speed: {format_speed(record.max_speed_kmh, units)}")

    if record.elevation:
        print(f"  Ascent:    {record.elevation.ascent_m:.0f} m")
        print(f"  Descent:   {record.elevation.descent_m:.0f} m")

    if finished.too_short:
        print("  (too short to save without confirmation)")

    if record.splits:
        print(f"\n  {'#':>3}  {'Dist':>7}  {'Time':>8}  {'Pace':>6}")
        for split in record.splits:
            marker = "*" if split.is_partial else ""
            print(
                f"  {split.number:>3}  {format_distance(split.distance, units):>7}  "
                f"{format_duration(split.duration_seconds):>8}  "
                f"{format_pace(split.pace_sec_per_unit):>6}{marker}"
            )
    print(f"{'=' * 50}\n")


def main():
    parser = argparse.ArgumentParser(description="Analyze a GPX track as a recorded run")
    parser.add_argument("gpx", type=Path, help="Path to GPX file")
    parser.add_argument(
        "--units",
        choices=[u.value for u in UnitSystem],
        default=UnitSystem.METRIC.value,
        help="Display unit system (default: metric)",
    )
    parser.add_argument(
        "--accuracy",
        type=float,
        default=None,
        help="Accuracy in meters to attach to every point (GPX carries none)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    if not args.gpx.is_file():
        print(f"File not found: {args.gpx}")
        sys.exit(1)

    units = UnitSystem(args.units)
    try:
        finished = asyncio.run(replay(args.gpx, units, args.accuracy))
    except InvalidTrackError as e:
        print(f"Cannot read track: {e}")
        sys.exit(1)

    print_report(finished, units)


if __name__ == "__main__":
    main()
