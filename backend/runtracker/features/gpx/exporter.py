"""
GPX Exporter

Serializes finished runs to GPX 1.1 and reads GPX tracks back into
location samples.
"""

import logging
import math
import re
from datetime import datetime, timezone
from typing import List, Union

import gpxpy
import gpxpy.gpx

from runtracker.exceptions import EmptyRouteError, InvalidTrackError
from runtracker.features.runs.schemas import RunRecord
from runtracker.features.tracking.schemas import LocationSample

logger = logging.getLogger(__name__)

CREATOR = "RunTracker"
DEFAULT_RUN_NAME = "Run"


def _utc_from_ms(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


def _ms_from_time(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


class GPXExporter:
    """Export/import of runs in GPX format."""

    @staticmethod
    def generate(record: RunRecord) -> str:
        """
        Build a GPX document for a run.

        One track of type 'running' with a single segment; each route
        sample becomes a track point with elevation when reported.

        Args:
            record: Run to export

        Returns:
            GPX 1.1 XML

        Raises:
            EmptyRouteError: If the run has no route points
        """
        if not record.route:
            raise EmptyRouteError("Run has no GPS points to export")

        name = record.name or DEFAULT_RUN_NAME

        gpx = gpxpy.gpx.GPX()
        gpx.creator = CREATOR
        gpx.name = name
        gpx.time = record.date
        gpx.author_name = CREATOR

        track = gpxpy.gpx.GPXTrack(name=name)
        track.type = "running"
        gpx.tracks.append(track)

        segment = gpxpy.gpx.GPXTrackSegment()
        track.segments.append(segment)

        for sample in record.route:
            segment.points.append(gpxpy.gpx.GPXTrackPoint(
                latitude=round(sample.latitude, 7),
                longitude=round(sample.longitude, 7),
                elevation=round(sample.altitude_m, 1) if sample.altitude_m is not None else None,
                time=_utc_from_ms(sample.timestamp_ms),
            ))

        return gpx.to_xml(version="1.1")

    @staticmethod
    def filename(record: RunRecord) -> str:
        """Download filename, e.g. 'runtracker_2026-10-17_Morning-run.gpx'."""
        date_str = record.date.strftime("%Y-%m-%d")
        name = re.sub(r"[^\w]", "-", record.name) if record.name else "run"
        return f"runtracker_{date_str}_{name}.gpx"

    @staticmethod
    def validate(record: RunRecord) -> List[str]:
        """
        Check a run is exportable.

        Returns:
            Human-readable problems, empty when the run is fine
        """
        errors: List[str] = []

        if not record.route:
            errors.append("Missing route")
            return errors

        if len(record.route) < 2:
            errors.append("Route too short (fewer than two points)")

        invalid = [
            p for p in record.route
            if not (math.isfinite(p.latitude) and math.isfinite(p.longitude))
            or not -90 <= p.latitude <= 90
            or not -180 <= p.longitude <= 180
        ]
        if invalid:
            errors.append(f"{len(invalid)} invalid points")

        return errors

    @staticmethod
    def parse(content: Union[bytes, str]) -> List[LocationSample]:
        """
        Read track points from a GPX document.

        Points without a timestamp cannot be placed in a session and are
        skipped.

        Args:
            content: GPX file content

        Returns:
            Samples in document order

        Raises:
            InvalidTrackError: If GPX is invalid or has no timed points
        """
        try:
            if isinstance(content, bytes):
                content = content.decode("utf-8")
            gpx = gpxpy.parse(content)
        except Exception as e:
            logger.error(f"Failed to parse GPX: {e}")
            raise InvalidTrackError(f"Invalid GPX file: {e}")

        samples: List[LocationSample] = []
        skipped = 0

        for track in gpx.tracks:
            for segment in track.segments:
                for point in segment.points:
                    if point.time is None:
                        skipped += 1
                        continue
                    samples.append(LocationSample(
                        latitude=point.latitude,
                        longitude=point.longitude,
                        altitude_m=point.elevation,
                        timestamp_ms=_ms_from_time(point.time),
                    ))

        if skipped:
            logger.warning(f"Skipped {skipped} GPX points without time")

        if not samples:
            raise InvalidTrackError("GPX file contains no timed track points")

        return samples
