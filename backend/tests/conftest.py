"""
Shared fixtures.

Tracks are laid out due north from the equator, where a degree of
latitude is exactly EARTH_RADIUS_KM * pi / 180 km, so haversine distances
come out as the intended step lengths.
"""

import math

import pytest

from runtracker.features.tracking.schemas import LocationSample
from runtracker.shared.constants import EARTH_RADIUS_KM

KM_PER_DEGREE = EARTH_RADIUS_KM * math.pi / 180

T0 = 1_700_000_000_000  # epoch ms


def build_track(steps_km, step_seconds, accuracy=5.0, altitudes=None, start_ms=T0):
    """Samples moving north by each step in steps_km, step_seconds apart."""
    lat = 0.0
    samples = [LocationSample(
        latitude=lat,
        longitude=0.0,
        accuracy_m=accuracy,
        altitude_m=altitudes[0] if altitudes else None,
        timestamp_ms=start_ms,
    )]
    for i, step in enumerate(steps_km, start=1):
        lat += step / KM_PER_DEGREE
        samples.append(LocationSample(
            latitude=lat,
            longitude=0.0,
            accuracy_m=accuracy,
            altitude_m=altitudes[i] if altitudes else None,
            timestamp_ms=start_ms + int(i * step_seconds * 1000),
        ))
    return samples


@pytest.fixture
def track():
    """Factory: track(steps_km, step_seconds, accuracy=5.0, altitudes=None)."""
    return build_track


@pytest.fixture
def sample():
    """Factory: sample(km north of the equator, t_s seconds after T0, ...)."""
    def _sample(km=0.0, t_s=0.0, accuracy=5.0, altitude=None):
        return LocationSample(
            latitude=km / KM_PER_DEGREE,
            longitude=0.0,
            accuracy_m=accuracy,
            altitude_m=altitude,
            timestamp_ms=T0 + int(t_s * 1000),
        )
    return _sample

