"""Geospatial helper functions."""

from __future__ import annotations

import math

EARTH_RADIUS_M = 6_371_000.0

# Straight-line estimate assumes ~30 km/h door to door: 120 seconds per km.
FALLBACK_SECONDS_PER_KM = 120


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance in metres between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)


def estimate_travel(lat1: float, lon1: float, lat2: float, lon2: float) -> tuple[int, int]:
    """Return ``(duration_seconds, distance_meters)`` for the straight-line fallback."""

    distance = haversine_m(lat1, lon1, lat2, lon2)
    duration = round_half_up(distance / 1000 * FALLBACK_SECONDS_PER_KM)
    return duration, round_half_up(distance)
