"""
Great-circle distance on a spherical Earth.

Both helpers use the haversine formula with the mean Earth radius and clamp
the intermediate term to [0, 1] so identical or antipodal points never
produce NaN from rounding error.
"""

import math
from typing import Protocol, Sequence

import numpy as np

EARTH_RADIUS_KM = 6371.0


class LatLon(Protocol):
    lat: float
    lon: float


def haversine_km(a: LatLon, b: LatLon) -> float:
    """Distance between two points in kilometers."""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlat = lat2 - lat1
    dlon = math.radians(b.lon - a.lon)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    h = min(max(h, 0.0), 1.0)
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def segment_distances_km(points: Sequence[LatLon]) -> np.ndarray:
    """
    Vectorised haversine between consecutive points.

    Returns an array of length len(points) - 1 (empty for fewer than two points),
    where element i is the distance from point i to point i + 1.
    """
    if len(points) < 2:
        return np.zeros(0)

    lat = np.radians(np.array([p.lat for p in points], dtype=float))
    lon = np.radians(np.array([p.lon for p in points], dtype=float))

    dlat = np.diff(lat)
    dlon = np.diff(lon)

    h = np.sin(dlat / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(dlon / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return 2 * EARTH_RADIUS_KM * np.arctan2(np.sqrt(h), np.sqrt(1 - h))
