"""
geo.py - Geospatial math.

Pure functions shared by the grid indexer, the nearby query and the
collection validator. Distances use the Haversine formula; box queries
use a flat-earth degree/meter conversion that is accurate at
sub-kilometer scales.
"""

import math
from typing import Protocol, Tuple

EARTH_RADIUS_METERS = 6371000.0
METERS_PER_DEGREE_LAT = 111000.0

# Keeps longitude conversion finite at the poles
_MIN_COS_LAT = 1e-9


class RandomSource(Protocol):
    """Anything with a ``random()`` returning a float in [0, 1)."""

    def random(self) -> float: ...


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in meters."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial bearing from point 1 to point 2 in degrees, normalized to [0, 360)."""
    d_lon = math.radians(lon2 - lon1)
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)

    y = math.sin(d_lon) * math.cos(lat2_rad)
    x = math.cos(lat1_rad) * math.sin(lat2_rad) - math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(d_lon)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def meters_to_degrees_lat(meters: float) -> float:
    return meters / METERS_PER_DEGREE_LAT


def meters_to_degrees_lon(meters: float, latitude: float) -> float:
    return meters / (METERS_PER_DEGREE_LAT * _cos_lat(latitude))


def degrees_lat_to_meters(degrees: float) -> float:
    return degrees * METERS_PER_DEGREE_LAT


def degrees_lon_to_meters(degrees: float, latitude: float) -> float:
    return degrees * METERS_PER_DEGREE_LAT * _cos_lat(latitude)


def bounding_box(latitude: float, longitude: float, radius_meters: float) -> Tuple[float, float, float, float]:
    """Return (min_lat, max_lat, min_lon, max_lon) around a point.

    The longitude span is scaled by the query point's own latitude.
    """
    d_lat = meters_to_degrees_lat(radius_meters)
    d_lon = meters_to_degrees_lon(radius_meters, latitude)
    return latitude - d_lat, latitude + d_lat, longitude - d_lon, longitude + d_lon


def random_point_in_box(
    min_lat: float, max_lat: float, min_lon: float, max_lon: float, rng: RandomSource
) -> Tuple[float, float]:
    """Uniformly random (latitude, longitude) inside a box."""
    return (
        min_lat + rng.random() * (max_lat - min_lat),
        min_lon + rng.random() * (max_lon - min_lon),
    )


def _cos_lat(latitude: float) -> float:
    return max(math.cos(math.radians(latitude)), _MIN_COS_LAT)
