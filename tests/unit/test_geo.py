"""
test_geo.py - Unit tests for the geospatial helpers.

Covers Haversine distance against known city pairs, bearing
normalization, degree/meter conversions and bounding boxes.
"""

import random

import pytest

from bbgold.geo import (
    bearing,
    bounding_box,
    degrees_lat_to_meters,
    degrees_lon_to_meters,
    haversine_distance,
    meters_to_degrees_lat,
    meters_to_degrees_lon,
    random_point_in_box,
)


# ── Haversine ─────────────────────────────────────────────────────────────

class TestHaversine:

    def test_same_point_is_zero(self):
        assert haversine_distance(37.7749, -122.4194, 37.7749, -122.4194) == 0.0

    def test_san_francisco_to_los_angeles(self):
        # Reference great-circle distance is about 559 km
        d = haversine_distance(37.7749, -122.4194, 34.0522, -118.2437)
        assert d == pytest.approx(559_100, rel=0.005)

    def test_london_to_paris(self):
        d = haversine_distance(51.5074, -0.1278, 48.8566, 2.3522)
        assert d == pytest.approx(343_500, rel=0.005)

    def test_one_degree_of_latitude(self):
        d = haversine_distance(0.0, 0.0, 1.0, 0.0)
        assert d == pytest.approx(111_195, rel=0.001)

    def test_symmetric(self):
        a = haversine_distance(10.0, 20.0, -5.0, 40.0)
        b = haversine_distance(-5.0, 40.0, 10.0, 20.0)
        assert a == pytest.approx(b)

    def test_across_antimeridian(self):
        d = haversine_distance(0.0, 179.9, 0.0, -179.9)
        assert d == pytest.approx(22_239, rel=0.001)


# ── Bearing ───────────────────────────────────────────────────────────────

class TestBearing:

    def test_cardinal_directions(self):
        assert bearing(0.0, 0.0, 1.0, 0.0) == pytest.approx(0.0, abs=1e-9)
        assert bearing(0.0, 0.0, 0.0, 1.0) == pytest.approx(90.0)
        assert bearing(0.0, 0.0, -1.0, 0.0) == pytest.approx(180.0)
        assert bearing(0.0, 0.0, 0.0, -1.0) == pytest.approx(270.0)

    def test_always_in_range(self):
        rng = random.Random(7)
        for _ in range(200):
            b = bearing(
                rng.uniform(-80, 80), rng.uniform(-180, 180),
                rng.uniform(-80, 80), rng.uniform(-180, 180),
            )
            assert 0.0 <= b < 360.0


# ── Conversions ───────────────────────────────────────────────────────────

class TestConversions:

    def test_latitude_round_trip(self):
        assert degrees_lat_to_meters(meters_to_degrees_lat(500.0)) == pytest.approx(500.0)

    def test_longitude_shrinks_with_latitude(self):
        at_equator = meters_to_degrees_lon(1000.0, 0.0)
        at_sixty = meters_to_degrees_lon(1000.0, 60.0)
        assert at_sixty == pytest.approx(at_equator * 2, rel=1e-6)

    def test_longitude_round_trip(self):
        deg = meters_to_degrees_lon(750.0, 45.0)
        assert degrees_lon_to_meters(deg, 45.0) == pytest.approx(750.0)

    def test_pole_stays_finite(self):
        assert meters_to_degrees_lon(100.0, 90.0) < float("inf")


# ── Boxes ─────────────────────────────────────────────────────────────────

class TestBoundingBox:

    def test_box_contains_center(self):
        min_lat, max_lat, min_lon, max_lon = bounding_box(37.7749, -122.4194, 500.0)
        assert min_lat < 37.7749 < max_lat
        assert min_lon < -122.4194 < max_lon

    def test_box_covers_radius(self):
        min_lat, max_lat, min_lon, max_lon = bounding_box(37.7749, -122.4194, 500.0)
        assert haversine_distance(37.7749, -122.4194, max_lat, -122.4194) >= 495.0
        assert haversine_distance(37.7749, -122.4194, 37.7749, max_lon) >= 495.0

    def test_random_point_inside(self):
        rng = random.Random(3)
        for _ in range(100):
            lat, lon = random_point_in_box(1.0, 1.05, 2.0, 2.05, rng)
            assert 1.0 <= lat < 1.05
            assert 2.0 <= lon < 2.05
