"""
test_grid.py - Unit tests for the grid indexer.

Cell ids, bounds, centers, and the half-open boundary rule.
"""

import random

import pytest

from bbgold.grid import GridIndexer, grid_bounds, grid_center, grid_id, parse_grid_id


class TestGridId:

    def test_known_cell(self):
        assert grid_id(37.7749, -122.4194) == "37.7500_-122.4500"

    def test_stable_within_cell(self):
        gid = grid_id(37.7749, -122.4194)
        assert grid_id(37.7501, -122.4499) == gid
        assert grid_id(37.7999, -122.4001) == gid

    def test_negative_coordinates_floor_down(self):
        assert grid_id(-0.01, -0.01) == "-0.0500_-0.0500"
        assert grid_id(-33.8688, 151.2093) == "-33.9000_151.2000"

    def test_origin(self):
        assert grid_id(0.0, 0.0) == "0.0000_0.0000"

    def test_boundary_belongs_to_upper_cell(self):
        assert grid_id(0.15, 0.0) == "0.1500_0.0000"
        assert grid_id(0.1499999, 0.0) == "0.1000_0.0000"

    def test_custom_size(self):
        assert grid_id(10.26, 20.74, size=0.5) == "10.0000_20.5000"

    def test_parse_round_trip(self):
        assert parse_grid_id("37.7500_-122.4500") == (37.75, -122.45)

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_grid_id("not-a-grid")


class TestBoundsAndCenter:

    def test_bounds(self):
        b = grid_bounds("37.7500_-122.4500")
        assert b["min_lat"] == pytest.approx(37.75)
        assert b["max_lat"] == pytest.approx(37.80)
        assert b["min_lon"] == pytest.approx(-122.45)
        assert b["max_lon"] == pytest.approx(-122.40)

    def test_center(self):
        lat, lon = grid_center("37.7500_-122.4500")
        assert lat == pytest.approx(37.775)
        assert lon == pytest.approx(-122.425)

    def test_center_maps_back_to_cell(self):
        rng = random.Random(11)
        for _ in range(100):
            lat, lon = rng.uniform(-85, 85), rng.uniform(-179, 179)
            gid = grid_id(lat, lon)
            c_lat, c_lon = grid_center(gid)
            assert grid_id(c_lat, c_lon) == gid


class TestGridIndexer:

    def test_contains_is_half_open(self):
        idx = GridIndexer(0.05)
        gid = idx.grid_id(0.12, 0.12)
        assert idx.contains(gid, 0.10, 0.10)
        assert idx.contains(gid, 0.1499, 0.1499)
        assert not idx.contains(gid, 0.15, 0.12)
        assert not idx.contains(gid, 0.12, 0.15)

    def test_point_is_in_its_own_cell(self):
        idx = GridIndexer()
        rng = random.Random(5)
        for _ in range(100):
            lat, lon = rng.uniform(-85, 85), rng.uniform(-179, 179)
            assert idx.contains(idx.grid_id(lat, lon), lat, lon)

    def test_uses_configured_size(self):
        idx = GridIndexer(0.1)
        assert idx.grid_id(0.15, 0.15) == "0.1000_0.1000"
        b = idx.bounds("0.1000_0.1000")
        assert b["max_lat"] == pytest.approx(0.2)
