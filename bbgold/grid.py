"""
grid.py - Grid indexer.

Maps coordinates onto fixed-size latitude/longitude cells (default 0.05
degrees, about 5.5 km). A cell id is the floored south-west corner of
the cell, formatted as ``"<lat>_<lon>"`` with four decimals. Bounds are
half-open: a coordinate belongs to [min, max) on both axes.

Each coordinate-touching request stamps the cell's ``last_activity``;
that stamp is the only signal the recycler uses to tell live cells from
abandoned ones.
"""

import logging
import math
import time
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Optional, Tuple

if TYPE_CHECKING:
    from bbgold.storage import GridRepo

logger = logging.getLogger("grid")

GRID_SIZE_DEGREES = 0.05


def _cell_index(coordinate: float, size: float) -> int:
    # Decimal keeps values such as 0.15 / 0.05 from landing in the cell below
    return math.floor(Decimal(str(coordinate)) / Decimal(str(size)))


def _corner(index: int, size: float) -> float:
    return float(Decimal(index) * Decimal(str(size)))


def grid_id(latitude: float, longitude: float, size: float = GRID_SIZE_DEGREES) -> str:
    """Stable cell id for a coordinate."""
    lat0 = _corner(_cell_index(latitude, size), size)
    lon0 = _corner(_cell_index(longitude, size), size)
    return f"{lat0:.4f}_{lon0:.4f}"


def parse_grid_id(gid: str) -> Tuple[float, float]:
    """Return the (lat, lon) south-west corner encoded in a cell id."""
    try:
        lat_str, lon_str = gid.split("_")
        return float(lat_str), float(lon_str)
    except ValueError:
        raise ValueError(f"Malformed grid id: {gid!r}")


def grid_bounds(gid: str, size: float = GRID_SIZE_DEGREES) -> Dict[str, float]:
    lat0, lon0 = parse_grid_id(gid)
    return {
        "min_lat": lat0,
        "max_lat": float(Decimal(str(lat0)) + Decimal(str(size))),
        "min_lon": lon0,
        "max_lon": float(Decimal(str(lon0)) + Decimal(str(size))),
    }


def grid_center(gid: str, size: float = GRID_SIZE_DEGREES) -> Tuple[float, float]:
    lat0, lon0 = parse_grid_id(gid)
    half = Decimal(str(size)) / 2
    return float(Decimal(str(lat0)) + half), float(Decimal(str(lon0)) + half)


class GridIndexer:
    """Cell math bound to one configured size, plus activity stamping."""

    def __init__(self, size: float = GRID_SIZE_DEGREES):
        self.size = size

    def grid_id(self, latitude: float, longitude: float) -> str:
        return grid_id(latitude, longitude, self.size)

    def bounds(self, gid: str) -> Dict[str, float]:
        return grid_bounds(gid, self.size)

    def center(self, gid: str) -> Tuple[float, float]:
        return grid_center(gid, self.size)

    def contains(self, gid: str, latitude: float, longitude: float) -> bool:
        b = self.bounds(gid)
        return b["min_lat"] <= latitude < b["max_lat"] and b["min_lon"] <= longitude < b["max_lon"]

    async def get_or_create_grid(
        self, grids: "GridRepo", latitude: float, longitude: float, now: Optional[float] = None
    ) -> dict:
        """Upsert the cell for a coordinate and stamp its activity.

        ``grids`` must be bound to an open unit of work; the write is
        committed with it.
        """
        gid = self.grid_id(latitude, longitude)
        center_lat, center_lon = self.center(gid)
        grid = await grids.upsert(gid, center_lat, center_lon, now if now is not None else time.time())
        logger.debug("Touched grid %s", gid)
        return grid
