"""
distribution.py - Coin distribution and recycling.

Keeps a minimum number of visible coins in every cell players are
active in, and clears unclaimed system coins out of cells nobody has
touched for a while. Player-hidden coins are never recycled.

Seeding and recycling run as many short units of work rather than one
long one, so they may briefly over- or under-count against concurrent
collects. That is accepted; counts can never go negative.
"""

import logging
import random
import time
import uuid
from typing import TYPE_CHECKING, List, Optional

from bbgold.geo import RandomSource, random_point_in_box
from bbgold.money import round_cents, to_cents

if TYPE_CHECKING:
    from bbgold.grid import GridIndexer
    from bbgold.storage import StorageManager

logger = logging.getLogger("distribution")

SYSTEM_HIDER_ID = "system"


class DistributionEngine:
    """Seeds system pool coins into cells and recycles stale ones."""

    def __init__(
        self,
        storage: "StorageManager",
        indexer: "GridIndexer",
        min_coins_per_grid: int = 3,
        contribution_range: tuple = (0.10, 5.00),
        recycle_after_sec: float = 24 * 3600,
        rng: Optional[RandomSource] = None,
    ):
        self._storage = storage
        self._indexer = indexer
        self.min_coins_per_grid = min_coins_per_grid
        self.contribution_range = contribution_range
        self.recycle_after_sec = recycle_after_sec
        self.rng = rng if rng is not None else random.Random()

    async def count_visible(self, gid: str) -> int:
        b = self._indexer.bounds(gid)
        return await self._storage.coins.count_visible_in_cell(
            b["min_lat"], b["max_lat"], b["min_lon"], b["max_lon"]
        )

    async def ensure_grid_has_coins(self, latitude: float, longitude: float) -> int:
        """Top the cell containing the point up to the minimum. Returns coins seeded."""
        gid = self._indexer.grid_id(latitude, longitude)
        current = await self.count_visible(gid)
        needed = max(self.min_coins_per_grid - current, 0)

        for _ in range(needed):
            await self.place_system_coin(gid)

        if needed:
            logger.info("Seeded %d coins in grid %s (had %d)", needed, gid, current)
        return needed

    async def place_system_coin(self, gid: str) -> dict:
        """Create one visible pool coin at a random spot in the cell."""
        b = self._indexer.bounds(gid)
        lat, lon = random_point_in_box(b["min_lat"], b["max_lat"], b["min_lon"], b["max_lon"], self.rng)
        low, high = self.contribution_range
        contribution = round_cents(low + self.rng.random() * (high - low))

        async with self._storage.atomic() as uow:
            coin = await uow.coins.create(
                coin_id=str(uuid.uuid4()),
                coin_type="pool",
                value=None,
                contribution=to_cents(contribution),
                latitude=lat,
                longitude=lon,
                hider_id=SYSTEM_HIDER_ID,
            )
        logger.debug("Placed system coin %s in %s ($%.2f)", coin["coin_id"], gid, contribution)
        return coin

    async def recycle_stale_coins(self, now: Optional[float] = None) -> int:
        """Delete visible system coins in cells idle past the window. Returns coins removed."""
        now = now if now is not None else time.time()
        cutoff = now - self.recycle_after_sec
        stale: List[dict] = await self._storage.grids.list_inactive_since(cutoff)

        recycled = 0
        for grid in stale:
            b = self._indexer.bounds(grid["grid_id"])
            async with self._storage.atomic() as uow:
                # Re-check inside the unit: a request may have touched the cell since
                fresh = await uow.grids.get(grid["grid_id"])
                if fresh is None or fresh["last_activity"] >= cutoff:
                    continue
                recycled += await uow.coins.delete_visible_by_hider_in_cell(
                    SYSTEM_HIDER_ID, b["min_lat"], b["max_lat"], b["min_lon"], b["max_lon"]
                )

        logger.info("Recycled %d stale coins from %d idle grids", recycled, len(stale))
        return recycled
