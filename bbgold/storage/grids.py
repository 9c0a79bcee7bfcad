from typing import List, Optional

import aiosqlite


def _row_to_grid(row) -> dict:
    return {
        "grid_id": row[0],
        "center_lat": row[1],
        "center_lon": row[2],
        "last_activity": row[3],
        "created_at": row[4],
    }


class GridRepo:
    """Upsert + staleness queries for the grids table."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def upsert(self, grid_id: str, center_lat: float, center_lon: float, now: float) -> dict:
        await self._db.execute(
            "INSERT INTO grids (grid_id, center_lat, center_lon, last_activity, created_at) "
            "VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(center_lat, center_lon) DO UPDATE SET "
            "last_activity = MAX(grids.last_activity, excluded.last_activity)",
            (grid_id, center_lat, center_lon, now, now),
        )
        return await self.get(grid_id)

    async def get(self, grid_id: str) -> Optional[dict]:
        async with self._db.execute(
            "SELECT grid_id, center_lat, center_lon, last_activity, created_at "
            "FROM grids WHERE grid_id = ?",
            (grid_id,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_grid(row)

    async def list_inactive_since(self, cutoff: float) -> List[dict]:
        results = []
        async with self._db.execute(
            "SELECT grid_id, center_lat, center_lon, last_activity, created_at "
            "FROM grids WHERE last_activity < ? ORDER BY last_activity",
            (cutoff,),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_grid(row))
        return results
