import time
from typing import List, Optional

import aiosqlite

_COLUMNS = (
    "coin_id, coin_type, value, contribution, latitude, longitude, "
    "hider_id, status, created_at, updated_at"
)


def _row_to_coin(row) -> dict:
    return {
        "coin_id": row[0],
        "coin_type": row[1],
        "value": row[2],
        "contribution": row[3],
        "latitude": row[4],
        "longitude": row[5],
        "hider_id": row[6],
        "status": row[7],
        "created_at": row[8],
        "updated_at": row[9],
    }


class CoinRepo:
    """CRUD operations for the coins table. Money columns are cents."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def create(
        self,
        coin_id: str,
        coin_type: str,
        value: Optional[int],
        contribution: int,
        latitude: float,
        longitude: float,
        hider_id: str,
    ) -> dict:
        now = time.time()
        await self._db.execute(
            "INSERT INTO coins (coin_id, coin_type, value, contribution, latitude, longitude, "
            "hider_id, status, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, 'visible', ?, ?)",
            (coin_id, coin_type, value, contribution, latitude, longitude, hider_id, now, now),
        )
        return await self.get(coin_id)

    async def get(self, coin_id: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_COLUMNS} FROM coins WHERE coin_id = ?",
            (coin_id,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_coin(row)

    async def compare_and_set_status(
        self, coin_id: str, expected: str, target: str, value: Optional[int] = None
    ) -> bool:
        """Flip status only if it still equals ``expected``. Returns False if not."""
        now = time.time()
        cursor = await self._db.execute(
            "UPDATE coins SET status = ?, value = COALESCE(?, value), updated_at = ? "
            "WHERE coin_id = ? AND status = ?",
            (target, value, now, coin_id, expected),
        )
        return cursor.rowcount == 1

    async def list_visible_in_box(
        self, min_lat: float, max_lat: float, min_lon: float, max_lon: float
    ) -> List[dict]:
        """Visible coins inside a closed box."""
        results = []
        async with self._db.execute(
            f"SELECT {_COLUMNS} FROM coins WHERE status = 'visible' "
            "AND latitude BETWEEN ? AND ? AND longitude BETWEEN ? AND ?",
            (min_lat, max_lat, min_lon, max_lon),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_coin(row))
        return results

    async def count_visible_in_cell(
        self, min_lat: float, max_lat: float, min_lon: float, max_lon: float
    ) -> int:
        """Visible coins inside a half-open grid cell."""
        async with self._db.execute(
            "SELECT COUNT(*) FROM coins WHERE status = 'visible' "
            "AND latitude >= ? AND latitude < ? AND longitude >= ? AND longitude < ?",
            (min_lat, max_lat, min_lon, max_lon),
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def delete_visible_by_hider_in_cell(
        self, hider_id: str, min_lat: float, max_lat: float, min_lon: float, max_lon: float
    ) -> int:
        cursor = await self._db.execute(
            "DELETE FROM coins WHERE hider_id = ? AND status = 'visible' "
            "AND latitude >= ? AND latitude < ? AND longitude >= ? AND longitude < ?",
            (hider_id, min_lat, max_lat, min_lon, max_lon),
        )
        return max(cursor.rowcount, 0)

    async def list_by_hider(self, hider_id: str, status: Optional[str] = None) -> List[dict]:
        query = f"SELECT {_COLUMNS} FROM coins WHERE hider_id = ?"
        params: tuple = (hider_id,)
        if status is not None:
            query += " AND status = ?"
            params = (hider_id, status)
        query += " ORDER BY created_at DESC"
        results = []
        async with self._db.execute(query, params) as cursor:
            async for row in cursor:
                results.append(_row_to_coin(row))
        return results
