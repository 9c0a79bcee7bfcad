import time
from typing import List

import aiosqlite


class CoinFindRepo:
    """Settlement records for collected coins. ``value_received`` is cents."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def create(self, coin_id: str, finder_id: str, value_received: int) -> dict:
        now = time.time()
        cursor = await self._db.execute(
            "INSERT INTO coin_finds (coin_id, finder_id, value_received, status, found_at) "
            "VALUES (?, ?, ?, 'pending', ?)",
            (coin_id, finder_id, value_received, now),
        )
        return {
            "id": cursor.lastrowid,
            "coin_id": coin_id,
            "finder_id": finder_id,
            "value_received": value_received,
            "status": "pending",
            "found_at": now,
        }

    async def recent_values(self, finder_id: str, limit: int = 10) -> List[int]:
        """Values of the finder's most recent finds, newest first."""
        results = []
        async with self._db.execute(
            "SELECT value_received FROM coin_finds WHERE finder_id = ? "
            "ORDER BY found_at DESC, id DESC LIMIT ?",
            (finder_id, limit),
        ) as cursor:
            async for row in cursor:
                results.append(row[0])
        return results

    async def list_for_finder(self, finder_id: str) -> List[dict]:
        results = []
        async with self._db.execute(
            "SELECT id, coin_id, finder_id, value_received, status, found_at "
            "FROM coin_finds WHERE finder_id = ? ORDER BY found_at DESC, id DESC",
            (finder_id,),
        ) as cursor:
            async for row in cursor:
                results.append({
                    "id": row[0],
                    "coin_id": row[1],
                    "finder_id": row[2],
                    "value_received": row[3],
                    "status": row[4],
                    "found_at": row[5],
                })
        return results

    async def confirm_for_coins(self, finder_id: str, coin_ids: List[str]) -> int:
        if not coin_ids:
            return 0
        placeholders = ",".join("?" for _ in coin_ids)
        cursor = await self._db.execute(
            f"UPDATE coin_finds SET status = 'confirmed' "
            f"WHERE finder_id = ? AND status = 'pending' AND coin_id IN ({placeholders})",
            (finder_id, *coin_ids),
        )
        return cursor.rowcount
