import time
from typing import Optional

import aiosqlite

_COLUMNS = (
    "user_id, find_limit, total_found_count, total_found_value, "
    "total_hidden_count, total_hidden_value, highest_hidden_value, updated_at"
)


def _row_to_stats(row) -> dict:
    return {
        "user_id": row[0],
        "find_limit": row[1],
        "total_found_count": row[2],
        "total_found_value": row[3],
        "total_hidden_count": row[4],
        "total_hidden_value": row[5],
        "highest_hidden_value": row[6],
        "updated_at": row[7],
    }


class StatsRepo:
    """Per-user aggregates. Money columns are cents."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def create(self, user_id: str, find_limit: int) -> Optional[dict]:
        await self._db.execute(
            "INSERT OR IGNORE INTO user_stats (user_id, find_limit, updated_at) VALUES (?, ?, ?)",
            (user_id, find_limit, time.time()),
        )
        return await self.get(user_id)

    async def get(self, user_id: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_COLUMNS} FROM user_stats WHERE user_id = ?",
            (user_id,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_stats(row)

    async def record_hide(self, user_id: str, value: int) -> dict:
        """Count a hidden coin; raise highest value and find limit when exceeded.

        The find limit only ever grows.
        """
        await self._db.execute(
            "UPDATE user_stats SET "
            "find_limit = CASE WHEN ? > highest_hidden_value THEN MAX(find_limit, ?) ELSE find_limit END, "
            "highest_hidden_value = MAX(highest_hidden_value, ?), "
            "total_hidden_count = total_hidden_count + 1, "
            "total_hidden_value = total_hidden_value + ?, "
            "updated_at = ? WHERE user_id = ?",
            (value, value, value, value, time.time(), user_id),
        )
        return await self.get(user_id)

    async def record_find(self, user_id: str, value: int) -> dict:
        await self._db.execute(
            "UPDATE user_stats SET total_found_count = total_found_count + 1, "
            "total_found_value = total_found_value + ?, updated_at = ? WHERE user_id = ?",
            (value, time.time(), user_id),
        )
        return await self.get(user_id)
