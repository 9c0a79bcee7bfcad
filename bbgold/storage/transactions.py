import time
from typing import List, Optional

import aiosqlite

_COLUMNS = "id, user_id, type, amount, status, coin_id, description, created_at"


def _row_to_tx(row) -> dict:
    return {
        "id": row[0],
        "user_id": row[1],
        "type": row[2],
        "amount": row[3],
        "status": row[4],
        "coin_id": row[5],
        "description": row[6],
        "created_at": row[7],
    }


class TransactionRepo:
    """Append-only ledger rows. ``amount`` is signed cents."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def record(
        self,
        user_id: str,
        tx_type: str,
        amount: int,
        status: str = "confirmed",
        coin_id: Optional[str] = None,
        description: str = "",
        created_at: Optional[float] = None,
    ) -> int:
        cursor = await self._db.execute(
            "INSERT INTO transactions (user_id, type, amount, status, coin_id, description, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (user_id, tx_type, amount, status, coin_id, description,
             created_at if created_at is not None else time.time()),
        )
        return cursor.lastrowid

    async def list_for_user(self, user_id: str, limit: Optional[int] = None, offset: int = 0) -> List[dict]:
        query = (f"SELECT {_COLUMNS} FROM transactions WHERE user_id = ? "
                 "ORDER BY created_at DESC, id DESC")
        params: tuple = (user_id,)
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params = (user_id, limit, offset)
        results = []
        async with self._db.execute(query, params) as cursor:
            async for row in cursor:
                results.append(_row_to_tx(row))
        return results

    async def count_for_user(self, user_id: str) -> int:
        async with self._db.execute(
            "SELECT COUNT(*) FROM transactions WHERE user_id = ?", (user_id,)
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def list_pending_before(self, user_id: str, cutoff: float) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_COLUMNS} FROM transactions "
            "WHERE user_id = ? AND status = 'pending' AND created_at < ? ORDER BY id",
            (user_id, cutoff),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_tx(row))
        return results

    async def confirm(self, tx_ids: List[int]) -> int:
        """Flip pending rows to confirmed; the only mutation a ledger row allows."""
        if not tx_ids:
            return 0
        placeholders = ",".join("?" for _ in tx_ids)
        cursor = await self._db.execute(
            f"UPDATE transactions SET status = 'confirmed' "
            f"WHERE status = 'pending' AND id IN ({placeholders})",
            tuple(tx_ids),
        )
        return cursor.rowcount
