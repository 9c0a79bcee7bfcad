import time
from typing import List, Optional

import aiosqlite

_COLUMNS = (
    "user_id, total_balance, gas_tank, parked, pending, last_gas_charge, "
    "created_at, updated_at"
)


def _row_to_wallet(row) -> dict:
    return {
        "user_id": row[0],
        "total_balance": row[1],
        "gas_tank": row[2],
        "parked": row[3],
        "pending": row[4],
        "last_gas_charge": row[5],
        "created_at": row[6],
        "updated_at": row[7],
    }


class WalletRepo:
    """Wallet rows. All balances are integer cents.

    The table CHECK keeps total_balance equal to the sum of the three
    buckets, so ``apply`` rejects any delta set that does not balance.
    """

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def create(self, user_id: str, starting_gas: int = 0) -> Optional[dict]:
        now = time.time()
        await self._db.execute(
            "INSERT OR IGNORE INTO wallets (user_id, total_balance, gas_tank, parked, pending, "
            "created_at, updated_at) VALUES (?, ?, ?, 0, 0, ?, ?)",
            (user_id, starting_gas, starting_gas, now, now),
        )
        return await self.get(user_id)

    async def get(self, user_id: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_COLUMNS} FROM wallets WHERE user_id = ?",
            (user_id,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_wallet(row)

    async def apply(
        self,
        user_id: str,
        gas_tank: int = 0,
        parked: int = 0,
        pending: int = 0,
        total_balance: int = 0,
        last_gas_charge: Optional[float] = None,
    ) -> dict:
        """Add signed cent deltas to each bucket and return the new row."""
        now = time.time()
        await self._db.execute(
            "UPDATE wallets SET gas_tank = gas_tank + ?, parked = parked + ?, "
            "pending = pending + ?, total_balance = total_balance + ?, "
            "last_gas_charge = COALESCE(?, last_gas_charge), updated_at = ? "
            "WHERE user_id = ?",
            (gas_tank, parked, pending, total_balance, last_gas_charge, now, user_id),
        )
        return await self.get(user_id)

    async def list_user_ids(self) -> List[str]:
        results = []
        async with self._db.execute("SELECT user_id FROM wallets ORDER BY user_id") as cursor:
            async for row in cursor:
                results.append(row[0])
        return results
