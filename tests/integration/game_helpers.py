"""Constants and raw-SQL checks shared by the integration tests."""

from datetime import datetime, timezone

# ── Constants ─────────────────────────────────────────────────────────────

# Union Square, San Francisco
HERE_LAT = 37.7879
HERE_LON = -122.4075

# ~1.1 km north of HERE, well outside collection range
FAR_LAT = HERE_LAT + 0.01

# Noon UTC, so +/- a few hours stays on the same calendar day
NOON_UTC = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc).timestamp()
DAY_SEC = 24 * 3600


# ── Raw checks ────────────────────────────────────────────────────────────

async def wallet_row(storage, user_id: str) -> dict:
    """Raw wallet row in cents, read on the manager's connection."""
    async with storage.connection.execute(
        "SELECT total_balance, gas_tank, parked, pending FROM wallets WHERE user_id = ?",
        (user_id,),
    ) as cursor:
        row = await cursor.fetchone()
    return {"total_balance": row[0], "gas_tank": row[1], "parked": row[2], "pending": row[3]}


async def unbalanced_wallets(storage) -> int:
    async with storage.connection.execute(
        "SELECT COUNT(*) FROM wallets WHERE total_balance != gas_tank + parked + pending "
        "OR gas_tank < 0 OR parked < 0 OR pending < 0"
    ) as cursor:
        row = await cursor.fetchone()
    return row[0]


async def count_rows(storage, table: str, where: str = "1=1", params: tuple = ()) -> int:
    async with storage.connection.execute(f"SELECT COUNT(*) FROM {table} WHERE {where}", params) as cursor:
        row = await cursor.fetchone()
    return row[0]
