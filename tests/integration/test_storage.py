"""
test_storage.py - StorageManager, migrations and unit-of-work semantics.
"""

import pytest

from bbgold.errors import NotFound, SystemFailure
from bbgold.storage import SCHEMA_VERSION, StorageManager
from bbgold.storage._migrate import run_migrations

from game_helpers import count_rows, wallet_row

pytestmark = pytest.mark.asyncio


async def test_memory_database_rejected():
    with pytest.raises(ValueError):
        StorageManager(":memory:")


async def test_schema_version_recorded(storage):
    async with storage.connection.execute("SELECT MAX(version) FROM schema_version") as cursor:
        row = await cursor.fetchone()
    assert row[0] == SCHEMA_VERSION


async def test_migrations_are_idempotent(storage):
    assert await run_migrations(storage.connection) == SCHEMA_VERSION
    assert await count_rows(storage, "schema_version") == 1


async def test_reopen_keeps_data(tmp_path):
    first = StorageManager(str(tmp_path / "reopen.db"))
    await first.initialize()
    async with first.atomic() as uow:
        await uow.wallets.create("u1", starting_gas=250)
    await first.close()

    second = StorageManager(first.db_path)
    await second.initialize()
    try:
        assert (await second.wallets.get("u1"))["gas_tank"] == 250
    finally:
        await second.close()


async def test_commit_on_success(storage):
    async with storage.atomic() as uow:
        await uow.wallets.create("u1", starting_gas=500)
    assert (await wallet_row(storage, "u1"))["gas_tank"] == 500


async def test_domain_error_rolls_back(storage):
    with pytest.raises(NotFound):
        async with storage.atomic() as uow:
            await uow.wallets.create("u1", starting_gas=500)
            raise NotFound("boom")
    assert await storage.wallets.get("u1") is None


async def test_unbalanced_update_is_system_failure(storage):
    async with storage.atomic() as uow:
        await uow.wallets.create("u1", starting_gas=500)

    with pytest.raises(SystemFailure):
        async with storage.atomic() as uow:
            await uow.wallets.apply("u1", gas_tank=-100)

    assert await wallet_row(storage, "u1") == {
        "total_balance": 500, "gas_tank": 500, "parked": 0, "pending": 0,
    }


async def test_negative_bucket_is_system_failure(storage):
    async with storage.atomic() as uow:
        await uow.wallets.create("u1", starting_gas=100)

    with pytest.raises(SystemFailure):
        async with storage.atomic() as uow:
            await uow.wallets.apply("u1", gas_tank=-200, total_balance=-200)


async def test_coin_settles_once(storage):
    async with storage.atomic() as uow:
        await uow.coins.create("c1", "fixed", 100, 100, 1.0, 1.0, "hider")
        await uow.finds.create("c1", "finder", 100)

    with pytest.raises(SystemFailure):
        async with storage.atomic() as uow:
            await uow.finds.create("c1", "someone-else", 100)
    assert await count_rows(storage, "coin_finds") == 1


async def test_compare_and_set(storage):
    async with storage.atomic() as uow:
        await uow.coins.create("c1", "pool", None, 300, 1.0, 1.0, "hider")
        assert await uow.coins.compare_and_set_status("c1", "visible", "collected", value=120) is True
        assert await uow.coins.compare_and_set_status("c1", "visible", "deleted") is False
    coin = await storage.coins.get("c1")
    assert coin["status"] == "collected"
    assert coin["value"] == 120
