import logging
import time
from typing import Awaitable, Callable, Dict

from ._schema import SCHEMA_SQL, SCHEMA_VERSION

logger = logging.getLogger("storage")


async def _create_base_schema(db):
    await db.executescript(SCHEMA_SQL)


# version -> step that brings a v(version - 1) database up to it.
# New steps are appended here together with a SCHEMA_VERSION bump.
MIGRATIONS: Dict[int, Callable[..., Awaitable[None]]] = {
    1: _create_base_schema,
}


async def _stored_version(db) -> int:
    async with db.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'schema_version'"
    ) as cursor:
        if await cursor.fetchone() is None:
            return 0
    async with db.execute("SELECT MAX(version) FROM schema_version") as cursor:
        row = await cursor.fetchone()
    return row[0] if row and row[0] is not None else 0


async def run_migrations(db, log=None) -> int:
    """Apply every pending step in order and return the resulting version."""
    log = log or logger
    version = await _stored_version(db)
    if version >= SCHEMA_VERSION:
        log.debug("Schema at v%d, nothing to apply", version)
        return version

    for target in range(version + 1, SCHEMA_VERSION + 1):
        log.info("Applying schema step v%d", target)
        await MIGRATIONS[target](db)
        await db.execute(
            "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
            (target, time.time()),
        )
    await db.commit()
    log.info("Schema upgraded v%d -> v%d", version, SCHEMA_VERSION)
    return SCHEMA_VERSION
