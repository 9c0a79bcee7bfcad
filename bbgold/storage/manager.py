import contextlib
import logging
from typing import AsyncIterator, Optional

try:
    import aiosqlite
except ImportError:
    raise ImportError(
        "aiosqlite is required for the storage layer. "
        "Install with: pip install aiosqlite"
    )

from bbgold.errors import SystemFailure

from ._schema import SCHEMA_VERSION
from ._migrate import run_migrations
from .coins import CoinRepo
from .finds import CoinFindRepo
from .grids import GridRepo
from .stats import StatsRepo
from .transactions import TransactionRepo
from .wallets import WalletRepo

logger = logging.getLogger("storage")


class UnitOfWork:
    """Repos bound to one connection that is inside ``BEGIN IMMEDIATE``."""

    def __init__(self, db: aiosqlite.Connection):
        self.connection = db
        self.coins = CoinRepo(db)
        self.grids = GridRepo(db)
        self.wallets = WalletRepo(db)
        self.stats = StatsRepo(db)
        self.transactions = TransactionRepo(db)
        self.finds = CoinFindRepo(db)


class StorageManager:
    """Top-level manager: opens the database, runs migrations, exposes repos.

    The repos on the manager itself are for reads. Every write goes
    through ``atomic()``, which opens its own connection so concurrent
    units are serialized by SQLite rather than by in-process locks.
    """

    def __init__(self, db_path: str = "bbgold.db", busy_timeout: float = 5.0):
        if db_path == ":memory:":
            raise ValueError("StorageManager needs a file path; units of work open their own connections")
        self.db_path = db_path
        self.busy_timeout = busy_timeout
        self._db: Optional[aiosqlite.Connection] = None
        self.coins: Optional[CoinRepo] = None
        self.grids: Optional[GridRepo] = None
        self.wallets: Optional[WalletRepo] = None
        self.stats: Optional[StatsRepo] = None
        self.transactions: Optional[TransactionRepo] = None
        self.finds: Optional[CoinFindRepo] = None

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("StorageManager is not initialized")
        return self._db

    async def initialize(self):
        self._db = await aiosqlite.connect(self.db_path, timeout=self.busy_timeout, isolation_level=None)
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("PRAGMA foreign_keys=ON")
        await run_migrations(self._db, logger)

        self.coins = CoinRepo(self._db)
        self.grids = GridRepo(self._db)
        self.wallets = WalletRepo(self._db)
        self.stats = StatsRepo(self._db)
        self.transactions = TransactionRepo(self._db)
        self.finds = CoinFindRepo(self._db)

        logger.info("Storage initialized: %s (schema v%d)", self.db_path, SCHEMA_VERSION)

    async def close(self):
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Storage closed")

    @contextlib.asynccontextmanager
    async def atomic(self) -> AsyncIterator[UnitOfWork]:
        """Run a block as one IMMEDIATE transaction.

        Commits on normal exit. Any exception rolls everything back; store
        errors surface as SystemFailure, domain errors pass through as is.
        """
        try:
            db = await aiosqlite.connect(self.db_path, timeout=self.busy_timeout, isolation_level=None)
        except aiosqlite.Error as exc:
            logger.exception("Could not open a connection to %s", self.db_path)
            raise SystemFailure("Could not open the store") from exc

        try:
            await db.execute("PRAGMA foreign_keys=ON")
            await db.execute("BEGIN IMMEDIATE")
            try:
                yield UnitOfWork(db)
            except BaseException:
                try:
                    await db.execute("ROLLBACK")
                except aiosqlite.Error:
                    logger.warning("Rollback failed; the connection is closed without commit")
                raise
            await db.execute("COMMIT")
        except aiosqlite.Error as exc:
            logger.exception("Unit of work aborted")
            raise SystemFailure("The operation was aborted by the store") from exc
        finally:
            await db.close()
