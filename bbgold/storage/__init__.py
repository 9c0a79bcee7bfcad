from ._schema import SCHEMA_VERSION, SCHEMA_SQL
from .coins import CoinRepo
from .grids import GridRepo
from .wallets import WalletRepo
from .stats import StatsRepo
from .transactions import TransactionRepo
from .finds import CoinFindRepo
from .manager import StorageManager, UnitOfWork

__all__ = [
    "SCHEMA_VERSION",
    "SCHEMA_SQL",
    "CoinRepo",
    "GridRepo",
    "WalletRepo",
    "StatsRepo",
    "TransactionRepo",
    "CoinFindRepo",
    "StorageManager",
    "UnitOfWork",
]
