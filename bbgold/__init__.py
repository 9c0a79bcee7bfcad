"""
Black Bart's Gold - Game Core Package

Economic and geospatial engine for the treasure hunt: grid indexing,
coin distribution and recycling, collection validation, pool-value
resolution and the multi-bucket wallet ledger. Backed by SQLite.
"""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "config",
    "distribution",
    "errors",
    "geo",
    "grid",
    "ledger",
    "lifecycle",
    "models",
    "money",
    "service",
    "storage",
    "validator",
    "valuation",
]
