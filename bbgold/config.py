"""
config.py - Game settings.

Values come from the environment (prefix ``BBGOLD_``) or a local ``.env``
file. An instance is built by the entry point and handed to each
component; nothing reads settings from module state.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GameSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BBGOLD_", env_file=".env", extra="ignore")

    # Storage
    db_path: str = "data/bbgold.db"
    busy_timeout_sec: float = 5.0
    log_level: str = "INFO"

    # Grid + distribution
    grid_size_degrees: float = Field(0.05, gt=0)
    min_coins_per_grid: int = Field(3, ge=0)
    system_coin_min: float = 0.10
    system_coin_max: float = 5.00
    recycle_after_hours: float = 24.0

    # Collection
    collection_range_meters: float = 10.0
    nearby_radius_meters: float = 500.0

    # Economy
    daily_gas_rate: float = 0.33
    default_find_limit: float = 1.00
    starter_balance: float = 10.00
    min_hide_value: float = 0.05
    pending_confirmation_hours: float = 24.0
    low_gas_days: int = 5

    @field_validator("system_coin_max")
    @classmethod
    def _max_above_min(cls, v, info):
        low = info.data.get("system_coin_min")
        if low is not None and v < low:
            raise ValueError("system_coin_max must be >= system_coin_min")
        return v
