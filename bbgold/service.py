"""
service.py - Game service facade.

Wires storage, grid indexer, distribution engine, validator, value
resolver and wallet ledger together, and exposes the operations an
outer layer (HTTP handlers, a scheduler) calls. The caller supplies a
trusted user id; no authentication happens here.

Usage:
    service = GameService(GameSettings(db_path="data/bbgold.db"))
    await service.start()
    coins = await service.nearby_coins(37.7749, -122.4194, user_id="u1")
    await service.stop()
"""

import logging
import os
import time
from typing import List, Optional

from bbgold.config import GameSettings
from bbgold.distribution import DistributionEngine
from bbgold.errors import NotFound, ValidationFailure
from bbgold.geo import RandomSource, bearing, bounding_box, haversine_distance
from bbgold.grid import GridIndexer
from bbgold.ledger import TX_MONEY_FIELDS, WalletLedger, coin_view, stats_view
from bbgold.lifecycle import CoinStatus
from bbgold.models import CollectCheck, NearbyRequest, Position, parse
from bbgold.money import as_dollars, to_cents, to_dollars
from bbgold.storage import StorageManager
from bbgold.validator import CollectionValidator
from bbgold.valuation import COLD_STREAK_WINDOW, ValueResolver

logger = logging.getLogger("service")


class GameService:
    """Entry point for every core operation."""

    def __init__(
        self,
        settings: GameSettings,
        storage: Optional[StorageManager] = None,
        rng: Optional[RandomSource] = None,
    ):
        self.settings = settings
        self.storage = storage or StorageManager(settings.db_path, busy_timeout=settings.busy_timeout_sec)
        self.indexer = GridIndexer(settings.grid_size_degrees)
        self.validator = CollectionValidator(
            collection_range_meters=settings.collection_range_meters,
            default_find_limit=to_cents(settings.default_find_limit),
        )
        self.resolver = ValueResolver(rng)
        self.distribution = DistributionEngine(
            self.storage,
            self.indexer,
            min_coins_per_grid=settings.min_coins_per_grid,
            contribution_range=(settings.system_coin_min, settings.system_coin_max),
            recycle_after_sec=settings.recycle_after_hours * 3600,
            rng=rng,
        )
        self.ledger = WalletLedger(self.storage, settings, self.indexer, self.validator, self.resolver)

    async def start(self):
        # Ensure data directory exists
        db_dir = os.path.dirname(self.storage.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        await self.storage.initialize()
        logger.info("Game service ready (grid=%.4f deg, min coins=%d)",
                    self.settings.grid_size_degrees, self.settings.min_coins_per_grid)

    async def stop(self):
        await self.storage.close()

    # -------------------------------------------------------------------
    # Map
    # -------------------------------------------------------------------

    async def nearby_coins(
        self,
        latitude: float,
        longitude: float,
        radius_meters: Optional[float] = None,
        user_id: Optional[str] = None,
    ) -> List[dict]:
        """Visible coins within the radius, after touching and topping up the cell.

        Each coin carries ``distance_m``, ``bearing``, ``is_mine`` and
        ``is_locked`` (a fixed coin worth more than the caller's find limit).
        """
        req = parse(
            NearbyRequest,
            latitude=latitude,
            longitude=longitude,
            radius_meters=radius_meters if radius_meters is not None else self.settings.nearby_radius_meters,
        )
        async with self.storage.atomic() as uow:
            await self.indexer.get_or_create_grid(uow.grids, req.latitude, req.longitude)
        await self.distribution.ensure_grid_has_coins(req.latitude, req.longitude)

        find_limit = self.validator.default_find_limit
        if user_id is not None:
            stats = await self.storage.stats.get(user_id)
            if stats is not None:
                find_limit = stats["find_limit"]

        min_lat, max_lat, min_lon, max_lon = bounding_box(req.latitude, req.longitude, req.radius_meters)
        candidates = await self.storage.coins.list_visible_in_box(min_lat, max_lat, min_lon, max_lon)

        results = []
        for coin in candidates:
            distance = haversine_distance(req.latitude, req.longitude, coin["latitude"], coin["longitude"])
            if distance > req.radius_meters:
                continue
            view = coin_view(coin)
            view["distance_m"] = round(distance, 2)
            view["bearing"] = round(bearing(req.latitude, req.longitude, coin["latitude"], coin["longitude"]), 1)
            view["is_mine"] = user_id is not None and coin["hider_id"] == user_id
            view["is_locked"] = coin["coin_type"] == "fixed" and coin["value"] > find_limit
            results.append(view)

        results.sort(key=lambda c: c["distance_m"])
        return results

    async def get_coin(self, coin_id: str) -> dict:
        coin = await self.storage.coins.get(coin_id)
        if coin is None:
            raise NotFound("Coin not found")
        return coin_view(coin)

    async def can_collect(self, user_id: str, coin_id: str, latitude: float, longitude: float) -> CollectCheck:
        """Run the collection checks without changing anything."""
        pos = parse(Position, latitude=latitude, longitude=longitude)
        coin = await self.storage.coins.get(coin_id)
        wallet = await self.storage.wallets.get(user_id)
        stats = await self.storage.stats.get(user_id)
        return self.validator.check(coin, wallet, stats, pos.latitude, pos.longitude)

    async def preview_pool_value(self, user_id: str, coin_id: str) -> dict:
        """Payout range the caller could get from a pool coin right now."""
        coin = await self.storage.coins.get(coin_id)
        if coin is None:
            raise NotFound("Coin not found")
        if coin["coin_type"] != "pool":
            raise ValidationFailure("Only pool coins have a variable value")
        stats = await self.storage.stats.get(user_id)
        if stats is None:
            raise NotFound("User stats not found")
        recent = await self.storage.finds.recent_values(user_id, limit=COLD_STREAK_WINDOW)
        low, high = self.resolver.payout_range(
            to_dollars(coin["contribution"]),
            [to_dollars(v) for v in recent],
            stats["total_found_count"],
        )
        return {"coin_id": coin_id, "min_value": low, "max_value": high}

    # -------------------------------------------------------------------
    # Ledger operations
    # -------------------------------------------------------------------

    async def open_account(self, user_id: str) -> dict:
        return await self.ledger.open_account(user_id)

    async def hide_coin(self, user_id: str, coin_type: str, value, latitude: float, longitude: float) -> dict:
        return await self.ledger.hide(user_id, coin_type, value, latitude, longitude)

    async def collect_coin(self, user_id: str, coin_id: str, latitude: float, longitude: float) -> dict:
        return await self.ledger.collect(user_id, coin_id, latitude, longitude)

    async def retrieve_coin(self, user_id: str, coin_id: str) -> dict:
        return await self.ledger.retrieve(user_id, coin_id)

    async def park(self, user_id: str, amount) -> dict:
        return await self.ledger.park(user_id, amount)

    async def unpark(self, user_id: str, amount) -> dict:
        return await self.ledger.unpark(user_id, amount)

    async def consume_daily_gas(self, user_id: str, now: Optional[float] = None) -> dict:
        return await self.ledger.consume_daily_gas(user_id, now=now)

    async def confirm_pending(self, user_id: str, now: Optional[float] = None) -> dict:
        return await self.ledger.confirm_pending(user_id, now=now)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------

    async def get_wallet(self, user_id: str) -> dict:
        wallet = await self.storage.wallets.get(user_id)
        if wallet is None:
            raise NotFound("Wallet not found")
        return self.ledger.view_wallet(wallet)

    async def get_stats(self, user_id: str) -> dict:
        stats = await self.storage.stats.get(user_id)
        if stats is None:
            raise NotFound("User stats not found")
        return stats_view(stats)

    async def list_transactions(self, user_id: str, limit: int = 20, offset: int = 0) -> dict:
        if limit < 1 or offset < 0:
            raise ValidationFailure("limit must be positive and offset non-negative")
        rows = await self.storage.transactions.list_for_user(user_id, limit=limit, offset=offset)
        total = await self.storage.transactions.count_for_user(user_id)
        return {
            "transactions": [as_dollars(r, TX_MONEY_FIELDS) for r in rows],
            "pagination": {"total": total, "limit": limit, "offset": offset},
        }

    async def list_hidden_coins(self, user_id: str, visible_only: bool = True) -> List[dict]:
        status = CoinStatus.VISIBLE.value if visible_only else None
        return [coin_view(c) for c in await self.storage.coins.list_by_hider(user_id, status=status)]

    # -------------------------------------------------------------------
    # Scheduled sweeps
    # -------------------------------------------------------------------

    async def recycle_stale_coins(self, now: Optional[float] = None) -> int:
        return await self.distribution.recycle_stale_coins(now=now)

    async def consume_gas_for_all(self, now: Optional[float] = None) -> dict:
        now = now if now is not None else time.time()
        charged = skipped = 0
        for user_id in await self.storage.wallets.list_user_ids():
            result = await self.ledger.consume_daily_gas(user_id, now=now)
            if result["already_charged"]:
                skipped += 1
            else:
                charged += 1
        logger.info("Daily gas sweep: %d charged, %d already charged", charged, skipped)
        return {"charged": charged, "skipped": skipped}

    async def confirm_all_pending(self, now: Optional[float] = None) -> dict:
        now = now if now is not None else time.time()
        users = confirmed = 0
        amount = 0
        for user_id in await self.storage.wallets.list_user_ids():
            result = await self.ledger.confirm_pending(user_id, now=now)
            if result["confirmed"]:
                users += 1
                confirmed += result["confirmed"]
                amount += to_cents(result["amount"])
        logger.info("Pending sweep: %d rows confirmed for %d users ($%.2f)",
                    confirmed, users, to_dollars(amount))
        return {"users": users, "confirmed": confirmed, "amount": to_dollars(amount)}

    async def run_maintenance(self, now: Optional[float] = None) -> dict:
        """Recycle stale coins, charge daily gas and confirm pending finds."""
        now = now if now is not None else time.time()
        recycled = await self.recycle_stale_coins(now=now)
        gas = await self.consume_gas_for_all(now=now)
        pending = await self.confirm_all_pending(now=now)
        return {"recycled": recycled, "gas": gas, "pending": pending}
