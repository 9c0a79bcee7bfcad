"""
ledger.py - Wallet ledger.

Every operation here is one unit of work over some subset of coins,
wallets, user_stats, transactions and coin_finds. Either all of its
writes commit or none do. Arithmetic is in integer cents and the wallet
table enforces total_balance == gas_tank + parked + pending, so an
operation that would break the invariant aborts instead of committing.

Buckets:
 - gas_tank: spendable, drained by the daily gas charge
 - parked:   shielded from gas; unparking costs one day of gas
 - pending:  found value waiting out the confirmation window
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from bbgold import lifecycle
from bbgold.errors import NotFound, ValidationFailure
from bbgold.lifecycle import CoinStatus
from bbgold.models import AmountRequest, HideRequest, Position, parse
from bbgold.money import Amount, as_dollars, to_cents, to_dollars
from bbgold.valuation import COLD_STREAK_WINDOW

if TYPE_CHECKING:
    from bbgold.config import GameSettings
    from bbgold.grid import GridIndexer
    from bbgold.storage import StorageManager, UnitOfWork
    from bbgold.validator import CollectionValidator
    from bbgold.valuation import ValueResolver

logger = logging.getLogger("ledger")

WALLET_MONEY_FIELDS = ("total_balance", "gas_tank", "parked", "pending")
STATS_MONEY_FIELDS = ("find_limit", "total_found_value", "total_hidden_value", "highest_hidden_value")
COIN_MONEY_FIELDS = ("value", "contribution")
TX_MONEY_FIELDS = ("amount",)


def start_of_day(now: float) -> float:
    """Midnight UTC of the calendar day containing ``now``."""
    day = datetime.fromtimestamp(now, tz=timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return day.timestamp()


def coin_view(coin: dict) -> dict:
    return as_dollars(coin, COIN_MONEY_FIELDS)


def stats_view(stats: dict) -> dict:
    return as_dollars(stats, STATS_MONEY_FIELDS)


def wallet_view(wallet: dict, daily_rate_cents: int, low_gas_days: int = 5) -> dict:
    """Wallet in dollars plus how many days of gas remain."""
    view = as_dollars(wallet, WALLET_MONEY_FIELDS)
    gas = wallet["gas_tank"]
    days_left = gas // daily_rate_cents if daily_rate_cents > 0 else None
    view["days_left"] = days_left
    view["is_empty"] = gas == 0
    view["is_low"] = days_left is not None and 0 < days_left < low_gas_days
    return view


class WalletLedger:
    """Atomic money movements for hide, collect, retrieve, park, unpark, gas and confirmation."""

    def __init__(
        self,
        storage: "StorageManager",
        settings: "GameSettings",
        indexer: "GridIndexer",
        validator: "CollectionValidator",
        resolver: "ValueResolver",
    ):
        self._storage = storage
        self._indexer = indexer
        self._validator = validator
        self._resolver = resolver
        self.daily_gas_rate = to_cents(settings.daily_gas_rate)
        self.default_find_limit = to_cents(settings.default_find_limit)
        self.starter_balance = to_cents(settings.starter_balance)
        self.min_hide_value = to_cents(settings.min_hide_value)
        self.pending_window_sec = settings.pending_confirmation_hours * 3600
        self.low_gas_days = settings.low_gas_days

    def view_wallet(self, wallet: dict) -> dict:
        return wallet_view(wallet, self.daily_gas_rate, self.low_gas_days)

    # -------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------

    async def open_account(self, user_id: str) -> dict:
        """Create the wallet and stats rows for a new player. No-op if they exist."""
        async with self._storage.atomic() as uow:
            wallet = await uow.wallets.create(user_id, starting_gas=self.starter_balance)
            stats = await uow.stats.create(user_id, find_limit=self.default_find_limit)
        logger.info("Opened account %s (gas=$%.2f)", user_id, to_dollars(wallet["gas_tank"]))
        return {"wallet": self.view_wallet(wallet), "stats": stats_view(stats)}

    # -------------------------------------------------------------------
    # Coins
    # -------------------------------------------------------------------

    async def hide(
        self, user_id: str, coin_type: str, value: Amount, latitude: float, longitude: float
    ) -> dict:
        req = parse(HideRequest, coin_type=coin_type, value=value, latitude=latitude, longitude=longitude)
        cents = to_cents(req.value)
        if cents <= 0 or cents < self.min_hide_value:
            raise ValidationFailure(f"Minimum coin value is ${to_dollars(self.min_hide_value):.2f}")

        async with self._storage.atomic() as uow:
            wallet, _ = await self._load_player(uow, user_id)
            if wallet["gas_tank"] < cents:
                raise _rejected(user_id, "hide", "Insufficient balance to hide this coin")

            coin = await uow.coins.create(
                coin_id=str(uuid.uuid4()),
                coin_type=req.coin_type,
                value=cents if req.coin_type == "fixed" else None,
                contribution=cents,
                latitude=req.latitude,
                longitude=req.longitude,
                hider_id=user_id,
            )
            await uow.wallets.apply(user_id, gas_tank=-cents, total_balance=-cents)
            await uow.stats.record_hide(user_id, cents)
            await uow.transactions.record(
                user_id, "hidden", -cents, coin_id=coin["coin_id"],
                description=f"Hid a ${to_dollars(cents):.2f} {req.coin_type} coin",
            )
            await self._indexer.get_or_create_grid(uow.grids, req.latitude, req.longitude)

        logger.info("User %s hid %s coin %s ($%.2f)", user_id, req.coin_type, coin["coin_id"], to_dollars(cents))
        return coin_view(coin)

    async def collect(self, user_id: str, coin_id: str, latitude: float, longitude: float) -> dict:
        """Validate, resolve the payout and settle a find as pending."""
        pos = parse(Position, latitude=latitude, longitude=longitude)

        async with self._storage.atomic() as uow:
            coin = await uow.coins.get(coin_id)
            if coin is None:
                raise NotFound("Coin not found")
            wallet, stats = await self._load_player(uow, user_id)

            check = self._validator.check(coin, wallet, stats, pos.latitude, pos.longitude)
            if not check.can_collect:
                raise _rejected(user_id, "collect", check.reason, distance=check.distance)

            if coin["coin_type"] == "fixed":
                value = coin["value"]
            else:
                value = await self._resolve_pool(uow, user_id, coin, stats)

            await lifecycle.transition(uow.coins, coin, CoinStatus.COLLECTED, value=value)
            await uow.finds.create(coin_id, user_id, value)
            await uow.wallets.apply(user_id, pending=value, total_balance=value)
            await uow.stats.record_find(user_id, value)
            await uow.transactions.record(
                user_id, "found", value, status="pending", coin_id=coin_id,
                description=f"Found a ${to_dollars(value):.2f} coin",
            )
            await self._indexer.get_or_create_grid(uow.grids, pos.latitude, pos.longitude)

        logger.info("User %s collected %s coin %s for $%.2f",
                    user_id, coin["coin_type"], coin_id, to_dollars(value))
        return {
            "coin_id": coin_id,
            "coin_type": coin["coin_type"],
            "value_received": to_dollars(value),
            "status": "pending",
            "distance": check.distance,
        }

    async def retrieve(self, user_id: str, coin_id: str) -> dict:
        """Hider takes back a visible coin and gets its contribution refunded."""
        async with self._storage.atomic() as uow:
            coin = await uow.coins.get(coin_id)
            if coin is None:
                raise NotFound("Coin not found")
            if coin["hider_id"] != user_id:
                raise _rejected(user_id, "retrieve", "You can only retrieve your own coins")
            if coin["status"] != CoinStatus.VISIBLE.value:
                raise _rejected(user_id, "retrieve", "Coin cannot be retrieved (already collected or recycled)")
            if await uow.wallets.get(user_id) is None:
                raise NotFound("Wallet not found")

            refund = coin["contribution"]
            await lifecycle.transition(uow.coins, coin, CoinStatus.DELETED)
            await uow.wallets.apply(user_id, gas_tank=refund, total_balance=refund)
            await uow.transactions.record(
                user_id, "refund", refund, coin_id=coin_id,
                description=f"Retrieved hidden coin (${to_dollars(refund):.2f})",
            )

        logger.info("User %s retrieved coin %s, refunded $%.2f", user_id, coin_id, to_dollars(refund))
        return {"coin_id": coin_id, "refunded": to_dollars(refund)}

    # -------------------------------------------------------------------
    # Parking
    # -------------------------------------------------------------------

    async def park(self, user_id: str, amount: Amount) -> dict:
        cents = _amount_cents(amount)
        async with self._storage.atomic() as uow:
            wallet = await self._load_wallet(uow, user_id)
            if cents > wallet["gas_tank"]:
                raise _rejected(user_id, "park", "Insufficient balance in gas tank")
            wallet = await uow.wallets.apply(user_id, gas_tank=-cents, parked=cents)
            await uow.transactions.record(
                user_id, "parked", -cents, description=f"Parked ${to_dollars(cents):.2f}",
            )
        logger.info("User %s parked $%.2f", user_id, to_dollars(cents))
        return self.view_wallet(wallet)

    async def unpark(self, user_id: str, amount: Amount) -> dict:
        """Move parked funds back to the gas tank, minus one day of gas."""
        cents = _amount_cents(amount)
        async with self._storage.atomic() as uow:
            wallet = await self._load_wallet(uow, user_id)
            if cents > wallet["parked"]:
                raise _rejected(user_id, "unpark", "Insufficient parked balance")
            net = max(0, cents - self.daily_gas_rate)
            fee = cents - net
            wallet = await uow.wallets.apply(user_id, parked=-cents, gas_tank=net, total_balance=-fee)
            await uow.transactions.record(
                user_id, "unparked", cents, description=f"Unparked ${to_dollars(cents):.2f}",
            )
            if fee > 0:
                await uow.transactions.record(
                    user_id, "gas_consumed", -fee, description="Gas fee for unparking",
                )
        logger.info("User %s unparked $%.2f (fee $%.2f)", user_id, to_dollars(cents), to_dollars(fee))
        result = self.view_wallet(wallet)
        result["fee_charged"] = to_dollars(fee)
        return result

    # -------------------------------------------------------------------
    # Scheduled charges
    # -------------------------------------------------------------------

    async def consume_daily_gas(self, user_id: str, now: Optional[float] = None) -> dict:
        """Charge one day of gas, at most once per UTC calendar day."""
        now = now if now is not None else time.time()
        async with self._storage.atomic() as uow:
            wallet = await self._load_wallet(uow, user_id)
            last = wallet["last_gas_charge"]
            if last is not None and last >= start_of_day(now):
                return {"charged": False, "already_charged": True, "amount": 0.0,
                        "wallet": self.view_wallet(wallet)}

            amount = min(self.daily_gas_rate, wallet["gas_tank"])
            wallet = await uow.wallets.apply(
                user_id, gas_tank=-amount, total_balance=-amount, last_gas_charge=now,
            )
            if amount > 0:
                await uow.transactions.record(
                    user_id, "gas_consumed", -amount, description="Daily gas",
                    created_at=now,
                )

        logger.info("Charged daily gas for %s: $%.2f", user_id, to_dollars(amount))
        return {"charged": amount > 0, "already_charged": False, "amount": to_dollars(amount),
                "wallet": self.view_wallet(wallet)}

    async def confirm_pending(self, user_id: str, now: Optional[float] = None) -> dict:
        """Release found value that has sat out the confirmation window into the gas tank."""
        now = now if now is not None else time.time()
        cutoff = now - self.pending_window_sec
        async with self._storage.atomic() as uow:
            wallet = await self._load_wallet(uow, user_id)
            rows = await uow.transactions.list_pending_before(user_id, cutoff)
            if not rows:
                return {"confirmed": 0, "amount": 0.0, "wallet": self.view_wallet(wallet)}

            total = sum(r["amount"] for r in rows if r["amount"] > 0)
            wallet = await uow.wallets.apply(user_id, pending=-total, gas_tank=total)
            confirmed = await uow.transactions.confirm([r["id"] for r in rows])
            coin_ids = [r["coin_id"] for r in rows if r["coin_id"]]
            finds = await uow.finds.confirm_for_coins(user_id, coin_ids)

        logger.info("Confirmed %d pending rows (%d finds) for %s: $%.2f",
                    confirmed, finds, user_id, to_dollars(total))
        return {"confirmed": confirmed, "amount": to_dollars(total), "wallet": self.view_wallet(wallet)}

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    async def _load_wallet(self, uow: "UnitOfWork", user_id: str) -> dict:
        wallet = await uow.wallets.get(user_id)
        if wallet is None:
            raise NotFound("Wallet not found")
        return wallet

    async def _load_player(self, uow: "UnitOfWork", user_id: str):
        wallet = await self._load_wallet(uow, user_id)
        stats = await uow.stats.get(user_id)
        if stats is None:
            raise NotFound("User stats not found")
        return wallet, stats

    async def _resolve_pool(self, uow: "UnitOfWork", user_id: str, coin: dict, stats: dict) -> int:
        recent = await uow.finds.recent_values(user_id, limit=COLD_STREAK_WINDOW)
        value = self._resolver.resolve(
            to_dollars(coin["contribution"]),
            [to_dollars(v) for v in recent],
            stats["total_found_count"],
        )
        return to_cents(value)


def _amount_cents(amount: Amount) -> int:
    cents = to_cents(parse(AmountRequest, amount=amount).amount)
    # positive amounts under half a cent round to nothing
    if cents <= 0:
        raise ValidationFailure("Amount must be at least $0.01")
    return cents


def _rejected(user_id: str, action: str, reason: str, distance: Optional[float] = None) -> ValidationFailure:
    logger.warning("Rejected %s for %s: %s", action, user_id, reason)
    return ValidationFailure(reason, distance=distance)

