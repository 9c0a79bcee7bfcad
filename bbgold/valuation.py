"""
valuation.py - Pool coin value resolution.

A pool coin's payout is unknown until someone collects it. It is drawn
from the hider's contribution and the collector's history:

    base     = contribution * 0.5
    base    += contribution * 0.3          if >= 3 of last 10 finds < $1.00
    base    += random() * contribution     if lifetime finds < 10
    variance = contribution * (random() * 0.5 - 0.25)
    final    = clamp(base + variance, 0.05, contribution * 3), to the cent

``resolve_pool_value`` is the only implementation of this formula. The
collect path and the payout preview both go through it; the preview
drives it with fixed extreme random sources.
"""

import random
from typing import Optional, Sequence, Tuple

from bbgold.geo import RandomSource
from bbgold.money import round_cents

BASE_SHARE = 0.5
COLD_STREAK_BONUS = 0.3
COLD_STREAK_WINDOW = 10
COLD_STREAK_MIN_FINDS = 3
LOW_VALUE_THRESHOLD = 1.0
NEW_PLAYER_FIND_COUNT = 10
VARIANCE_SPAN = 0.5
VARIANCE_OFFSET = 0.25
MIN_PAYOUT = 0.05
MAX_MULTIPLIER = 3.0


class FixedSource:
    """Random source that always returns the same number."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


def is_cold_streak(recent_values: Sequence[float]) -> bool:
    window = list(recent_values)[:COLD_STREAK_WINDOW]
    return sum(1 for v in window if v < LOW_VALUE_THRESHOLD) >= COLD_STREAK_MIN_FINDS


def is_new_player(lifetime_find_count: int) -> bool:
    return lifetime_find_count < NEW_PLAYER_FIND_COUNT


def resolve_pool_value(
    contribution: float,
    recent_values: Sequence[float],
    lifetime_find_count: int,
    rng: RandomSource,
) -> float:
    """Payout in dollars for a pool coin.

    ``recent_values`` are the collector's latest find values in dollars,
    newest first; only the first ten are considered.
    """
    base = contribution * BASE_SHARE
    if is_cold_streak(recent_values):
        base += contribution * COLD_STREAK_BONUS
    if is_new_player(lifetime_find_count):
        base += rng.random() * contribution

    variance = contribution * (rng.random() * VARIANCE_SPAN - VARIANCE_OFFSET)
    final = base + variance
    final = max(MIN_PAYOUT, final)
    final = min(contribution * MAX_MULTIPLIER, final)
    return round_cents(final)


class ValueResolver:
    """Holds the random source used for live payouts."""

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng if rng is not None else random.Random()

    def resolve(self, contribution: float, recent_values: Sequence[float], lifetime_find_count: int) -> float:
        return resolve_pool_value(contribution, recent_values, lifetime_find_count, self.rng)

    def payout_range(
        self, contribution: float, recent_values: Sequence[float], lifetime_find_count: int
    ) -> Tuple[float, float]:
        """Lowest and highest payout the collector could receive right now."""
        # The formula is monotone in every draw, so the extremes bound it
        low = resolve_pool_value(contribution, recent_values, lifetime_find_count, FixedSource(0.0))
        high = resolve_pool_value(contribution, recent_values, lifetime_find_count, FixedSource(1.0))
        return low, high
