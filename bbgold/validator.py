"""
validator.py - Collection validator.

Ordered, fail-fast checks for a collect attempt:

 1. the coin exists
 2. the coin is visible
 3. the player is within the collection range (Haversine, meters)
 4. a fixed coin's value is within the player's find limit
    (pool coins skip this: their value is not known yet)
 5. the player has gas left

The first failing check supplies the reason. ``check`` is pure so the
ledger can run it on rows read inside its own unit of work.
"""

from typing import Optional

from bbgold.geo import haversine_distance
from bbgold.lifecycle import CoinStatus, unavailable_reason
from bbgold.models import CollectCheck


class CollectionValidator:

    def __init__(self, collection_range_meters: float = 10.0, default_find_limit: int = 100):
        self.collection_range_meters = collection_range_meters
        # cents; applies when the player has no stats row yet
        self.default_find_limit = default_find_limit

    def check(
        self,
        coin: Optional[dict],
        wallet: Optional[dict],
        stats: Optional[dict],
        user_lat: float,
        user_lon: float,
    ) -> CollectCheck:
        if coin is None:
            return CollectCheck(can_collect=False, reason="Coin not found")

        if coin["status"] != CoinStatus.VISIBLE.value:
            return CollectCheck(can_collect=False, reason=unavailable_reason(coin["status"]))

        distance = haversine_distance(user_lat, user_lon, coin["latitude"], coin["longitude"])
        if distance > self.collection_range_meters:
            return CollectCheck(
                can_collect=False,
                reason=f"Too far ({round(distance)}m away)",
                distance=distance,
            )

        find_limit = stats["find_limit"] if stats else self.default_find_limit
        if coin["coin_type"] == "fixed" and coin["value"] is not None and coin["value"] > find_limit:
            return CollectCheck(can_collect=False, reason="Coin exceeds find limit", distance=distance)

        if wallet is None or wallet["gas_tank"] <= 0:
            return CollectCheck(can_collect=False, reason="No gas remaining", distance=distance)

        return CollectCheck(can_collect=True, distance=distance)
