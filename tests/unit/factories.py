"""Row factories for unit tests. Shapes match what the storage repos return."""

# ── Constants ───────────────────────────────────────────────────────────────

SF_LAT = 37.7749
SF_LON = -122.4194

# Meters per degree of latitude on the Haversine sphere (2 * pi * R / 360)
METERS_PER_DEGREE_SPHERE = 111194.93


# ── Helpers ─────────────────────────────────────────────────────────────────

def make_coin(coin_type="fixed", value=50, contribution=50, status="visible",
              latitude=SF_LAT, longitude=SF_LON, hider_id="hider") -> dict:
    """A coin row (money in cents)."""
    return {
        "coin_id": "coin-1",
        "coin_type": coin_type,
        "value": value if coin_type == "fixed" else None,
        "contribution": contribution,
        "latitude": latitude,
        "longitude": longitude,
        "hider_id": hider_id,
        "status": status,
        "created_at": 0.0,
        "updated_at": 0.0,
    }


def make_wallet(gas_tank=1000, parked=0, pending=0) -> dict:
    return {
        "user_id": "finder",
        "total_balance": gas_tank + parked + pending,
        "gas_tank": gas_tank,
        "parked": parked,
        "pending": pending,
        "last_gas_charge": None,
        "created_at": 0.0,
        "updated_at": 0.0,
    }


def make_stats(find_limit=100, total_found_count=0) -> dict:
    return {
        "user_id": "finder",
        "find_limit": find_limit,
        "total_found_count": total_found_count,
        "total_found_value": 0,
        "total_hidden_count": 0,
        "total_hidden_value": 0,
        "highest_hidden_value": 0,
        "updated_at": 0.0,
    }


def offset_north(latitude: float, meters: float) -> float:
    """Latitude ``meters`` due north of ``latitude`` on the Haversine sphere."""
    return latitude + meters / METERS_PER_DEGREE_SPHERE
