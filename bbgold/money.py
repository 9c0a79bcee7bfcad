"""
money.py - Cent arithmetic helpers.

The ledger stores every monetary column as integer cents so that
total_balance == gas_tank + parked + pending holds exactly. Callers see
float dollars rounded to two decimals.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

Amount = Union[int, float, str, Decimal]

_CENT = Decimal("0.01")


def to_cents(amount: Amount) -> int:
    """Convert a dollar amount to integer cents, rounding half up."""
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_dollars(cents: int) -> float:
    return float(Decimal(cents) / 100)


def round_cents(value: float) -> float:
    """Round a float dollar value half up to the cent."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def as_dollars(row: dict, fields: Iterable[str]) -> dict:
    """Return a copy of ``row`` with the given cent fields converted to dollars."""
    out = dict(row)
    for name in fields:
        if out.get(name) is not None:
            out[name] = to_dollars(out[name])
    return out
