"""
lifecycle.py - Coin status state machine.

    visible -> collected   (successful find, terminal)
    visible -> deleted     (hider retrieval with refund, terminal)

No other transitions exist. A transition is written as a compare-and-set
on the status column, so it has to run inside the same unit of work as
the ledger update it belongs to. When the row no longer reads
``visible`` at write time, the caller lost a race and gets Conflict.

Units of work take the write lock before their first read, so a second
collector normally reads the committed status and is turned away with
ValidationFailure. Conflict only fires if a status read and its
compare-and-set ever end up in different locks.
"""

import enum
import logging
from typing import TYPE_CHECKING, Dict, Optional, Set

from bbgold.errors import Conflict, NotFound, ValidationFailure

if TYPE_CHECKING:
    from bbgold.storage import CoinRepo

logger = logging.getLogger("lifecycle")


class CoinStatus(str, enum.Enum):
    VISIBLE = "visible"
    COLLECTED = "collected"
    DELETED = "deleted"


LEGAL_TRANSITIONS: Dict[CoinStatus, Set[CoinStatus]] = {
    CoinStatus.VISIBLE: {CoinStatus.COLLECTED, CoinStatus.DELETED},
    CoinStatus.COLLECTED: set(),
    CoinStatus.DELETED: set(),
}

UNAVAILABLE_REASONS: Dict[CoinStatus, str] = {
    CoinStatus.COLLECTED: "Coin already collected",
    CoinStatus.DELETED: "Coin is no longer available",
}


def can_transition(current: str, target: str) -> bool:
    return CoinStatus(target) in LEGAL_TRANSITIONS[CoinStatus(current)]


def is_terminal(status: str) -> bool:
    return not LEGAL_TRANSITIONS[CoinStatus(status)]


def unavailable_reason(status: str) -> str:
    return UNAVAILABLE_REASONS.get(CoinStatus(status), "Coin is not available")


async def transition(
    coins: "CoinRepo",
    coin: Optional[dict],
    target: CoinStatus,
    value: Optional[int] = None,
) -> None:
    """Move ``coin`` from visible to ``target`` inside the caller's unit of work.

    ``coin`` is the row the caller read in the same unit; ``value`` (cents)
    is stored on the coin with the flip, used to record a resolved pool value.
    """
    if coin is None:
        raise NotFound("Coin not found")
    current = CoinStatus(coin["status"])
    if not can_transition(current, target):
        raise ValidationFailure(unavailable_reason(current))

    swapped = await coins.compare_and_set_status(
        coin["coin_id"], CoinStatus.VISIBLE.value, target.value, value=value
    )
    if not swapped:
        logger.warning("Coin %s changed under us while moving to %s", coin["coin_id"], target.value)
        raise Conflict("Coin was taken by another player")
    logger.debug("Coin %s: %s -> %s", coin["coin_id"], current.value, target.value)
