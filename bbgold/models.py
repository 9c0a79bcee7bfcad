"""Pydantic argument and result models for the game core."""

from typing import Literal, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

from bbgold.errors import ValidationFailure

M = TypeVar("M", bound=BaseModel)


class Position(BaseModel):
    latitude: float = Field(ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(ge=-180, le=180, allow_inf_nan=False)


class HideRequest(Position):
    coin_type: Literal["fixed", "pool"]
    value: float = Field(gt=0, allow_inf_nan=False)


class AmountRequest(BaseModel):
    amount: float = Field(gt=0, allow_inf_nan=False)


class NearbyRequest(Position):
    radius_meters: float = Field(gt=0, le=50000, allow_inf_nan=False)


class CollectCheck(BaseModel):
    """Outcome of the collection validator."""

    can_collect: bool
    reason: Optional[str] = None
    distance: Optional[float] = None


def parse(model: Type[M], **data) -> M:
    """Build ``model`` from keyword data, reporting bad input as ValidationFailure."""
    try:
        return model(**data)
    except ValidationError as exc:
        err = exc.errors()[0]
        field = ".".join(str(p) for p in err.get("loc", ()))
        raise ValidationFailure(f"Invalid {field}: {err.get('msg', 'bad value')}")
