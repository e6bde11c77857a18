"""MarketType, MarketConfig, Bet - canonical inputs."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from lmsrengine.errors import InvalidInput


class MarketType(str, Enum):
    """Market shape. Binary markets have exactly two outcomes."""

    BINARY = "binary"
    CATEGORICAL = "categorical"
    SCALAR = "scalar"


class MarketConfig(BaseModel):
    """Immutable per-market pricing configuration."""

    model_config = ConfigDict(frozen=True)

    liquidity_param: float = Field(..., gt=0, allow_inf_nan=False, description="LMSR b; larger = less price sensitive")
    num_outcomes: int = Field(..., ge=2)
    market_type: MarketType = MarketType.CATEGORICAL

    @model_validator(mode="before")
    @classmethod
    def _default_market_type(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("market_type") is None:
            n = data.get("num_outcomes")
            data = {**data, "market_type": MarketType.BINARY if n == 2 else MarketType.CATEGORICAL}
        return data

    @model_validator(mode="after")
    def _check_binary(self) -> MarketConfig:
        if self.market_type is MarketType.BINARY and self.num_outcomes != 2:
            raise ValueError("binary market must have exactly 2 outcomes")
        return self


class Bet(BaseModel):
    """A single wager on one outcome."""

    model_config = ConfigDict(frozen=True)

    outcome_index: int = Field(..., ge=0)
    amount: float = Field(..., gt=0, allow_inf_nan=False)


def make_config(liquidity_param: float, num_outcomes: int, market_type: MarketType | str | None = None) -> MarketConfig:
    """Build a MarketConfig, reporting bad values as InvalidInput."""
    try:
        return MarketConfig(liquidity_param=liquidity_param, num_outcomes=num_outcomes, market_type=market_type)
    except ValidationError as e:
        raise InvalidInput(f"invalid market config: {e.errors()[0]['msg']}") from e


def coerce_bet(bet: Bet | Mapping[str, Any]) -> Bet:
    """Accept a Bet or a plain mapping (outcome_index, amount); reject bad values as InvalidInput."""
    if isinstance(bet, Bet):
        return bet
    try:
        return Bet.model_validate(bet)
    except ValidationError as e:
        raise InvalidInput(f"invalid bet: {e.errors()[0]['msg']}") from e
