"""Tunables for the market state store."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class ManipulationThresholds(BaseModel):
    """Heuristic thresholds. Crossing any of them flags a wager; nothing is rejected."""

    volume_spike_ratio: float = Field(2.0, gt=0, description="bet / max(total_volume, 1) above this flags")
    max_bet_ratio: float = Field(0.2, gt=0, description="bet above this fraction of total_volume flags")
    rapid_bet_count: int = Field(5, ge=1, description="bets within the window at or above this flags")
    rapid_window_seconds: float = Field(60.0, gt=0)


class CacheSettings(BaseModel):
    """Defaults for new markets, decay, learning adjustment and bet-log size."""

    liquidity_param: float = Field(10.0, gt=0, allow_inf_nan=False)
    num_outcomes: int = Field(2, ge=2)
    decay_factor: float = Field(0.95, ge=0, le=1, description="per-minute volume multiplier")
    learning_rate: float = Field(0.1, ge=0, allow_inf_nan=False)
    clamp_low: float = Field(0.01, gt=0, lt=1)
    clamp_high: float = Field(0.99, ge=0, le=1)
    max_bet_history: int = Field(1000, ge=1)
    manipulation: ManipulationThresholds = Field(default_factory=ManipulationThresholds)

    @model_validator(mode="after")
    def _check_bounds(self) -> CacheSettings:
        if self.clamp_low >= self.clamp_high:
            raise ValueError("clamp_low must be below clamp_high")
        return self

    @property
    def bounds(self) -> tuple[float, float]:
        return (self.clamp_low, self.clamp_high)
