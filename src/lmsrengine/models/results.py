"""Result models returned by the kernel and the market state store."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from lmsrengine.models.market import MarketConfig


class RiskProfile(BaseModel):
    """Market risk summary derived from the probability vector."""

    probabilities: list[float]
    entropy: float = Field(..., ge=0, description="Shannon entropy in bits")
    concentration: float = Field(..., gt=0, le=1, description="Largest single-outcome probability")
    expected_volatility: float = Field(..., ge=0)
    liquidity_risk: float = Field(..., gt=0, le=1)


class MarketMakingQuote(BaseModel):
    """Advisory bid/ask quotes around current prices."""

    bid_prices: list[float]
    ask_prices: list[float]
    spread: float = Field(..., ge=0)
    recommended_liquidity: float = Field(..., gt=0)


class ConfidenceMetrics(BaseModel):
    """Dispersion of a probability vector.

    ``lower``/``upper`` use ``mean -/+ 1.96 * variance`` clamped to [0, 1]. This is the
    simplified interval downstream consumers already rely on, not a statistical CI.
    """

    mean: float
    standard_deviation: float = Field(..., ge=0)
    lower: float = Field(..., ge=0, le=1)
    upper: float = Field(..., ge=0, le=1)


class RecordedBet(BaseModel):
    """Entry in a market's bounded recent-bet log."""

    model_config = ConfigDict(frozen=True)

    outcome_index: int = Field(..., ge=0)
    amount: float = Field(..., gt=0)
    timestamp: float  # epoch seconds
    manipulation_flag: bool = False


class WagerResult(BaseModel):
    """Outcome of MarketStateStore.record_wager."""

    market_id: str
    probabilities: list[float]
    confidence_metrics: ConfidenceMetrics
    manipulation_flag: bool = False
    manipulation_reasons: list[str] = Field(default_factory=list)
    decay_multiplier: float = Field(1.0, ge=0, le=1)
    total_volume: float = Field(0.0, ge=0)


class OutcomeCalibration(BaseModel):
    """Calibration of one outcome against a known result."""

    probability: float
    accuracy: int = Field(..., ge=0, le=1)
    calibration_error: float = Field(..., ge=0, le=1)


class EfficiencyReport(BaseModel):
    """How close a market's final prices came to the realized outcome."""

    market_id: str
    final_probabilities: list[float]
    performance: list[OutcomeCalibration]
    market_efficiency: float


class MarketEntrySnapshot(BaseModel):
    """Serializable copy of a market entry for external persistence."""

    market_id: str
    config: MarketConfig
    volumes: list[float]
    last_probabilities: list[float]
    total_volume: float = Field(0.0, ge=0)
    last_update_ts: float | None = None
    recent_bets: list[RecordedBet] = Field(default_factory=list)
    wager_count: int = Field(0, ge=0)
