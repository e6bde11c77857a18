"""Canonical schema (Pydantic) - market config, bets, results."""

from lmsrengine.models.market import Bet, MarketConfig, MarketType, coerce_bet, make_config
from lmsrengine.models.results import (
    ConfidenceMetrics,
    EfficiencyReport,
    MarketEntrySnapshot,
    MarketMakingQuote,
    OutcomeCalibration,
    RecordedBet,
    RiskProfile,
    WagerResult,
)

__all__ = [
    "Bet",
    "MarketConfig",
    "MarketType",
    "coerce_bet",
    "make_config",
    "ConfidenceMetrics",
    "EfficiencyReport",
    "MarketEntrySnapshot",
    "MarketMakingQuote",
    "OutcomeCalibration",
    "RecordedBet",
    "RiskProfile",
    "WagerResult",
]
