"""Probability kernel - pure LMSR pricing functions."""

from lmsrengine.kernel.engine import MarketEngine, aggregate_bets
from lmsrengine.kernel.market_maker import simulate_market_making
from lmsrengine.kernel.probability import (
    DEFAULT_BOUNDS,
    DEFAULT_LEARNING_RATE,
    calculate_adjusted_probabilities,
    calculate_cost,
    calculate_exact_cost,
    calculate_price,
    calculate_probabilities,
    lmsr_cost,
)
from lmsrengine.kernel.risk import assess_market_risk, confidence_metrics

__all__ = [
    "DEFAULT_BOUNDS",
    "DEFAULT_LEARNING_RATE",
    "MarketEngine",
    "aggregate_bets",
    "assess_market_risk",
    "calculate_adjusted_probabilities",
    "calculate_cost",
    "calculate_exact_cost",
    "calculate_price",
    "calculate_probabilities",
    "confidence_metrics",
    "lmsr_cost",
    "simulate_market_making",
]
