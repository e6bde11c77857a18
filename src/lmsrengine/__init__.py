"""LMSR pricing engine - stateless probability kernel and incremental market state cache."""

from lmsrengine.cache import CacheSettings, ManipulationThresholds, MarketStateStore
from lmsrengine.errors import IndexOutOfRange, InvalidInput, LMSRError, NumericInstability, UnknownMarket
from lmsrengine.kernel import (
    MarketEngine,
    aggregate_bets,
    assess_market_risk,
    calculate_adjusted_probabilities,
    calculate_cost,
    calculate_exact_cost,
    calculate_price,
    calculate_probabilities,
    simulate_market_making,
)
from lmsrengine.models import Bet, MarketConfig, MarketType

__version__ = "0.1.0"

__all__ = [
    "Bet",
    "CacheSettings",
    "IndexOutOfRange",
    "InvalidInput",
    "LMSRError",
    "ManipulationThresholds",
    "MarketConfig",
    "MarketEngine",
    "MarketStateStore",
    "MarketType",
    "NumericInstability",
    "UnknownMarket",
    "aggregate_bets",
    "assess_market_risk",
    "calculate_adjusted_probabilities",
    "calculate_cost",
    "calculate_exact_cost",
    "calculate_price",
    "calculate_probabilities",
    "simulate_market_making",
]
