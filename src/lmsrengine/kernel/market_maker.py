"""Advisory market-making quotes: bid/ask around each outcome price."""

from __future__ import annotations

import math
from typing import Sequence

from lmsrengine.errors import InvalidInput
from lmsrengine.kernel.numeric import clamp, concentration, mean, shannon_entropy
from lmsrengine.kernel.probability import calculate_probabilities, validate_liquidity, validate_volumes
from lmsrengine.kernel.risk import liquidity_risk
from lmsrengine.models.results import MarketMakingQuote

DEFAULT_BASE_HALF_SPREAD = 0.05
DEFAULT_MIN_HALF_SPREAD = 0.005


def half_spread(
    depth_risk: float,
    top_probability: float,
    base_half_spread: float = DEFAULT_BASE_HALF_SPREAD,
    min_half_spread: float = DEFAULT_MIN_HALF_SPREAD,
) -> float:
    """Tightens as volume grows (depth_risk -> 0), widens with one-sidedness."""
    return min_half_spread + base_half_spread * depth_risk * (1.0 + top_probability)


def recommended_liquidity(liquidity_param: float, total_volume: float, probabilities: Sequence[float]) -> float:
    """Suggested b: keeps pace with per-outcome volume, more for uncertain markets."""
    n = len(probabilities)
    return max(liquidity_param, total_volume / n) * (1.0 + shannon_entropy(probabilities, base=math.e))


def simulate_market_making(
    liquidity_param: float,
    volumes: Sequence[float],
    *,
    base_half_spread: float = DEFAULT_BASE_HALF_SPREAD,
    min_half_spread: float = DEFAULT_MIN_HALF_SPREAD,
) -> MarketMakingQuote:
    """Quote bid/ask per outcome around the current price. Not authoritative trades."""
    if not (min_half_spread >= 0 and base_half_spread >= 0) or min_half_spread + base_half_spread <= 0:
        raise InvalidInput("half spreads must be >= 0 and not both zero")
    b = validate_liquidity(liquidity_param)
    vols = validate_volumes(volumes)
    probs = calculate_probabilities(b, vols)
    total = math.fsum(vols)
    half = half_spread(liquidity_risk(b, total), concentration(probs), base_half_spread, min_half_spread)
    bids = [clamp(p - half, 0.0, 1.0) for p in probs]
    asks = [clamp(p + half, 0.0, 1.0) for p in probs]
    return MarketMakingQuote(
        bid_prices=bids,
        ask_prices=asks,
        spread=mean([a - bd for a, bd in zip(asks, bids)]),
        recommended_liquidity=recommended_liquidity(b, total, probs),
    )
