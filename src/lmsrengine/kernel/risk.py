"""Market risk metrics derived from the probability vector."""

from __future__ import annotations

import math
from typing import Sequence

from lmsrengine.kernel.numeric import (
    clamp,
    concentration,
    ensure_finite,
    mean,
    population_std,
    population_variance,
    shannon_entropy,
)
from lmsrengine.kernel.probability import calculate_probabilities, validate_liquidity, validate_volumes
from lmsrengine.models.results import ConfidenceMetrics, RiskProfile

# z-value of the reported interval
_Z_95 = 1.96


def liquidity_risk(liquidity_param: float, total_volume: float) -> float:
    """b / (b + volume): 1 for an empty market, falling toward 0 as stake accumulates."""
    return liquidity_param / (liquidity_param + total_volume)


def assess_market_risk(liquidity_param: float, volumes: Sequence[float]) -> RiskProfile:
    """Entropy, concentration, volatility proxy and liquidity risk for a market."""
    b = validate_liquidity(liquidity_param)
    vols = validate_volumes(volumes)
    probs = calculate_probabilities(b, vols)
    return RiskProfile(
        probabilities=probs,
        entropy=shannon_entropy(probs),
        concentration=concentration(probs),
        expected_volatility=population_std(probs),
        liquidity_risk=liquidity_risk(b, math.fsum(vols)),
    )


def confidence_metrics(probabilities: Sequence[float]) -> ConfidenceMetrics:
    """Mean, standard deviation and the ``mean -/+ 1.96 * variance`` band of a vector."""
    probs = ensure_finite(probabilities, "probability")
    m = mean(probs)
    variance = population_variance(probs)
    return ConfidenceMetrics(
        mean=m,
        standard_deviation=math.sqrt(variance),
        lower=clamp(m - _Z_95 * variance, 0.0, 1.0),
        upper=clamp(m + _Z_95 * variance, 0.0, 1.0),
    )
