"""LMSR probability kernel - volumes to prices, price and cost of a trade.

All functions are pure: no state, no I/O, safe to call from any thread.

Probabilities come from a scaled softmax over the per-outcome volumes::

    adjusted_i = volume_i + b / n
    scale      = max(max(adjusted) / 10, 1)
    p_i        = exp(adjusted_i / scale) / sum_j exp(adjusted_j / scale)

The ``b / n`` seed gives a brand-new market uniform prices. The scale keeps every
exponent in [0, 10], so large volumes never overflow and no price reaches exactly
0 or 1.
"""

from __future__ import annotations

import math
from typing import Sequence

from lmsrengine.errors import IndexOutOfRange, InvalidInput
from lmsrengine.kernel.numeric import (
    LOG_EPSILON,
    clamp_and_normalize,
    ensure_finite,
    logsumexp,
    normalize,
    safe_exp,
)

SCALE_DIVISOR = 10.0
DEFAULT_BOUNDS: tuple[float, float] = (0.01, 0.99)
DEFAULT_LEARNING_RATE = 0.1
# Smallest multiplier a log-score nudge may apply; keeps large learning rates from flipping signs.
MIN_NUDGE_FACTOR = 1e-6


def validate_liquidity(liquidity_param: float) -> float:
    try:
        b = float(liquidity_param)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"liquidity_param must be a number, got {liquidity_param!r}") from e
    if not math.isfinite(b) or b <= 0:
        raise InvalidInput(f"liquidity_param must be positive and finite, got {liquidity_param!r}")
    return b


def validate_volumes(volumes: Sequence[float]) -> list[float]:
    """Return volumes as floats. At least two outcomes, each finite and >= 0."""
    try:
        vols = [float(v) for v in volumes]
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"volumes must be numbers: {e}") from e
    if len(vols) < 2:
        raise InvalidInput(f"need at least 2 outcome volumes, got {len(vols)}")
    for i, v in enumerate(vols):
        if not math.isfinite(v) or v < 0:
            raise InvalidInput(f"volume[{i}] must be finite and >= 0, got {v}")
    return vols


def validate_index(outcome_index: int, num_outcomes: int) -> int:
    if isinstance(outcome_index, bool) or not isinstance(outcome_index, int):
        raise InvalidInput(f"outcome_index must be an int, got {outcome_index!r}")
    if outcome_index < 0 or outcome_index >= num_outcomes:
        raise IndexOutOfRange(outcome_index, num_outcomes)
    return outcome_index


def validate_bounds(bounds: tuple[float, float]) -> tuple[float, float]:
    low, high = bounds
    if not (0.0 < low < high <= 1.0):
        raise InvalidInput(f"clamp bounds must satisfy 0 < low < high <= 1, got {bounds}")
    return float(low), float(high)


def calculate_probabilities(
    liquidity_param: float,
    volumes: Sequence[float],
    *,
    bounds: tuple[float, float] | None = None,
) -> list[float]:
    """Normalized probability per outcome. Optional clamp band applied before renormalizing."""
    b = validate_liquidity(liquidity_param)
    vols = validate_volumes(volumes)
    n = len(vols)
    initial = b / n
    adjusted = ensure_finite((v + initial for v in vols), "adjusted volume")
    scale = max(max(adjusted) / SCALE_DIVISOR, 1.0)
    probs = normalize([safe_exp(a / scale) for a in adjusted])
    if bounds is not None:
        low, high = validate_bounds(bounds)
        probs = clamp_and_normalize(probs, low, high)
    return probs


def log_score(probability: float, won: bool) -> float:
    """Logarithmic score of a previous price: ln(p) for the wagered side, ln(1 - p) otherwise."""
    if won:
        return math.log(max(probability, LOG_EPSILON))
    return math.log(max(1.0 - probability, LOG_EPSILON))


def calculate_adjusted_probabilities(
    liquidity_param: float,
    volumes: Sequence[float],
    previous: Sequence[float],
    outcome_index: int,
    *,
    learning_rate: float = DEFAULT_LEARNING_RATE,
    bounds: tuple[float, float] = DEFAULT_BOUNDS,
) -> list[float]:
    """Volume-based probabilities nudged by the log-score of the previous prices.

    Each outcome is scaled by ``1 + learning_rate * log_score(previous_i)`` (floored at
    ``MIN_NUDGE_FACTOR``), clamped into ``bounds`` and renormalized. The result
    depends on the order wagers arrive in;
    ``learning_rate=0`` reduces to the clamped volume-only vector.
    """
    base = calculate_probabilities(liquidity_param, volumes)
    n = len(base)
    validate_index(outcome_index, n)
    prev = ensure_finite((float(p) for p in previous), "previous probability")
    if len(prev) != n:
        raise InvalidInput(f"previous probabilities have length {len(prev)}, expected {n}")
    if not math.isfinite(learning_rate) or learning_rate < 0:
        raise InvalidInput(f"learning_rate must be finite and >= 0, got {learning_rate}")
    low, high = validate_bounds(bounds)
    nudged = [
        p * max(1.0 + learning_rate * log_score(q, i == outcome_index), MIN_NUDGE_FACTOR)
        for i, (p, q) in enumerate(zip(base, prev))
    ]
    return clamp_and_normalize(nudged, low, high)


def calculate_price(liquidity_param: float, volumes: Sequence[float], outcome_index: int) -> float:
    """Current price (probability) of one outcome."""
    probs = calculate_probabilities(liquidity_param, volumes)
    return probs[validate_index(outcome_index, len(probs))]


def _check_share_amount(share_amount: float) -> float:
    try:
        amount = float(share_amount)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"share_amount must be a number, got {share_amount!r}") from e
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidInput(f"share_amount must be positive and finite, got {share_amount!r}")
    return amount


def calculate_cost(
    liquidity_param: float,
    volumes: Sequence[float],
    outcome_index: int,
    share_amount: float,
) -> float:
    """Approximate cost of adding ``share_amount`` of stake to an outcome.

    ``share_amount / mean(price_now, price_after)``. This is the midpoint approximation
    callers price against, not the LMSR integral; see calculate_exact_cost for that.
    """
    amount = _check_share_amount(share_amount)
    vols = validate_volumes(volumes)
    validate_index(outcome_index, len(vols))
    price_now = calculate_price(liquidity_param, vols, outcome_index)
    after = list(vols)
    after[outcome_index] += amount
    price_after = calculate_price(liquidity_param, after, outcome_index)
    return amount / ((price_now + price_after) / 2.0)


def lmsr_cost(liquidity_param: float, quantities: Sequence[float]) -> float:
    """Hanson cost function C(q) = b * ln(sum_i exp(q_i / b))."""
    b = validate_liquidity(liquidity_param)
    if not quantities:
        raise InvalidInput("Outcome vector must be non-empty")
    return b * logsumexp([float(q) / b for q in quantities])


def calculate_exact_cost(
    liquidity_param: float,
    volumes: Sequence[float],
    outcome_index: int,
    share_amount: float,
) -> float:
    """Exact LMSR payment C(q_after) - C(q_before) for buying ``share_amount`` shares."""
    amount = _check_share_amount(share_amount)
    vols = validate_volumes(volumes)
    validate_index(outcome_index, len(vols))
    after = list(vols)
    after[outcome_index] += amount
    return lmsr_cost(liquidity_param, after) - lmsr_cost(liquidity_param, vols)
