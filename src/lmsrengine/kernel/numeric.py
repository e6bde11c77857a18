"""Shared numeric helpers - overflow-safe exp, normalization, entropy, dispersion."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from lmsrengine.errors import InvalidInput, NumericInstability

# Floor for log-scores so a probability of exactly 0 or 1 never yields -inf.
LOG_EPSILON = 1e-4


def ensure_finite(values: Iterable[float], what: str = "value") -> list[float]:
    """Return values as a list, raising NumericInstability on NaN or inf."""
    out = list(values)
    for v in out:
        if not math.isfinite(v):
            raise NumericInstability(f"non-finite {what}: {v}")
    return out


def safe_exp(x: float) -> float:
    """math.exp that reports overflow as NumericInstability."""
    try:
        return math.exp(x)
    except OverflowError as e:
        raise NumericInstability(f"exp overflow for argument {x}") from e


def logsumexp(values: Sequence[float]) -> float:
    """log(sum(exp(v))) with the largest term factored out, so no exp overflows."""
    xs = ensure_finite(values, "logsumexp input")
    if not xs:
        raise InvalidInput("logsumexp needs at least one value")
    top = max(xs)
    return top + math.log(math.fsum(math.exp(x - top) for x in xs))


def normalize(values: Sequence[float]) -> list[float]:
    """Scale non-negative values to sum to 1."""
    total = math.fsum(values)
    if not math.isfinite(total) or total <= 0:
        raise NumericInstability(f"cannot normalize vector with sum {total}")
    return ensure_finite((v / total for v in values), "probability")


def clamp(x: float, low: float, high: float) -> float:
    return max(low, min(high, x))


def clamp_and_normalize(values: Sequence[float], low: float, high: float) -> list[float]:
    """Clamp each entry into [low, high], then renormalize to sum to 1."""
    return normalize([clamp(v, low, high) for v in values])


def shannon_entropy(probabilities: Sequence[float], base: float = 2.0) -> float:
    """-sum(p * log(p)) over p > 0. Bits by default; pass math.e for nats."""
    h = -math.fsum(p * math.log(p, base) for p in probabilities if p > 0)
    return max(h, 0.0)


def concentration(probabilities: Sequence[float]) -> float:
    """Largest single-outcome probability."""
    return max(probabilities)


def mean(values: Sequence[float]) -> float:
    return math.fsum(values) / len(values)


def population_variance(values: Sequence[float]) -> float:
    m = mean(values)
    return math.fsum((v - m) ** 2 for v in values) / len(values)


def population_std(values: Sequence[float]) -> float:
    return math.sqrt(population_variance(values))
