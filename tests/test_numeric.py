"""Shared numeric helper tests."""

import math

import pytest

from lmsrengine.errors import InvalidInput, NumericInstability
from lmsrengine.kernel.numeric import (
    clamp_and_normalize,
    ensure_finite,
    logsumexp,
    normalize,
    safe_exp,
    shannon_entropy,
)


def test_logsumexp_basic():
    # log(e^1 + e^2 + e^3)
    assert abs(logsumexp([1.0, 2.0, 3.0]) - 3.4076059644443806) < 1e-9


def test_logsumexp_large_values():
    result = logsumexp([1000.0, 1001.0, 999.0])
    expected = 1001.0 + math.log(math.exp(-1) + 1 + math.exp(-2))
    assert abs(result - expected) < 1e-6


def test_logsumexp_empty_raises():
    with pytest.raises(InvalidInput):
        logsumexp([])


def test_logsumexp_rejects_non_finite():
    with pytest.raises(NumericInstability):
        logsumexp([1.0, float("nan")])


def test_safe_exp_overflow():
    with pytest.raises(NumericInstability):
        safe_exp(1000.0)
    assert safe_exp(0.0) == 1.0


def test_normalize_rejects_degenerate():
    with pytest.raises(NumericInstability):
        normalize([0.0, 0.0])
    with pytest.raises(NumericInstability):
        normalize([float("inf"), 1.0])


def test_ensure_finite():
    assert ensure_finite([1.0, 2.0]) == [1.0, 2.0]
    with pytest.raises(NumericInstability):
        ensure_finite([1.0, float("nan")])


def test_clamp_and_normalize():
    out = clamp_and_normalize([0.999, 0.001], 0.01, 0.99)
    assert out == [0.99, 0.01]


def test_entropy_bits_and_nats():
    assert abs(shannon_entropy([0.5, 0.5]) - 1.0) < 1e-12
    assert abs(shannon_entropy([0.5, 0.5], base=math.e) - math.log(2)) < 1e-12
    assert shannon_entropy([1.0, 0.0]) == 0.0
