"""Error taxonomy - caller-correctable input errors and numeric failures."""

from __future__ import annotations


class LMSRError(Exception):
    """Base for all engine errors."""


class InvalidInput(LMSRError, ValueError):
    """Bad liquidity parameter, vector length, amount or outcome index. Never retried."""


class IndexOutOfRange(InvalidInput, IndexError):
    """Outcome index outside [0, num_outcomes)."""

    def __init__(self, index: int, num_outcomes: int) -> None:
        super().__init__(f"outcome_index {index} out of range [0, {num_outcomes})")
        self.index = index
        self.num_outcomes = num_outcomes


class NumericInstability(LMSRError, ArithmeticError):
    """NaN or infinite intermediate result. Surfaced instead of propagated."""


class UnknownMarket(LMSRError, KeyError):
    """No entry for the market id in the state store."""

    def __init__(self, market_id: str) -> None:
        super().__init__(market_id)
        self.market_id = market_id

    def __str__(self) -> str:
        return f"unknown market: {self.market_id}"
