"""MarketEngine - kernel operations bound to one MarketConfig, over volumes or raw bets."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from lmsrengine.errors import InvalidInput
from lmsrengine.kernel.market_maker import simulate_market_making
from lmsrengine.kernel.probability import (
    calculate_cost,
    calculate_exact_cost,
    calculate_price,
    calculate_probabilities,
    validate_index,
)
from lmsrengine.kernel.risk import assess_market_risk
from lmsrengine.models.market import Bet, MarketConfig, MarketType, coerce_bet, make_config
from lmsrengine.models.results import MarketMakingQuote, RiskProfile

BetsOrVolumes = Sequence[float] | Iterable[Bet | Mapping[str, Any]]


def aggregate_bets(bets: Iterable[Bet | Mapping[str, Any]], num_outcomes: int) -> list[float]:
    """Sum bet amounts per outcome. Rejects bets on outcomes the market does not have."""
    totals = [0.0] * num_outcomes
    for raw in bets:
        bet = coerce_bet(raw)
        validate_index(bet.outcome_index, num_outcomes)
        totals[bet.outcome_index] += bet.amount
    return totals


class MarketEngine:
    """Stateless pricing for a single market shape.

    Every method accepts either per-outcome volumes (a sequence of numbers) or a list of
    bets, which are summed per outcome first.
    """

    __slots__ = ("config",)

    def __init__(self, config: MarketConfig) -> None:
        self.config = config

    @classmethod
    def create(
        cls,
        liquidity_param: float = 10.0,
        num_outcomes: int = 2,
        market_type: MarketType | str | None = None,
    ) -> MarketEngine:
        return cls(make_config(liquidity_param, num_outcomes, market_type))

    @property
    def liquidity_param(self) -> float:
        return self.config.liquidity_param

    @property
    def num_outcomes(self) -> int:
        return self.config.num_outcomes

    def volumes(self, data: BetsOrVolumes) -> list[float]:
        items = list(data)
        if items and all(isinstance(x, (int, float)) and not isinstance(x, bool) for x in items):
            if len(items) != self.num_outcomes:
                raise InvalidInput(f"expected {self.num_outcomes} volumes, got {len(items)}")
            return [float(x) for x in items]
        return aggregate_bets(items, self.num_outcomes)

    def probabilities(self, data: BetsOrVolumes) -> list[float]:
        return calculate_probabilities(self.liquidity_param, self.volumes(data))

    def price(self, data: BetsOrVolumes, outcome_index: int) -> float:
        return calculate_price(self.liquidity_param, self.volumes(data), outcome_index)

    def cost(self, data: BetsOrVolumes, outcome_index: int, share_amount: float) -> float:
        return calculate_cost(self.liquidity_param, self.volumes(data), outcome_index, share_amount)

    def exact_cost(self, data: BetsOrVolumes, outcome_index: int, share_amount: float) -> float:
        return calculate_exact_cost(self.liquidity_param, self.volumes(data), outcome_index, share_amount)

    def risk(self, data: BetsOrVolumes) -> RiskProfile:
        return assess_market_risk(self.liquidity_param, self.volumes(data))

    def market_making(self, data: BetsOrVolumes) -> MarketMakingQuote:
        return simulate_market_making(self.liquidity_param, self.volumes(data))
