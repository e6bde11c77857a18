"""Manipulation heuristics - volume spikes, oversized bets, rapid bet sequences."""

from __future__ import annotations

from lmsrengine.cache.entry import MarketEntry
from lmsrengine.cache.settings import ManipulationThresholds
from lmsrengine.models.market import Bet

VOLUME_SPIKE = "volume_spike"
OVERSIZED_BET = "oversized_bet"
RAPID_SEQUENCE = "rapid_sequence"


class ManipulationDetector:
    """Checks a wager against the market state it is about to join.

    Advisory: returns the names of the heuristics that fired; an empty list means clean.
    Run it on the decayed state before the wager is accumulated or logged.
    """

    __slots__ = ("thresholds",)

    def __init__(self, thresholds: ManipulationThresholds | None = None) -> None:
        self.thresholds = thresholds or ManipulationThresholds()

    def check(self, bet: Bet, total_volume: float, entry: MarketEntry, now: float) -> list[str]:
        t = self.thresholds
        reasons: list[str] = []
        if bet.amount / max(total_volume, 1.0) > t.volume_spike_ratio:
            reasons.append(VOLUME_SPIKE)
        if bet.amount > total_volume * t.max_bet_ratio:
            reasons.append(OVERSIZED_BET)
        if entry.bets_since(now - t.rapid_window_seconds) >= t.rapid_bet_count:
            reasons.append(RAPID_SEQUENCE)
        return reasons
