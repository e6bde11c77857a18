"""MarketEntry - mutable per-market state owned by the store."""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from threading import Lock

from lmsrengine.kernel.numeric import clamp
from lmsrengine.models.market import MarketConfig
from lmsrengine.models.results import MarketEntrySnapshot, RecordedBet


def decay_multiplier(decay_factor: float, elapsed_minutes: float) -> float:
    """decay_factor ** minutes, kept in [0, 1]. Zero elapsed time means no decay."""
    if elapsed_minutes <= 0:
        return 1.0
    return clamp(decay_factor ** elapsed_minutes, 0.0, 1.0)


@dataclass
class MarketEntry:
    """Running volumes, last prices and recent bets for one market.

    Callers must hold ``lock`` while reading or mutating anything but ``config``.
    """

    market_id: str
    config: MarketConfig
    volumes: list[float]
    last_probabilities: list[float]
    total_volume: float = 0.0
    last_update_ts: float | None = None
    recent_bets: deque[RecordedBet] = field(default_factory=deque)
    wager_count: int = 0
    lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    @classmethod
    def new(cls, market_id: str, config: MarketConfig, max_bet_history: int) -> MarketEntry:
        n = config.num_outcomes
        return cls(
            market_id=market_id,
            config=config,
            volumes=[0.0] * n,
            last_probabilities=[1.0 / n] * n,
            recent_bets=deque(maxlen=max_bet_history),
        )

    @property
    def active(self) -> bool:
        return self.wager_count > 0

    def elapsed_minutes(self, now: float) -> float:
        if self.last_update_ts is None:
            return 0.0
        return max(now - self.last_update_ts, 0.0) / 60.0

    def bets_since(self, cutoff: float) -> int:
        """Bets strictly newer than ``cutoff``."""
        return sum(1 for b in self.recent_bets if b.timestamp > cutoff)

    def to_snapshot(self) -> MarketEntrySnapshot:
        return MarketEntrySnapshot(
            market_id=self.market_id,
            config=self.config,
            volumes=list(self.volumes),
            last_probabilities=list(self.last_probabilities),
            total_volume=self.total_volume,
            last_update_ts=self.last_update_ts,
            recent_bets=list(self.recent_bets),
            wager_count=self.wager_count,
        )

    @classmethod
    def from_snapshot(cls, snapshot: MarketEntrySnapshot, max_bet_history: int) -> MarketEntry:
        n = snapshot.config.num_outcomes
        if len(snapshot.volumes) != n or len(snapshot.last_probabilities) != n:
            raise ValueError(f"snapshot vectors must have {n} entries")
        if any(not math.isfinite(v) or v < 0 for v in snapshot.volumes):
            raise ValueError("snapshot volumes must be finite and >= 0")
        return cls(
            market_id=snapshot.market_id,
            config=snapshot.config,
            volumes=list(snapshot.volumes),
            last_probabilities=list(snapshot.last_probabilities),
            total_volume=snapshot.total_volume,
            last_update_ts=snapshot.last_update_ts,
            recent_bets=deque(snapshot.recent_bets, maxlen=max_bet_history),
            wager_count=snapshot.wager_count,
        )
