"""MarketStateStore - incremental per-market LMSR state with decay and manipulation flags."""

from __future__ import annotations

import math
import time
from datetime import datetime
from threading import Lock
from typing import Any, Mapping

import structlog

from lmsrengine.cache.entry import MarketEntry, decay_multiplier
from lmsrengine.cache.manipulation import ManipulationDetector
from lmsrengine.cache.settings import CacheSettings
from lmsrengine.errors import InvalidInput, UnknownMarket
from lmsrengine.kernel.numeric import clamp
from lmsrengine.kernel.probability import (
    calculate_adjusted_probabilities,
    calculate_probabilities,
    validate_index,
)
from lmsrengine.kernel.risk import confidence_metrics
from lmsrengine.models.market import Bet, MarketConfig, coerce_bet, make_config
from lmsrengine.models.results import (
    EfficiencyReport,
    MarketEntrySnapshot,
    OutcomeCalibration,
    RecordedBet,
    WagerResult,
)

log = structlog.get_logger(__name__)


def _epoch_seconds(now: float | datetime | None) -> float:
    if now is None:
        return time.time()
    if isinstance(now, datetime):
        return now.timestamp()
    try:
        ts = float(now)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"timestamp must be epoch seconds or a datetime, got {now!r}") from e
    if not math.isfinite(ts):
        raise InvalidInput(f"timestamp must be finite, got {now!r}")
    return ts


class MarketStateStore:
    """Holds one MarketEntry per market id.

    Each wager is a single transaction under that market's lock: decay, detect,
    accumulate, reprice. Different markets never contend; the store lock only guards
    the id -> entry table.
    """

    def __init__(self, settings: CacheSettings | None = None) -> None:
        self.settings = settings or CacheSettings()
        self._detector = ManipulationDetector(self.settings.manipulation)
        self._entries: dict[str, MarketEntry] = {}
        self._lock = Lock()

    @property
    def default_config(self) -> MarketConfig:
        return make_config(self.settings.liquidity_param, self.settings.num_outcomes)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, market_id: object) -> bool:
        with self._lock:
            return market_id in self._entries

    def market_ids(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def _create(self, market_id: str, config: MarketConfig) -> MarketEntry:
        entry = MarketEntry.new(market_id, config, self.settings.max_bet_history)
        self._entries[market_id] = entry
        log.info(
            "market_created",
            market_id=market_id,
            liquidity_param=config.liquidity_param,
            num_outcomes=config.num_outcomes,
        )
        return entry

    def register_market(self, market_id: str, config: MarketConfig) -> MarketEntry:
        """Create the entry for a market up front. Re-registering with a different config fails."""
        with self._lock:
            entry = self._entries.get(market_id)
            if entry is None:
                return self._create(market_id, config)
            if entry.config != config:
                raise InvalidInput(f"market {market_id} already registered with a different config")
            return entry

    def get_entry(self, market_id: str) -> MarketEntry:
        with self._lock:
            entry = self._entries.get(market_id)
        if entry is None:
            raise UnknownMarket(market_id)
        return entry

    def remove(self, market_id: str) -> None:
        with self._lock:
            if self._entries.pop(market_id, None) is None:
                raise UnknownMarket(market_id)

    def get_probabilities(self, market_id: str) -> list[float]:
        entry = self.get_entry(market_id)
        with entry.lock:
            return list(entry.last_probabilities)

    def _entry_for_wager(self, market_id: str, bet: Bet, config: MarketConfig | None) -> MarketEntry:
        with self._lock:
            entry = self._entries.get(market_id)
            if entry is not None and config is not None and config != entry.config:
                raise InvalidInput(f"market {market_id} already registered with a different config")
            cfg = entry.config if entry is not None else (config or self.default_config)
            validate_index(bet.outcome_index, cfg.num_outcomes)
            if entry is None:
                entry = self._create(market_id, cfg)
            return entry

    def _reprice(self, entry: MarketEntry, volumes: list[float], outcome_index: int) -> list[float]:
        s = self.settings
        if s.learning_rate > 0:
            return calculate_adjusted_probabilities(
                entry.config.liquidity_param,
                volumes,
                entry.last_probabilities,
                outcome_index,
                learning_rate=s.learning_rate,
                bounds=s.bounds,
            )
        return calculate_probabilities(entry.config.liquidity_param, volumes, bounds=s.bounds)

    def record_wager(
        self,
        market_id: str,
        bet: Bet | Mapping[str, Any],
        now: float | datetime | None = None,
        *,
        config: MarketConfig | None = None,
    ) -> WagerResult:
        """Fold a wager into the market's running state and return the new prices.

        ``now`` is epoch seconds (or a datetime); it defaults to the current time.
        Timestamps older than the market's last update are treated as zero elapsed time.
        """
        bet = coerce_bet(bet)
        ts = _epoch_seconds(now)
        while True:
            entry = self._entry_for_wager(market_id, bet, config)
            with entry.lock:
                # A concurrent restore() or remove() may have replaced the entry.
                with self._lock:
                    current = self._entries.get(market_id) is entry
                if current:
                    return self._apply_wager(entry, bet, ts)

    def _apply_wager(self, entry: MarketEntry, bet: Bet, ts: float) -> WagerResult:
        market_id = entry.market_id
        if entry.last_update_ts is not None and ts < entry.last_update_ts:
            log.warning(
                "wager_timestamp_out_of_order",
                market_id=market_id,
                timestamp=ts,
                last_update_ts=entry.last_update_ts,
            )
            ts = entry.last_update_ts
        decay = decay_multiplier(self.settings.decay_factor, entry.elapsed_minutes(ts))
        volumes = [v * decay for v in entry.volumes]
        total = entry.total_volume * decay
        if decay < 1.0:
            log.debug("wager_decay_applied", market_id=market_id, decay=decay)

        reasons = self._detector.check(bet, total, entry, ts)
        flagged = bool(reasons)
        if flagged:
            log.warning(
                "potential_manipulation",
                market_id=market_id,
                outcome_index=bet.outcome_index,
                amount=bet.amount,
                total_volume=total,
                reasons=reasons,
            )

        volumes[bet.outcome_index] += bet.amount
        total += bet.amount
        probs = self._reprice(entry, volumes, bet.outcome_index)

        # Commit only after repricing succeeded.
        entry.volumes = volumes
        entry.total_volume = total
        entry.last_probabilities = probs
        entry.last_update_ts = ts
        entry.wager_count += 1
        entry.recent_bets.append(
            RecordedBet(
                outcome_index=bet.outcome_index,
                amount=bet.amount,
                timestamp=ts,
                manipulation_flag=flagged,
            )
        )

        return WagerResult(
            market_id=market_id,
            probabilities=list(probs),
            confidence_metrics=confidence_metrics(probs),
            manipulation_flag=flagged,
            manipulation_reasons=reasons,
            decay_multiplier=decay,
            total_volume=total,
        )

    def snapshot(self, market_id: str) -> MarketEntrySnapshot:
        entry = self.get_entry(market_id)
        with entry.lock:
            return entry.to_snapshot()

    def restore(self, snapshot: MarketEntrySnapshot) -> MarketEntry:
        """Load a saved entry, replacing any current state for that market."""
        try:
            entry = MarketEntry.from_snapshot(snapshot, self.settings.max_bet_history)
        except ValueError as e:
            raise InvalidInput(str(e)) from e
        with self._lock:
            self._entries[snapshot.market_id] = entry
        log.info("market_restored", market_id=snapshot.market_id, wager_count=snapshot.wager_count)
        return entry

    def simulate_market_efficiency(self, market_id: str, ground_truth_outcome: int) -> EfficiencyReport:
        """Score the market's last prices against the outcome that actually happened."""
        entry = self.get_entry(market_id)
        with entry.lock:
            probs = list(entry.last_probabilities)
        validate_index(ground_truth_outcome, len(probs))
        performance = []
        for i, p in enumerate(probs):
            hit = 1 if i == ground_truth_outcome else 0
            performance.append(
                OutcomeCalibration(probability=p, accuracy=hit, calibration_error=clamp(abs(p - hit), 0.0, 1.0))
            )
        return EfficiencyReport(
            market_id=market_id,
            final_probabilities=probs,
            performance=performance,
            market_efficiency=1.0 - sum(c.calibration_error for c in performance),
        )
