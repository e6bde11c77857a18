"""Deterministic replay of a JSON-lines wager log through a MarketStateStore."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import structlog

from lmsrengine.cache.store import MarketStateStore
from lmsrengine.errors import InvalidInput
from lmsrengine.models.market import make_config

log = structlog.get_logger(__name__)


def stream_wagers(path: str | Path) -> Iterator[tuple[int, dict[str, Any]]]:
    """Yield (line_no, record) for each JSON object line. Blank and malformed lines are skipped."""
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                log.warning("replay_bad_json", line=line_no)
                continue
            if not isinstance(record, dict):
                log.warning("replay_bad_record", line=line_no)
                continue
            yield (line_no, record)


@dataclass
class ReplaySummary:
    """Result of a replay run."""

    wagers_applied: int = 0
    wagers_rejected: int = 0
    flagged: int = 0
    final_probabilities: dict[str, list[float]] = field(default_factory=dict)


def replay_wagers(store: MarketStateStore, path: str | Path) -> ReplaySummary:
    """Apply every wager in the file in order. Same file + same settings -> same prices.

    Each record needs ``market_id``, ``outcome_index``, ``amount`` and ``timestamp``
    (epoch seconds); ``liquidity_param``/``num_outcomes`` configure a market on its first
    wager, otherwise the store defaults apply. Records the store rejects are counted.
    """
    summary = ReplaySummary()
    for line_no, record in stream_wagers(path):
        try:
            market_id = str(record["market_id"])
            config = None
            if "liquidity_param" in record or "num_outcomes" in record:
                config = make_config(
                    record.get("liquidity_param", store.settings.liquidity_param),
                    record.get("num_outcomes", store.settings.num_outcomes),
                )
            result = store.record_wager(
                market_id,
                {"outcome_index": record.get("outcome_index"), "amount": record.get("amount")},
                float(record["timestamp"]),
                config=config,
            )
        except (KeyError, TypeError, ValueError, InvalidInput) as e:
            summary.wagers_rejected += 1
            log.warning("replay_wager_rejected", line=line_no, error=str(e))
            continue
        summary.wagers_applied += 1
        if result.manipulation_flag:
            summary.flagged += 1
        summary.final_probabilities[market_id] = result.probabilities
    return summary
