"""MarketStateStore tests - decay, accumulation, flags, locking, snapshots."""

import threading
from datetime import datetime, timezone

import pytest

from lmsrengine.cache import CacheSettings, MarketStateStore
from lmsrengine.cache.manipulation import RAPID_SEQUENCE, VOLUME_SPIKE
from lmsrengine.errors import IndexOutOfRange, InvalidInput, UnknownMarket
from lmsrengine.kernel import calculate_probabilities
from lmsrengine.models import Bet, MarketConfig

T0 = 1_700_000_000.0


@pytest.fixture
def store():
    return MarketStateStore()


def test_first_wager_creates_active_entry(store):
    assert "m1" not in store
    result = store.record_wager("m1", Bet(outcome_index=0, amount=10), T0)
    assert "m1" in store
    entry = store.get_entry("m1")
    assert entry.active
    assert entry.volumes == [10.0, 0.0]
    assert entry.total_volume == 10.0
    assert entry.last_update_ts == T0
    assert result.market_id == "m1"
    assert len(result.probabilities) == 2
    assert abs(sum(result.probabilities) - 1.0) < 1e-9
    assert result.probabilities[0] > result.probabilities[1]
    assert result.decay_multiplier == 1.0


def test_same_timestamp_applies_no_decay(store):
    store.record_wager("m1", Bet(outcome_index=0, amount=10), T0)
    result = store.record_wager("m1", Bet(outcome_index=1, amount=5), T0)
    assert result.decay_multiplier == 1.0
    entry = store.get_entry("m1")
    assert entry.volumes == [10.0, 5.0]
    assert entry.total_volume == 15.0


def test_volumes_decay_per_minute(store):
    store.record_wager("m1", Bet(outcome_index=0, amount=10), T0)
    result = store.record_wager("m1", Bet(outcome_index=1, amount=1), T0 + 60)
    assert abs(result.decay_multiplier - 0.95) < 1e-12
    entry = store.get_entry("m1")
    assert abs(entry.volumes[0] - 9.5) < 1e-9
    assert abs(entry.volumes[1] - 1.0) < 1e-9
    assert abs(entry.total_volume - 10.5) < 1e-9


def test_out_of_order_timestamp_is_clamped(store):
    store.record_wager("m1", Bet(outcome_index=0, amount=10), T0)
    result = store.record_wager("m1", Bet(outcome_index=0, amount=10), T0 - 300)
    assert result.decay_multiplier == 1.0
    entry = store.get_entry("m1")
    assert entry.last_update_ts == T0
    assert entry.total_volume == 20.0


def test_datetime_timestamps(store):
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    store.record_wager("m1", Bet(outcome_index=0, amount=1), now)
    assert store.get_entry("m1").last_update_ts == now.timestamp()


def test_invalid_bets_are_rejected(store):
    with pytest.raises(IndexOutOfRange):
        store.record_wager("m1", Bet(outcome_index=2, amount=1), T0)
    assert "m1" not in store
    with pytest.raises(InvalidInput):
        store.record_wager("m1", {"outcome_index": 0, "amount": 0}, T0)
    with pytest.raises(InvalidInput):
        store.record_wager("m1", {"outcome_index": 0, "amount": -5}, T0)


def test_wager_three_times_total_sets_flag(store):
    quiet = store.record_wager("m1", Bet(outcome_index=0, amount=100), T0)
    assert quiet.manipulation_flag  # first wager on an empty market
    calm = store.record_wager("m1", Bet(outcome_index=1, amount=5), T0 + 120)
    assert not calm.manipulation_flag
    assert calm.manipulation_reasons == []
    total = store.get_entry("m1").total_volume
    spike = store.record_wager("m1", Bet(outcome_index=1, amount=3 * total), T0 + 120)
    assert spike.manipulation_flag
    assert VOLUME_SPIKE in spike.manipulation_reasons
    # Advisory only: the wager was still accumulated.
    assert abs(store.get_entry("m1").total_volume - 4 * total) < 1e-9


def test_rapid_sequence_flag(store):
    store.record_wager("m1", Bet(outcome_index=0, amount=1000), T0)
    flags = [
        store.record_wager("m1", Bet(outcome_index=i % 2, amount=1), T0 + i).manipulation_flag
        for i in range(1, 6)
    ]
    assert flags == [False, False, False, False, True]
    last = store.get_entry("m1").recent_bets[-1]
    assert last.manipulation_flag


def test_bet_log_is_bounded_fifo():
    store = MarketStateStore(CacheSettings(max_bet_history=3))
    for i in range(5):
        store.record_wager("m1", Bet(outcome_index=0, amount=1), T0 + i)
    entry = store.get_entry("m1")
    assert [b.timestamp for b in entry.recent_bets] == [T0 + 2, T0 + 3, T0 + 4]
    assert entry.wager_count == 5


def test_zero_learning_rate_matches_kernel():
    store = MarketStateStore(CacheSettings(learning_rate=0.0))
    store.record_wager("m1", Bet(outcome_index=0, amount=50), T0)
    result = store.record_wager("m1", Bet(outcome_index=1, amount=30), T0)
    assert result.probabilities == calculate_probabilities(10, [50, 30], bounds=(0.01, 0.99))


def test_probabilities_stay_in_clamp_band(store):
    result = None
    for _ in range(20):
        result = store.record_wager("m1", Bet(outcome_index=0, amount=10_000), T0)
    assert all(0.0099 <= p <= 0.9901 for p in result.probabilities)
    assert abs(sum(result.probabilities) - 1.0) < 1e-9


def test_confidence_metrics_returned(store):
    result = store.record_wager("m1", Bet(outcome_index=0, amount=10), T0)
    m = result.confidence_metrics
    assert abs(m.mean - 0.5) < 1e-9
    assert m.lower <= m.mean <= m.upper
    assert m.standard_deviation > 0


def test_config_per_market():
    store = MarketStateStore()
    cfg = MarketConfig(liquidity_param=50, num_outcomes=3)
    result = store.record_wager("m3", Bet(outcome_index=2, amount=5), T0, config=cfg)
    assert len(result.probabilities) == 3
    assert store.get_entry("m3").config == cfg
    with pytest.raises(InvalidInput):
        store.record_wager("m3", Bet(outcome_index=0, amount=5), T0, config=MarketConfig(liquidity_param=1, num_outcomes=3))
    with pytest.raises(InvalidInput):
        store.register_market("m3", MarketConfig(liquidity_param=1, num_outcomes=3))


def test_register_market_then_wager(store):
    cfg = MarketConfig(liquidity_param=20, num_outcomes=4)
    entry = store.register_market("m4", cfg)
    assert not entry.active
    assert store.get_probabilities("m4") == [0.25] * 4
    store.record_wager("m4", Bet(outcome_index=3, amount=1), T0)
    assert store.get_entry("m4") is entry
    assert entry.active


def test_unknown_market(store):
    with pytest.raises(UnknownMarket):
        store.get_entry("nope")
    with pytest.raises(KeyError):
        store.snapshot("nope")
    with pytest.raises(UnknownMarket):
        store.remove("nope")


def test_remove_and_market_ids(store):
    store.record_wager("a", Bet(outcome_index=0, amount=1), T0)
    store.record_wager("b", Bet(outcome_index=0, amount=1), T0)
    assert sorted(store.market_ids()) == ["a", "b"]
    store.remove("a")
    assert store.market_ids() == ["b"]
    assert len(store) == 1


def test_snapshot_restore_continues_identically():
    original = MarketStateStore()
    for i, (idx, amt) in enumerate([(0, 10), (1, 4), (0, 2)]):
        original.record_wager("m1", Bet(outcome_index=idx, amount=amt), T0 + 30 * i)
    snap = original.snapshot("m1")
    restored = MarketStateStore()
    restored.restore(snap.model_copy(deep=True))
    a = original.record_wager("m1", Bet(outcome_index=1, amount=3), T0 + 200)
    b = restored.record_wager("m1", Bet(outcome_index=1, amount=3), T0 + 200)
    assert a.probabilities == b.probabilities
    assert a.total_volume == b.total_volume


def test_restore_rejects_bad_snapshot(store):
    store.record_wager("m1", Bet(outcome_index=0, amount=10), T0)
    snap = store.snapshot("m1").model_copy(update={"volumes": [1.0]})
    with pytest.raises(InvalidInput):
        store.restore(snap)


def test_market_efficiency(store):
    result = store.record_wager("m1", Bet(outcome_index=0, amount=20), T0)
    p0 = result.probabilities[0]
    report = store.simulate_market_efficiency("m1", 0)
    assert report.final_probabilities == result.probabilities
    assert [c.accuracy for c in report.performance] == [1, 0]
    assert abs(report.market_efficiency - (2 * p0 - 1)) < 1e-9
    with pytest.raises(IndexOutOfRange):
        store.simulate_market_efficiency("m1", 5)


def test_concurrent_wagers_on_one_market_are_serialized(store):
    def worker():
        for _ in range(50):
            store.record_wager("hot", Bet(outcome_index=0, amount=1.0), T0)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    entry = store.get_entry("hot")
    assert entry.wager_count == 400
    assert entry.total_volume == 400.0
    assert entry.volumes == [400.0, 0.0]


def test_markets_are_independent(store):
    store.record_wager("a", Bet(outcome_index=0, amount=100), T0)
    result = store.record_wager("b", Bet(outcome_index=1, amount=1), T0 + 600)
    assert store.get_entry("a").volumes == [100.0, 0.0]
    assert result.decay_multiplier == 1.0


@pytest.mark.parametrize("bad_ts", [float("nan"), float("inf"), float("-inf"), "soon"])
def test_non_finite_timestamp_rejected(store, bad_ts):
    store.record_wager("m1", Bet(outcome_index=0, amount=100), T0)
    with pytest.raises(InvalidInput):
        store.record_wager("m1", Bet(outcome_index=1, amount=2), bad_ts)
    with pytest.raises(InvalidInput):
        store.record_wager("m2", Bet(outcome_index=1, amount=2), bad_ts)
    assert "m2" not in store
    entry = store.get_entry("m1")
    assert entry.last_update_ts == T0
    assert entry.wager_count == 1
    # Decay still applies afterwards.
    result = store.record_wager("m1", Bet(outcome_index=1, amount=2), T0 + 60)
    assert result.decay_multiplier == 0.95


def test_large_learning_rate_never_fails():
    store = MarketStateStore(CacheSettings(learning_rate=0.5))
    store.record_wager("m1", Bet(outcome_index=0, amount=100), T0)
    result = store.record_wager("m1", Bet(outcome_index=1, amount=1), T0)
    assert all(0.0 < p < 1.0 for p in result.probabilities)
    assert abs(sum(result.probabilities) - 1.0) < 1e-9


def test_wager_racing_restore_lands_on_current_entry(store, monkeypatch):
    store.record_wager("m1", Bet(outcome_index=0, amount=10), T0)
    snap = store.snapshot("m1")
    real = store._entry_for_wager
    handed_out = []

    def restore_in_between(market_id, bet, config):
        entry = real(market_id, bet, config)
        if not handed_out:
            store.restore(snap)
        handed_out.append(entry)
        return entry

    monkeypatch.setattr(store, "_entry_for_wager", restore_in_between)
    store.record_wager("m1", Bet(outcome_index=1, amount=5), T0)
    entry = store.get_entry("m1")
    assert len(handed_out) == 2
    assert handed_out[0] is not entry
    assert entry.volumes == [10.0, 5.0]
    assert entry.wager_count == 2
