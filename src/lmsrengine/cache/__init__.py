"""Market state cache - decayed running volumes per market."""

from lmsrengine.cache.entry import MarketEntry, decay_multiplier
from lmsrengine.cache.manipulation import ManipulationDetector
from lmsrengine.cache.settings import CacheSettings, ManipulationThresholds
from lmsrengine.cache.store import MarketStateStore

__all__ = [
    "CacheSettings",
    "ManipulationDetector",
    "ManipulationThresholds",
    "MarketEntry",
    "MarketStateStore",
    "decay_multiplier",
]
