from lmsrengine.replay.engine import ReplaySummary, replay_wagers, stream_wagers

__all__ = ["ReplaySummary", "replay_wagers", "stream_wagers"]
