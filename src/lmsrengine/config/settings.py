"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from lmsrengine.cache.settings import CacheSettings, ManipulationThresholds

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    cwd_config = Path.cwd() / "config"
    if cwd_config.exists():
        return cwd_config
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    directory = _find_config_dir(config_dir)
    default_path = directory / "default.toml"
    base = _load_toml(default_path) if default_path.exists() else {}
    if profile:
        profile_path = directory / f"{profile}.toml"
        if profile_path.exists():
            base = _deep_merge(base, _load_toml(profile_path))
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    return Settings.from_dict(load_config(profile, config_dir))


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        engine: dict[str, Any] | None = None,
        cache: dict[str, Any] | None = None,
        manipulation: dict[str, Any] | None = None,
        market_making: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.engine = engine or {}
        self.cache = cache or {}
        self.manipulation = manipulation or {}
        self.market_making = market_making or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            engine=raw.get("engine"),
            cache=raw.get("cache"),
            manipulation=raw.get("manipulation"),
            market_making=raw.get("market_making"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def liquidity_param(self) -> float:
        return float(self.engine.get("liquidity_param", 10.0))

    @property
    def num_outcomes(self) -> int:
        return int(self.engine.get("num_outcomes", 2))

    @property
    def clamp_low(self) -> float:
        return float(self.engine.get("clamp_low", 0.01))

    @property
    def clamp_high(self) -> float:
        return float(self.engine.get("clamp_high", 0.99))

    @property
    def decay_factor(self) -> float:
        return float(self.cache.get("decay_factor", 0.95))

    @property
    def learning_rate(self) -> float:
        return float(self.cache.get("learning_rate", 0.1))

    @property
    def max_bet_history(self) -> int:
        return int(self.cache.get("max_bet_history", 1000))

    @property
    def volume_spike_ratio(self) -> float:
        return float(self.manipulation.get("volume_spike_ratio", 2.0))

    @property
    def max_bet_ratio(self) -> float:
        return float(self.manipulation.get("max_bet_ratio", 0.2))

    @property
    def rapid_bet_count(self) -> int:
        return int(self.manipulation.get("rapid_bet_count", 5))

    @property
    def rapid_window_seconds(self) -> float:
        return float(self.manipulation.get("rapid_window_seconds", 60.0))

    @property
    def base_half_spread(self) -> float:
        return float(self.market_making.get("base_half_spread", 0.05))

    @property
    def min_half_spread(self) -> float:
        return float(self.market_making.get("min_half_spread", 0.005))

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)

    def cache_settings(self) -> CacheSettings:
        """Build the store's tunables from [engine], [cache] and [manipulation]."""
        return CacheSettings(
            liquidity_param=self.liquidity_param,
            num_outcomes=self.num_outcomes,
            decay_factor=self.decay_factor,
            learning_rate=self.learning_rate,
            clamp_low=self.clamp_low,
            clamp_high=self.clamp_high,
            max_bet_history=self.max_bet_history,
            manipulation=ManipulationThresholds(
                volume_spike_ratio=self.volume_spike_ratio,
                max_bet_ratio=self.max_bet_ratio,
                rapid_bet_count=self.rapid_bet_count,
                rapid_window_seconds=self.rapid_window_seconds,
            ),
        )


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
