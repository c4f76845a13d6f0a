"""crmcalendar_lite.config_loader

Lightweight config loader for crmcalendar_lite.

- Reads YAML (PyYAML); JSON files load too since YAML is a superset.
- Exposes a typed dataclass `Config` and a `load_config()` helper that accepts
  an optional path override.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

MAX_OCCURRENCES_BOUNDS = (1, 10000)
SAFETY_HORIZON_BOUNDS = (1, 50)


@dataclass
class Config:
    """Typed configuration for crmcalendar_lite.

    Fields:
        max_generated_occurrences: hard cap on raw candidates per base event (1..10000)
        safety_horizon_years: series end for events without an until date (1..50)
        worker_concurrency: concurrent expansions in the async worker pool
        yield_frequency: occurrences streamed between cooperative yields
        log_level: logging level name
    """

    max_generated_occurrences: int = 730
    safety_horizon_years: int = 5
    worker_concurrency: int = 1
    yield_frequency: int = 50
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int and clamped to their allowed
        ranges, logging warnings when coercions occur.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int) -> int:
            raw = data.get(key, default)
            try:
                return int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default

        def _clamp(key: str, value: int, bounds: tuple[int, int]) -> int:
            low, high = bounds
            if value < low:
                logger.warning("%s %d below minimum; coercing to %d", key, value, low)
                return low
            if value > high:
                logger.warning("%s %d above maximum; coercing to %d", key, value, high)
                return high
            return value

        max_occurrences = _clamp(
            "max_generated_occurrences",
            _coerce_int("max_generated_occurrences", 730),
            MAX_OCCURRENCES_BOUNDS,
        )
        horizon = _clamp(
            "safety_horizon_years",
            _coerce_int("safety_horizon_years", 5),
            SAFETY_HORIZON_BOUNDS,
        )
        concurrency = max(1, _coerce_int("worker_concurrency", 1))
        yield_frequency = max(1, _coerce_int("yield_frequency", 50))

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            max_generated_occurrences=max_occurrences,
            safety_horizon_years=horizon,
            worker_concurrency=concurrency,
            yield_frequency=yield_frequency,
            log_level=log_level,
        )


def load_config(path: str | None = None, env_overrides: dict[str, Any] | None = None) -> Config:
    """Load configuration from a YAML/JSON file and return a Config instance.

    Args:
        path: Optional path to the config file. If not provided the default is
              ./crmcalendar_lite/config.yaml (relative to current working dir).
        env_overrides: Optional mapping (e.g. from ConfigManager.build_config_from_env)
              whose keys win over the file values.

    Returns:
        Config dataclass instance with values from file (or defaults).

    Behavior:
    - If file is missing: returns Config() with defaults (plus overrides).
    - If file exists but top-level is not a mapping: raises ValueError.
    """
    p = Path(path) if path else Path.cwd() / "crmcalendar_lite" / "config.yaml"
    logger.debug("Attempting to load config from %s", p)

    raw: Any = {}
    if p.exists():
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
        # safe_load returns None for empty files
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
            raise ValueError("Config file must contain a mapping at top level")  # noqa: TRY004
        logger.info("Loaded configuration from %s", p)
    else:
        logger.info("Config file %s not found; using defaults", p)

    if env_overrides:
        raw = {**raw, **env_overrides}

    cfg = Config.from_dict(raw)
    logger.debug("Configuration values: %s", cfg)
    return cfg
