"""Configuration management for crmcalendar_lite from environment variables."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Integer settings: environment variable -> config key
_ENV_INT_KEYS = {
    "CRMCAL_MAX_OCCURRENCES": "max_generated_occurrences",
    "CRMCAL_SAFETY_HORIZON_YEARS": "safety_horizon_years",
    "CRMCAL_WORKER_CONCURRENCY": "worker_concurrency",
    "CRMCAL_YIELD_FREQUENCY": "yield_frequency",
}


class ConfigManager:
    """Manages expansion configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment to avoid
        surprising overrides of user's environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []

        try:
            content = self.env_file_path.read_text(encoding="utf-8")
        except OSError:
            logger.debug(
                "Failed to read .env file for defaults (continuing): %s",
                str(self.env_file_path),
                exc_info=True,
            )
            return []

        for raw_line in content.splitlines():
            line = raw_line.strip()

            # Skip empty lines and comments
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, val = line.split("=", 1)
            key = key.strip()
            val = val.strip().strip('"').strip("'")

            if key and key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - CRMCAL_MAX_OCCURRENCES -> 'max_generated_occurrences' (int)
        - CRMCAL_SAFETY_HORIZON_YEARS -> 'safety_horizon_years' (int)
        - CRMCAL_WORKER_CONCURRENCY -> 'worker_concurrency' (int)
        - CRMCAL_YIELD_FREQUENCY -> 'yield_frequency' (int)
        - CRMCAL_LOG_LEVEL -> 'log_level'

        Returns:
            Configuration dictionary compatible with Config.from_dict
        """
        cfg: dict[str, Any] = {}

        for env_key, cfg_key in _ENV_INT_KEYS.items():
            raw = os.environ.get(env_key)
            if not raw:
                continue
            try:
                cfg[cfg_key] = int(raw)
            except ValueError:
                logger.warning("Invalid %s=%r; ignoring", env_key, raw)

        log_level = os.environ.get("CRMCAL_LOG_LEVEL")
        if log_level:
            cfg["log_level"] = log_level.upper()

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration from environment.

        Returns:
            Configuration dictionary
        """
        self.load_env_file()
        return self.build_config_from_env()


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Get configuration value supporting both dict and dataclass-like objects.

    Args:
        config: Configuration object (dict or object with attributes)
        key: Configuration key to retrieve
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)
