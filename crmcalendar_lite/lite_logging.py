"""
Central logging configuration for crmcalendar_lite.

Keeps the package's own loggers at INFO (DEBUG on request) and quiets the
per-step expansion diagnostics unless debugging is enabled.
"""

import logging
import os
from typing import Optional

LITE_MODULES = [
    "crmcalendar_lite",
    "crmcalendar_lite.lite_expander",
    "crmcalendar_lite.lite_occurrence_generator",
    "crmcalendar_lite.lite_recurrence_model",
    "crmcalendar_lite.lite_exception_overlay",
    "crmcalendar_lite.config_loader",
    "crmcalendar_lite.config_manager",
]


_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_lite_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Configure logging levels for crmcalendar_lite.

    Args:
        debug_mode: Whether to enable debug logging for crmcalendar_lite modules
        force_debug: Override debug mode setting (None to use env var detection)
        log_level: Configured level name used when debug is off (default INFO)

    Environment Variables:
        CRMCAL_DEBUG: Set to '1', 'true', 'yes', 'on' to force debug logging
        CRMCAL_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("CRMCAL_DEBUG", "").strip().lower() in ("1", "true", "yes", "on")
    env_log_level = os.getenv("CRMCAL_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    base_level = logging.INFO
    if log_level and log_level.upper() in _LEVEL_NAMES:
        base_level = getattr(logging, log_level.upper())

    root_level = logging.DEBUG if final_debug else base_level
    if env_log_level in _LEVEL_NAMES:
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s")
        )
        root_logger.addHandler(handler)

    lite_level = logging.DEBUG if final_debug else root_level
    for module in LITE_MODULES:
        logging.getLogger(module).setLevel(lite_level)

    if final_debug:
        root_logger.debug("Debug logging enabled for crmcalendar_lite modules.")
    else:
        root_logger.debug(
            "Production logging configuration applied at %s.", logging.getLevelName(lite_level)
        )


def reset_logging_to_debug() -> None:
    """Reset the root and package loggers to DEBUG for troubleshooting."""
    logging.getLogger().setLevel(logging.DEBUG)
    for module in LITE_MODULES:
        logging.getLogger(module).setLevel(logging.DEBUG)

    logging.getLogger().info("All loggers reset to DEBUG level for troubleshooting")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in LITE_MODULES:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
