"""crmcalendar_lite - recurring-event expansion for the CRM calendar.

Exposes the pure expansion entry points. Imports stay light so the package can
be inspected without configuring logging or loading configuration.
"""

__version__ = "0.1.0"

from typing import Optional

from .lite_exceptions import (
    InvalidRecurrenceDescriptor,
    InvalidTimestamp,
    InvalidWindow,
    RecurrenceExpansionError,
)
from .lite_expander import (
    ExpansionWorkerPool,
    expand,
    expand_events,
    expand_series,
    expand_single,
)
from .lite_models import BaseEventDefinition, Occurrence, RecurrenceDescriptor
from .lite_occurrence_generator import GenerationBudget
from .lite_recurrence_model import extract_recurrence_descriptor

__all__ = [
    "BaseEventDefinition",
    "ExpansionWorkerPool",
    "GenerationBudget",
    "InvalidRecurrenceDescriptor",
    "InvalidTimestamp",
    "InvalidWindow",
    "Occurrence",
    "RecurrenceDescriptor",
    "RecurrenceExpansionError",
    "expand",
    "expand_events",
    "expand_series",
    "expand_single",
    "extract_recurrence_descriptor",
]


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Honors the CRMCAL_DEBUG environment variable (truthy values: "1", "true",
    "yes", "on"), which forces DEBUG verbosity.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("CRMCAL_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure basic handler if no handlers are present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message; only the level is colorized.
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )
