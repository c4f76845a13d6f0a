"""Command-line entry for crmcalendar_lite.

Expands the stored events in a YAML/JSON file over a query window and prints
the resulting occurrences as JSON. Useful for inspecting how a series will be
rendered without going through the calendar API.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

import yaml

from . import _init_logging
from .config_loader import load_config
from .config_manager import ConfigManager
from .lite_exceptions import RecurrenceExpansionError
from .lite_expander import coerce_event, expand_events
from .lite_logging import configure_lite_logging
from .lite_occurrence_generator import GenerationBudget
from .lite_recurrence_formatter import format_recurrence_summary
from .lite_recurrence_model import extract_recurrence_descriptor

EXIT_OK = 0
EXIT_EXPANSION_ERROR = 2


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for crmcalendar_lite CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="crmcalendar_lite",
        description="CRM Calendar Lite - expand recurring events into concrete occurrences",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m crmcalendar_lite events.yaml --start 2024-01-01T00:00:00Z --end 2024-02-01T00:00:00Z
  python -m crmcalendar_lite events.json --start 2024-01-01 --end 2024-12-31 --summary
        """,
    )

    parser.add_argument(
        "events_file",
        metavar="EVENTS_FILE",
        help="YAML or JSON file holding a list of event records (or {'events': [...]})",
    )
    parser.add_argument("--start", required=True, metavar="ISO", help="Inclusive window start")
    parser.add_argument("--end", required=True, metavar="ISO", help="Exclusive window end")
    parser.add_argument(
        "--max-occurrences",
        type=int,
        metavar="N",
        help="Cap on raw candidates per event (default: 730, or from CRMCAL_MAX_OCCURRENCES)",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to a YAML config file (default: ./crmcalendar_lite/config.yaml)",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a recurrence summary per event instead of occurrences",
    )

    return parser


def _load_event_records(path: Path) -> list[dict[str, Any]]:
    """Read event records from ``path``.

    Raises:
        ValueError: If the file does not hold a list of mappings
    """
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("events")
    if data is None:
        return []
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError(f"{path} must contain a list of event records")
    return data


def _render_summaries(records: list[dict[str, Any]]) -> list[dict[str, str]]:
    summaries = []
    for record in records:
        event = coerce_event(record)
        descriptor = extract_recurrence_descriptor(event)
        summaries.append(
            {
                "event_id": event.event_id,
                "title": event.title,
                "summary": format_recurrence_summary(descriptor),
            }
        )
    return summaries


def run(args: argparse.Namespace) -> int:
    """Execute one CLI invocation and return the process exit status."""
    env_config = ConfigManager().load_full_config()
    if args.max_occurrences is not None:
        env_config["max_generated_occurrences"] = args.max_occurrences
    config = load_config(args.config, env_overrides=env_config)
    _init_logging(config.log_level)
    configure_lite_logging(log_level=config.log_level)

    records = _load_event_records(Path(args.events_file))

    if args.summary:
        output: Any = _render_summaries(records)
    else:
        budget = GenerationBudget.from_settings(config)
        occurrences = expand_events(records, args.start, args.end, budget)
        output = [occurrence.model_dump(mode="json") for occurrence in occurrences]

    print(json.dumps(output, indent=2))
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Run the crmcalendar_lite CLI.

    Typed expansion errors and unreadable input files are reported as a single
    line on stderr with exit status 2.
    """
    parser = _create_parser()
    args = parser.parse_args(argv)

    try:
        sys.exit(run(args))
    except RecurrenceExpansionError as exc:
        print(f"crmcalendar_lite: {type(exc).__name__}: {exc}", file=sys.stderr)
        sys.exit(EXIT_EXPANSION_ERROR)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"crmcalendar_lite: {exc}", file=sys.stderr)
        sys.exit(EXIT_EXPANSION_ERROR)


if __name__ == "__main__":
    main()
