"""Timestamp parsing and normalisation helpers for recurring-event expansion.

Every timestamp that enters the engine goes through ``parse_timestamp`` so that
malformed input surfaces as a typed ``InvalidTimestamp`` instead of a
non-comparable value deep inside the stepping loop.
"""

import logging
import math
from datetime import UTC, date, datetime
from typing import Any, Optional

from dateutil import parser as dateutil_parser

from .lite_exceptions import InvalidTimestamp

logger = logging.getLogger(__name__)


def to_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware datetime in UTC (naive input is taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_timestamp(value: Any, field_name: str = "timestamp") -> datetime:
    """Parse a stored timestamp into an aware UTC datetime.

    Accepts ``datetime`` objects, ``date`` objects (midnight UTC), ISO-8601
    strings and finite POSIX seconds.

    Args:
        value: Raw value from the storage layer or caller
        field_name: Name used in the error message

    Returns:
        Aware datetime normalised to UTC

    Raises:
        InvalidTimestamp: If the value is missing, unparseable or non-finite
    """
    if value is None:
        raise InvalidTimestamp(f"{field_name} is missing")

    if isinstance(value, datetime):
        return to_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)

    if isinstance(value, bool):
        raise InvalidTimestamp(f"{field_name} must be a timestamp, got {value!r}")

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise InvalidTimestamp(f"{field_name} is not finite: {value!r}")
        try:
            return datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError, ValueError) as e:
            raise InvalidTimestamp(f"{field_name} is out of range: {value!r}") from e

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidTimestamp(f"{field_name} is empty")
        try:
            parsed = dateutil_parser.isoparse(text)
        except (ValueError, OverflowError) as e:
            raise InvalidTimestamp(f"{field_name} is not an ISO-8601 timestamp: {value!r}") from e
        return to_utc(parsed)

    raise InvalidTimestamp(f"{field_name} has unsupported type {type(value).__name__}")


def parse_optional_timestamp(value: Any, field_name: str = "timestamp") -> Optional[datetime]:
    """Like ``parse_timestamp`` but maps ``None`` and empty strings to ``None``."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_timestamp(value, field_name)


def format_iso(dt: datetime) -> str:
    """Format an aware datetime as ISO-8601 in UTC with a ``Z`` suffix."""
    return to_utc(dt).isoformat().replace("+00:00", "Z")
