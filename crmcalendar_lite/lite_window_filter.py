"""Half-open window overlap checks for expanded occurrences."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .lite_datetime_utils import parse_timestamp
from .lite_exceptions import InvalidWindow

logger = logging.getLogger(__name__)


def overlaps(
    candidate_start: datetime,
    candidate_end: datetime,
    window_start: datetime,
    window_end: datetime,
) -> bool:
    """Return True if ``[candidate_start, candidate_end)`` intersects the window.

    An occurrence ending exactly at ``window_start`` or starting exactly at
    ``window_end`` does not overlap.
    """
    return candidate_start < window_end and candidate_end > window_start


@dataclass(frozen=True)
class ExpansionWindow:
    """Validated query window ``[start, end)`` in UTC."""

    start: datetime
    end: datetime

    @classmethod
    def create(cls, start: Any, end: Any) -> "ExpansionWindow":
        """Parse and validate a caller-supplied window.

        Raises:
            InvalidTimestamp: If either bound is unparseable
            InvalidWindow: If ``end <= start``
        """
        start_dt = parse_timestamp(start, "window_start")
        end_dt = parse_timestamp(end, "window_end")

        if end_dt <= start_dt:
            raise InvalidWindow(
                f"window end {end_dt.isoformat()} must be after start {start_dt.isoformat()}"
            )
        return cls(start=start_dt, end=end_dt)

    def contains(self, candidate_start: datetime, candidate_end: datetime) -> bool:
        """Overlap test of one candidate against this window."""
        return overlaps(candidate_start, candidate_end, self.start, self.end)
