"""Occurrence generation for recurring calendar events.

The stepping loop walks a cursor forward from the series start, one pattern
unit times the interval per step, and emits the candidates that overlap the
query window. Work is bounded by a ``GenerationBudget``: at most
``max_candidates`` raw candidates are produced per call, counted from the
series start and not from the window start, so an old unbounded series can
run out of budget before it reaches a far-future window.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from dateutil.relativedelta import relativedelta

from .config_manager import get_config_value
from .lite_exceptions import InvalidTimestamp
from .lite_models import (
    BaseEventDefinition,
    CountEnd,
    Occurrence,
    RecurrenceDescriptor,
    RecurrenceEnd,
    RecurrencePatternType,
    UntilEnd,
)
from .lite_window_filter import ExpansionWindow

logger = logging.getLogger(__name__)

DEFAULT_MAX_CANDIDATES = 730
DEFAULT_SAFETY_HORIZON_YEARS = 5


@dataclass(frozen=True)
class GenerationBudget:
    """Bounds on the work done by one expansion call.

    Attributes:
        max_candidates: Hard ceiling on raw candidates generated per base event,
            visible or not
        safety_horizon_years: Series end used for series without an until date
    """

    max_candidates: int = DEFAULT_MAX_CANDIDATES
    safety_horizon_years: int = DEFAULT_SAFETY_HORIZON_YEARS

    def __post_init__(self) -> None:
        if self.max_candidates < 1:
            raise ValueError(f"max_candidates must be >= 1, got {self.max_candidates}")
        if self.safety_horizon_years < 1:
            raise ValueError(
                f"safety_horizon_years must be >= 1, got {self.safety_horizon_years}"
            )

    @classmethod
    def from_settings(cls, settings: Any) -> "GenerationBudget":
        """Extract a budget from a settings object or mapping.

        Args:
            settings: Config dataclass, dict or any object with the budget settings

        Returns:
            GenerationBudget with values from settings or defaults
        """
        return cls(
            max_candidates=int(
                get_config_value(settings, "max_generated_occurrences", DEFAULT_MAX_CANDIDATES)
            ),
            safety_horizon_years=int(
                get_config_value(settings, "safety_horizon_years", DEFAULT_SAFETY_HORIZON_YEARS)
            ),
        )

    def candidate_limit(self, end: RecurrenceEnd) -> int:
        """Raw candidates allowed for a series with this end condition."""
        if isinstance(end, CountEnd):
            return min(end.count, self.max_candidates)
        return self.max_candidates

    def series_end(self, series_start: datetime, end: RecurrenceEnd) -> datetime:
        """Last instant a candidate may start at, ignoring the query window."""
        if isinstance(end, UntilEnd):
            return end.until
        try:
            return series_start + relativedelta(years=self.safety_horizon_years)
        except (OverflowError, ValueError) as e:
            raise InvalidTimestamp(
                f"safety horizon from {series_start.isoformat()} is out of range"
            ) from e


def _step_days(cursor: datetime, interval: int) -> datetime:
    return cursor + timedelta(days=interval)


def _step_weeks(cursor: datetime, interval: int) -> datetime:
    # Flat 7-day jumps from the original start; configured weekdays are not consulted.
    return cursor + timedelta(days=7 * interval)


def _step_months(cursor: datetime, interval: int) -> datetime:
    return cursor + relativedelta(months=interval)


def _step_years(cursor: datetime, interval: int) -> datetime:
    return cursor + relativedelta(years=interval)


# One entry per RecurrencePatternType member; CUSTOM steps daily so the loop always advances.
_STEPPERS: dict[RecurrencePatternType, Callable[[datetime, int], datetime]] = {
    RecurrencePatternType.DAILY: _step_days,
    RecurrencePatternType.WEEKLY: _step_weeks,
    RecurrencePatternType.MONTHLY: _step_months,
    RecurrencePatternType.YEARLY: _step_years,
    RecurrencePatternType.CUSTOM: _step_days,
}


def next_start(pattern: RecurrencePatternType, cursor: datetime, interval: int) -> datetime:
    """Advance ``cursor`` by one pattern unit times ``interval``.

    Raises:
        InvalidTimestamp: If the next start leaves the representable date range
    """
    stepper = _STEPPERS[pattern]
    try:
        return stepper(cursor, interval)
    except (OverflowError, ValueError) as e:
        raise InvalidTimestamp(
            f"stepping {pattern.value} x{interval} from {cursor.isoformat()} is out of range"
        ) from e


def build_occurrence(
    base_event: BaseEventDefinition,
    start: datetime,
    end: datetime,
    is_recurring: bool = True,
) -> Occurrence:
    """Copy the display fields of ``base_event`` onto a new instance."""
    return Occurrence(
        title=base_event.title,
        description=base_event.description,
        location=base_event.location,
        is_all_day=base_event.is_all_day,
        start_time=start,
        end_time=end,
        original_start_time=start,
        google_event_id=base_event.google_event_id,
        zoom_meeting_id=base_event.zoom_meeting_id,
        parent_event_id=base_event.parent_event_id,
        is_exception=base_event.is_exception,
        exception_date=base_event.exception_date,
        is_recurring=is_recurring,
    )


def generate_single(base_event: BaseEventDefinition, window: ExpansionWindow) -> list[Occurrence]:
    """Non-recurring path: the base event itself, if it overlaps the window."""
    if window.contains(base_event.start_time, base_event.end_time):
        return [
            build_occurrence(
                base_event,
                base_event.start_time,
                base_event.end_time,
                is_recurring=base_event.is_recurring,
            )
        ]
    return []


def generate_occurrences(
    base_event: BaseEventDefinition,
    descriptor: Optional[RecurrenceDescriptor],
    window: ExpansionWindow,
    budget: Optional[GenerationBudget] = None,
) -> list[Occurrence]:
    """Materialize the occurrences of ``base_event`` that overlap ``window``.

    Args:
        base_event: Stored event definition
        descriptor: Resolved recurrence descriptor, or None for a single instance
        window: Validated query window
        budget: Generation bounds (defaults to 730 candidates / 5 years)

    Returns:
        Occurrences ordered oldest first, without series identity stamped

    Raises:
        InvalidTimestamp: If date arithmetic leaves the representable range
    """
    if descriptor is None:
        return generate_single(base_event, window)

    budget = budget or GenerationBudget()

    duration = base_event.end_time - base_event.start_time
    series_end = budget.series_end(base_event.start_time, descriptor.end)
    iteration_limit = min(window.end, series_end)
    max_generated = budget.candidate_limit(descriptor.end)

    logger.debug(
        "Expanding event_id=%s series_id=%s pattern=%s interval=%d start=%s "
        "window=[%s, %s) iteration_limit=%s max_generated=%d",
        base_event.event_id,
        base_event.series_id or "N/A",
        descriptor.pattern.value,
        descriptor.interval,
        base_event.start_time.isoformat(),
        window.start.isoformat(),
        window.end.isoformat(),
        iteration_limit.isoformat(),
        max_generated,
    )

    occurrences: list[Occurrence] = []
    cursor = base_event.start_time
    generated = 0

    while cursor <= iteration_limit and generated < max_generated:
        try:
            candidate_end = cursor + duration
        except OverflowError as e:
            raise InvalidTimestamp(
                f"occurrence end after {cursor.isoformat()} is out of range"
            ) from e

        if window.contains(cursor, candidate_end):
            occurrences.append(build_occurrence(base_event, cursor, candidate_end))

        # Counted whether or not the candidate was visible.
        generated += 1
        if generated >= max_generated:
            break

        cursor = next_start(descriptor.pattern, cursor, descriptor.interval)

    capped_by_count = (
        isinstance(descriptor.end, CountEnd) and descriptor.end.count <= budget.max_candidates
    )
    if generated >= budget.max_candidates and not capped_by_count:
        logger.warning(
            "Event %s hit the %d-candidate generation cap at %s; later occurrences "
            "before %s are not materialized",
            base_event.event_id,
            budget.max_candidates,
            cursor.isoformat(),
            iteration_limit.isoformat(),
        )

    logger.debug(
        "Expansion of event %s generated %d candidates, emitted %d",
        base_event.event_id,
        generated,
        len(occurrences),
    )
    return occurrences
