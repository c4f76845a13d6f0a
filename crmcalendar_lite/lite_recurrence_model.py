"""Recurrence descriptor extraction for stored calendar events.

Turns the flat ``recurrence_*`` columns of a ``BaseEventDefinition`` into a
validated ``RecurrenceDescriptor``. ``None`` is the "not recurring" result:
the event is expanded as a single instance.
"""

import logging
from typing import Optional

from .lite_models import (
    BaseEventDefinition,
    CountEnd,
    RecurrenceDescriptor,
    RecurrenceEnd,
    RecurrencePatternType,
    UnboundedEnd,
    UntilEnd,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 1


def resolve_interval(raw_interval: Optional[int]) -> int:
    """Interval defaults to 1 when absent or not positive."""
    if raw_interval is None or raw_interval <= 0:
        return DEFAULT_INTERVAL
    return raw_interval


def resolve_end_condition(base_event: BaseEventDefinition) -> RecurrenceEnd:
    """Pick the series end condition.

    A positive ``recurrence_count`` wins over ``recurrence_end_date`` when both
    are populated. A count of zero or less is treated as unset.
    """
    count = base_event.recurrence_count
    if count is not None and count > 0:
        if base_event.recurrence_end_date is not None:
            logger.debug(
                "Event %s has both recurrence_count=%d and recurrence_end_date=%s; using count",
                base_event.event_id,
                count,
                base_event.recurrence_end_date.isoformat(),
            )
        return CountEnd(count=count)

    if base_event.recurrence_end_date is not None:
        return UntilEnd(until=base_event.recurrence_end_date)

    return UnboundedEnd()


def extract_recurrence_descriptor(
    base_event: BaseEventDefinition,
) -> Optional[RecurrenceDescriptor]:
    """Build the recurrence descriptor for ``base_event``.

    Args:
        base_event: Stored event definition

    Returns:
        RecurrenceDescriptor, or None when the event is not recurring or has no
        recurrence pattern stored
    """
    if not base_event.is_recurring:
        return None

    raw_pattern = base_event.recurrence_pattern
    if raw_pattern is None or not str(raw_pattern).strip():
        logger.debug(
            "Event %s is flagged recurring but has no pattern; expanding as single instance",
            base_event.event_id,
        )
        return None

    pattern = RecurrencePatternType.coerce(raw_pattern)
    if pattern is RecurrencePatternType.CUSTOM and str(raw_pattern).strip().lower() != "custom":
        logger.debug(
            "Unknown recurrence pattern %r on event %s; using custom fallback",
            raw_pattern,
            base_event.event_id,
        )

    return RecurrenceDescriptor(
        pattern=pattern,
        interval=resolve_interval(base_event.recurrence_interval),
        end=resolve_end_condition(base_event),
        days_of_week=list(base_event.recurrence_day_of_week or []),
        day_of_month=base_event.recurrence_day_of_month,
        month=base_event.recurrence_month,
        rule=base_event.recurrence_rule,
        timezone=base_event.recurrence_timezone,
    )
