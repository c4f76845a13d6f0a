"""Human-readable recurrence summaries and storage round-tripping."""

from typing import Any, Optional

from .lite_models import CountEnd, RecurrenceDescriptor, RecurrencePatternType, UntilEnd

# ISO numbering; 0 is accepted as Sunday for rows written with 0-6 numbering.
_WEEKDAY_ABBREVIATIONS = {
    0: "Sun",
    1: "Mon",
    2: "Tue",
    3: "Wed",
    4: "Thu",
    5: "Fri",
    6: "Sat",
    7: "Sun",
}

_MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

_UNIT_NAMES = {
    RecurrencePatternType.DAILY: "day",
    RecurrencePatternType.WEEKLY: "week",
    RecurrencePatternType.MONTHLY: "month",
    RecurrencePatternType.YEARLY: "year",
}


def _format_weekdays(days: list[int]) -> str:
    names = [_WEEKDAY_ABBREVIATIONS[d] for d in days if d in _WEEKDAY_ABBREVIATIONS]
    return ", ".join(names)


def format_recurrence_summary(descriptor: Optional[RecurrenceDescriptor]) -> str:
    """Summarize a recurrence pattern, e.g. ``"Repeats every 2 weeks on Mon, Wed"``.

    Args:
        descriptor: Descriptor from ``extract_recurrence_descriptor`` (None means
            the event does not recur)

    Returns:
        Summary sentence
    """
    if descriptor is None:
        return "Not recurring"

    interval = descriptor.interval
    prefix = f"every {interval} " if interval > 1 else "every "

    if descriptor.pattern is RecurrencePatternType.CUSTOM:
        base = "custom pattern"
        if descriptor.rule:
            base += f" ({descriptor.rule})"
    else:
        unit = _UNIT_NAMES[descriptor.pattern]
        base = f"{prefix}{unit}{'s' if interval > 1 else ''}"

        if descriptor.pattern is RecurrencePatternType.WEEKLY and descriptor.days_of_week:
            days = _format_weekdays(descriptor.days_of_week)
            if days:
                base += f" on {days}"
        elif descriptor.pattern is RecurrencePatternType.MONTHLY and descriptor.day_of_month:
            base += f" on day {descriptor.day_of_month}"
        elif descriptor.pattern is RecurrencePatternType.YEARLY and descriptor.month:
            if 1 <= descriptor.month <= 12:
                base += f" in {_MONTH_NAMES[descriptor.month - 1]}"
                if descriptor.day_of_month:
                    base += f" on day {descriptor.day_of_month}"

    end = descriptor.end
    if isinstance(end, CountEnd):
        base += f", {end.count} time{'s' if end.count > 1 else ''}"
    elif isinstance(end, UntilEnd):
        base += f", until {end.until.date().isoformat()}"

    return f"Repeats {base}"


def recurrence_fields(descriptor: Optional[RecurrenceDescriptor]) -> dict[str, Any]:
    """Storage columns for ``descriptor``, the inverse of descriptor extraction."""
    if descriptor is None:
        return {"is_recurring": False}

    fields: dict[str, Any] = {
        "is_recurring": True,
        "recurrence_pattern": descriptor.pattern.value,
        "recurrence_interval": descriptor.interval,
    }
    if descriptor.days_of_week:
        fields["recurrence_day_of_week"] = list(descriptor.days_of_week)
    if descriptor.day_of_month:
        fields["recurrence_day_of_month"] = descriptor.day_of_month
    if descriptor.month:
        fields["recurrence_month"] = descriptor.month

    end = descriptor.end
    if isinstance(end, CountEnd):
        fields["recurrence_count"] = end.count
    elif isinstance(end, UntilEnd):
        fields["recurrence_end_date"] = end.until.isoformat()

    if descriptor.rule:
        fields["recurrence_rule"] = descriptor.rule
    if descriptor.timezone:
        fields["recurrence_timezone"] = descriptor.timezone
    return fields
