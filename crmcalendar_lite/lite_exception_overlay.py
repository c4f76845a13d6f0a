"""Exception (single-instance override) resolution for expanded series.

Runs after generation: the generator never consults exception records, so a
stored override only shows up once this stage swaps it in for the generated
occurrence it replaces.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from .lite_datetime_utils import to_utc
from .lite_models import BaseEventDefinition, Occurrence
from .lite_occurrence_generator import build_occurrence
from .lite_series_identity import assign_series_identity
from .lite_window_filter import ExpansionWindow

logger = logging.getLogger(__name__)


def is_exception_for(candidate: BaseEventDefinition, base_event: BaseEventDefinition) -> bool:
    """True if ``candidate`` overrides an instance of ``base_event``'s series."""
    return (
        candidate.is_exception
        and candidate.exception_date is not None
        and candidate.parent_event_id == base_event.event_id
    )


def _override(occurrence: Occurrence, exception: BaseEventDefinition) -> Occurrence:
    return occurrence.model_copy(
        update={
            "title": exception.title,
            "description": exception.description,
            "location": exception.location,
            "is_all_day": exception.is_all_day,
            "start_time": exception.start_time,
            "end_time": exception.end_time,
            "google_event_id": exception.google_event_id,
            "zoom_meeting_id": exception.zoom_meeting_id,
            "parent_event_id": exception.parent_event_id,
            "is_exception": True,
            "exception_date": occurrence.original_start_time,
        }
    )


def apply_exceptions(
    base_event: BaseEventDefinition,
    occurrences: Iterable[Occurrence],
    exceptions: Iterable[BaseEventDefinition],
    window: ExpansionWindow,
) -> list[Occurrence]:
    """Replace generated occurrences with their stored overrides.

    An override whose original slot lies outside the window but whose own
    times overlap it is emitted on its own, stamped with the series identity.
    The original slot is not re-checked against the series stepping.

    Args:
        base_event: Series anchor the occurrences were generated from
        occurrences: Generated occurrences, series identity already stamped
        exceptions: Candidate override records (non-matching ones are ignored)
        window: Query window; overrides moved out of it are dropped

    Returns:
        Occurrences ordered by start time
    """
    overrides: dict[datetime, BaseEventDefinition] = {}
    for record in exceptions:
        if not is_exception_for(record, base_event):
            continue
        key = to_utc(record.exception_date)
        if key in overrides:
            logger.warning(
                "Multiple exceptions for series %s at %s; keeping %s",
                base_event.event_id,
                key.isoformat(),
                overrides[key].event_id,
            )
            continue
        overrides[key] = record

    if not overrides:
        return list(occurrences)

    resolved: list[Occurrence] = []
    applied: set[datetime] = set()
    for occurrence in occurrences:
        key = to_utc(occurrence.original_start_time)
        exception = overrides.get(key)
        if exception is None:
            resolved.append(occurrence)
            continue

        applied.add(key)
        if not window.contains(exception.start_time, exception.end_time):
            logger.debug(
                "Exception %s moved occurrence %s out of the window; dropping it",
                exception.event_id,
                key.isoformat(),
            )
            continue
        resolved.append(_override(occurrence, exception))

    for key in sorted(overrides.keys() - applied):
        exception = overrides[key]
        original_end = key + base_event.duration
        if not window.contains(key, original_end) and window.contains(
            exception.start_time, exception.end_time
        ):
            # Instance moved into the window from a slot outside it.
            slot = assign_series_identity(
                base_event, [build_occurrence(base_event, key, original_end)]
            )[0]
            resolved.append(_override(slot, exception))
            continue

        logger.debug(
            "Exception %s for series %s matched no generated occurrence at %s",
            exception.event_id,
            base_event.event_id,
            key.isoformat(),
        )

    resolved.sort(key=lambda occ: occ.start_time)
    return resolved
