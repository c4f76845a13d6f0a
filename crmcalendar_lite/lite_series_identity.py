"""Series identity stamping for generated occurrences."""

from collections.abc import Iterable

from .lite_datetime_utils import format_iso
from .lite_models import BaseEventDefinition, Occurrence


def series_id_for(base_event: BaseEventDefinition) -> str:
    """Series key: the stored series id, else the base event's own id."""
    return base_event.series_id or base_event.event_id


def instance_id_for(base_event: BaseEventDefinition, occurrence: Occurrence) -> str:
    """Deterministic per-instance key, e.g. ``evt-1_2025-01-02T09:00:00Z``."""
    return f"{base_event.event_id}_{format_iso(occurrence.original_start_time)}"


def assign_series_identity(
    base_event: BaseEventDefinition, occurrences: Iterable[Occurrence]
) -> list[Occurrence]:
    """Stamp ``series_id`` and ``instance_id`` on every occurrence.

    Returns new (frozen) occurrence objects; the input is not modified.
    """
    series_id = series_id_for(base_event)
    return [
        occurrence.model_copy(
            update={
                "series_id": series_id,
                "instance_id": instance_id_for(base_event, occurrence),
            }
        )
        for occurrence in occurrences
    ]
