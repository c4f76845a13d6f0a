"""Public expansion entry points for CRM Calendar Lite.

``expand`` turns one stored event plus a query window into its concrete
occurrences. ``expand_events`` does the same for a whole calendar view,
routing exception records to the series they override and merging the
result chronologically. Everything here is pure and re-entrant; the worker
pool only bounds how many expansions run at once for async callers.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from datetime import datetime
from typing import Any, Optional, Union

from .config_manager import get_config_value
from .lite_exception_overlay import apply_exceptions, is_exception_for
from .lite_models import BaseEventDefinition, Occurrence
from .lite_occurrence_generator import GenerationBudget, generate_occurrences, generate_single
from .lite_recurrence_model import extract_recurrence_descriptor
from .lite_series_identity import assign_series_identity
from .lite_window_filter import ExpansionWindow

logger = logging.getLogger(__name__)

EventInput = Union[BaseEventDefinition, Mapping[str, Any]]
TimestampInput = Union[datetime, str]


def coerce_event(event: EventInput) -> BaseEventDefinition:
    """Accept either a parsed definition or a raw storage row."""
    if isinstance(event, BaseEventDefinition):
        return event
    return BaseEventDefinition.from_record(dict(event))


def _expand_in_window(
    base_event: BaseEventDefinition,
    window: ExpansionWindow,
    budget: Optional[GenerationBudget],
) -> list[Occurrence]:
    descriptor = extract_recurrence_descriptor(base_event)
    occurrences = generate_occurrences(base_event, descriptor, window, budget)
    return assign_series_identity(base_event, occurrences)


def expand(
    base_event: EventInput,
    window_start: TimestampInput,
    window_end: TimestampInput,
    budget: Optional[GenerationBudget] = None,
) -> list[Occurrence]:
    """Expand one stored event into the occurrences overlapping ``[start, end)``.

    Args:
        base_event: Stored event definition (or raw row)
        window_start: Inclusive window start
        window_end: Exclusive window end
        budget: Generation bounds; defaults to 730 candidates / 5-year horizon

    Returns:
        Occurrences ordered oldest first, each stamped with its series id

    Raises:
        InvalidWindow: If ``window_end <= window_start``
        InvalidTimestamp: If the event's timestamps or the window bounds are unusable
        InvalidRecurrenceDescriptor: If the recurrence columns are malformed
    """
    window = ExpansionWindow.create(window_start, window_end)
    return _expand_in_window(coerce_event(base_event), window, budget)


def expand_single(
    base_event: EventInput,
    window_start: TimestampInput,
    window_end: TimestampInput,
) -> list[Occurrence]:
    """Expand ``base_event`` as a one-off event, ignoring any recurrence."""
    window = ExpansionWindow.create(window_start, window_end)
    event = coerce_event(base_event)
    return assign_series_identity(event, generate_single(event, window))


def expand_series(
    base_event: EventInput,
    exceptions: Iterable[EventInput],
    window_start: TimestampInput,
    window_end: TimestampInput,
    budget: Optional[GenerationBudget] = None,
) -> list[Occurrence]:
    """Expand one series and swap in its stored single-instance overrides."""
    window = ExpansionWindow.create(window_start, window_end)
    event = coerce_event(base_event)
    overrides = [coerce_event(e) for e in exceptions]
    occurrences = _expand_in_window(event, window, budget)
    return apply_exceptions(event, occurrences, overrides, window)


def partition_events(
    events: Iterable[BaseEventDefinition],
) -> tuple[list[BaseEventDefinition], dict[str, list[BaseEventDefinition]]]:
    """Split records into expandable events and exceptions keyed by parent id.

    Exception records whose parent is not among ``events`` stay in the first
    list and are expanded like any other event.
    """
    definitions = list(events)
    by_id = {d.event_id: d for d in definitions}

    bases: list[BaseEventDefinition] = []
    exceptions_by_parent: dict[str, list[BaseEventDefinition]] = {}
    for definition in definitions:
        parent = by_id.get(definition.parent_event_id or "")
        if parent is not None and parent is not definition and is_exception_for(definition, parent):
            exceptions_by_parent.setdefault(parent.event_id, []).append(definition)
        else:
            bases.append(definition)
    return bases, exceptions_by_parent


def _merge_chronologically(groups: Iterable[list[Occurrence]]) -> list[Occurrence]:
    merged = [occurrence for group in groups for occurrence in group]
    merged.sort(key=lambda occ: occ.start_time)
    return merged


def expand_events(
    events: Iterable[EventInput],
    window_start: TimestampInput,
    window_end: TimestampInput,
    budget: Optional[GenerationBudget] = None,
) -> list[Occurrence]:
    """Expand a set of stored events into one chronological calendar view.

    Args:
        events: Stored rows for one owner, typically pre-filtered by date range
        window_start: Inclusive window start
        window_end: Exclusive window end
        budget: Generation bounds applied to each event independently

    Returns:
        All occurrences sorted by start time (stable for ties)
    """
    window = ExpansionWindow.create(window_start, window_end)
    bases, exceptions_by_parent = partition_events(coerce_event(e) for e in events)

    groups: list[list[Occurrence]] = []
    for base in bases:
        occurrences = _expand_in_window(base, window, budget)
        overrides = exceptions_by_parent.get(base.event_id)
        if overrides:
            occurrences = apply_exceptions(base, occurrences, overrides, window)
        groups.append(occurrences)

    merged = _merge_chronologically(groups)
    logger.debug(
        "Expanded %d events (%d exceptions) into %d occurrences for window [%s, %s)",
        len(bases),
        sum(len(v) for v in exceptions_by_parent.values()),
        len(merged),
        window.start.isoformat(),
        window.end.isoformat(),
    )
    return merged


class ExpansionWorkerPool:
    """Async worker pool for expanding many series without blocking the event loop.

    Each expansion runs in a worker thread under a semaphore so at most
    ``concurrency`` expansions are in flight at once.
    """

    def __init__(self, settings: Any = None):
        """Initialize worker pool with configuration settings.

        Args:
            settings: Config object or mapping with worker and budget settings
        """
        self.settings = settings
        self.concurrency = max(1, int(get_config_value(settings or {}, "worker_concurrency", 1)))
        self.yield_frequency = max(1, int(get_config_value(settings or {}, "yield_frequency", 50)))
        self.budget = GenerationBudget.from_settings(settings or {})

        self._semaphore = asyncio.Semaphore(self.concurrency)

        logger.debug(
            "ExpansionWorkerPool initialized: concurrency=%d, yield_frequency=%d, "
            "max_candidates=%d, safety_horizon_years=%d",
            self.concurrency,
            self.yield_frequency,
            self.budget.max_candidates,
            self.budget.safety_horizon_years,
        )

    async def _expand_series(
        self,
        base_event: BaseEventDefinition,
        exceptions: list[BaseEventDefinition],
        window: ExpansionWindow,
    ) -> list[Occurrence]:
        async with self._semaphore:
            occurrences = await asyncio.to_thread(
                _expand_in_window, base_event, window, self.budget
            )
            if exceptions:
                occurrences = apply_exceptions(base_event, occurrences, exceptions, window)
            return occurrences

    async def expand_stream(
        self,
        base_event: EventInput,
        window_start: TimestampInput,
        window_end: TimestampInput,
        exceptions: Optional[Iterable[EventInput]] = None,
    ) -> AsyncIterator[Occurrence]:
        """Expand one series and yield its occurrences, oldest first.

        Raises:
            RecurrenceExpansionError: Any input error, before the first yield
        """
        window = ExpansionWindow.create(window_start, window_end)
        event = coerce_event(base_event)
        overrides = [coerce_event(e) for e in exceptions or []]

        occurrences = await self._expand_series(event, overrides, window)
        for i, occurrence in enumerate(occurrences, start=1):
            yield occurrence
            # Cooperative yield to event loop
            if i % self.yield_frequency == 0:
                await asyncio.sleep(0)

    async def expand_events_async(
        self,
        events: Iterable[EventInput],
        window_start: TimestampInput,
        window_end: TimestampInput,
    ) -> list[Occurrence]:
        """Async counterpart of ``expand_events``: one task per series."""
        window = ExpansionWindow.create(window_start, window_end)
        bases, exceptions_by_parent = partition_events(coerce_event(e) for e in events)

        groups = await asyncio.gather(
            *(
                self._expand_series(base, exceptions_by_parent.get(base.event_id, []), window)
                for base in bases
            )
        )
        return _merge_chronologically(groups)
