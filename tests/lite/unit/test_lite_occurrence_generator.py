"""
Unit tests for crmcalendar_lite.lite_occurrence_generator

Covers:
- daily/weekly/monthly/yearly/custom stepping
- COUNT and UNTIL termination
- the raw-candidate cap counted from the series start
- overlap filtering and duration preservation
- out-of-range date arithmetic surfacing as InvalidTimestamp
"""

import logging
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest

from crmcalendar_lite.lite_exceptions import InvalidTimestamp
from crmcalendar_lite.lite_models import (
    CountEnd,
    RecurrenceDescriptor,
    RecurrencePatternType,
    UnboundedEnd,
    UntilEnd,
)
from crmcalendar_lite.lite_occurrence_generator import (
    _STEPPERS,
    DEFAULT_MAX_CANDIDATES,
    GenerationBudget,
    generate_occurrences,
    generate_single,
    next_start,
)
from crmcalendar_lite.lite_window_filter import ExpansionWindow

pytestmark = [pytest.mark.unit, pytest.mark.fast]


def _descriptor(pattern: str, interval: int = 1, end=None, **extra) -> RecurrenceDescriptor:
    return RecurrenceDescriptor(
        pattern=RecurrencePatternType(pattern),
        interval=interval,
        end=end or UnboundedEnd(),
        **extra,
    )


def _starts(occurrences) -> list[datetime]:
    return [occ.start_time for occ in occurrences]


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=UTC)


WIDE_WINDOW = ExpansionWindow.create("2024-01-01T00:00:00Z", "2026-01-01T00:00:00Z")


class TestDailyStepping:
    def test_daily_series_fills_one_week_window(self, event_factory) -> None:
        """Seven daily instances land in a one-week window starting at the series start."""
        base = event_factory(is_recurring=True, recurrence_pattern="daily")
        window = ExpansionWindow.create("2024-01-01T00:00:00Z", "2024-01-08T00:00:00Z")

        occurrences = generate_occurrences(base, _descriptor("daily"), window)

        assert _starts(occurrences) == [_utc(2024, 1, d, 9, 0) for d in range(1, 8)]
        assert all(occ.end_time - occ.start_time == timedelta(hours=1) for occ in occurrences)
        assert all(occ.is_recurring for occ in occurrences)

    def test_interval_two_skips_alternate_days(self, event_factory) -> None:
        base = event_factory()
        occurrences = generate_occurrences(
            base, _descriptor("daily", interval=2, end=CountEnd(count=3)), WIDE_WINDOW
        )

        assert _starts(occurrences) == [_utc(2024, 1, 1, 9), _utc(2024, 1, 3, 9), _utc(2024, 1, 5, 9)]

    def test_fixed_day_steps_ignore_dst_transitions(self, event_factory) -> None:
        """Steps are whole UTC days, so wall-clock time in a DST zone drifts."""
        base = event_factory(start_time=_utc(2024, 3, 8, 14, 0))
        window = ExpansionWindow.create("2024-03-08T00:00:00Z", "2024-03-12T00:00:00Z")

        occurrences = generate_occurrences(base, _descriptor("daily"), window)

        assert [occ.start_time.hour for occ in occurrences] == [14, 14, 14, 14]


class TestWeeklyStepping:
    def test_weekly_ignores_configured_weekdays(self, event_factory) -> None:
        """Mon/Wed/Fri configured still yields one instance per week on the start weekday."""
        base = event_factory()
        descriptor = _descriptor("weekly", days_of_week=[1, 3, 5])
        window = ExpansionWindow.create("2024-01-01T00:00:00Z", "2024-01-29T00:00:00Z")

        occurrences = generate_occurrences(base, descriptor, window)

        assert _starts(occurrences) == [
            _utc(2024, 1, 1, 9),
            _utc(2024, 1, 8, 9),
            _utc(2024, 1, 15, 9),
            _utc(2024, 1, 22, 9),
        ]

    def test_biweekly_interval(self, event_factory) -> None:
        base = event_factory()
        occurrences = generate_occurrences(
            base, _descriptor("weekly", interval=2, end=CountEnd(count=3)), WIDE_WINDOW
        )

        assert _starts(occurrences) == [_utc(2024, 1, 1, 9), _utc(2024, 1, 15, 9), _utc(2024, 1, 29, 9)]


class TestCalendarStepping:
    def test_monthly_from_month_end_clamps_and_drifts(self, event_factory) -> None:
        """Cumulative month steps from the 31st clamp to Feb 29 and stay on the 29th."""
        base = event_factory(start_time=_utc(2024, 1, 31, 9))
        occurrences = generate_occurrences(
            base, _descriptor("monthly", end=CountEnd(count=4)), WIDE_WINDOW
        )

        assert _starts(occurrences) == [
            _utc(2024, 1, 31, 9),
            _utc(2024, 2, 29, 9),
            _utc(2024, 3, 29, 9),
            _utc(2024, 4, 29, 9),
        ]

    def test_yearly_from_leap_day(self, event_factory) -> None:
        base = event_factory(start_time=_utc(2024, 2, 29, 9))
        window = ExpansionWindow.create("2024-01-01T00:00:00Z", "2030-01-01T00:00:00Z")

        occurrences = generate_occurrences(
            base, _descriptor("yearly", end=CountEnd(count=3)), window
        )

        assert _starts(occurrences) == [
            _utc(2024, 2, 29, 9),
            _utc(2025, 2, 28, 9),
            _utc(2026, 2, 28, 9),
        ]

    def test_custom_pattern_steps_daily(self, event_factory) -> None:
        base = event_factory()
        descriptor = _descriptor("custom", end=CountEnd(count=3), rule="FREQ=MONTHLY;BYDAY=1MO")

        occurrences = generate_occurrences(base, descriptor, WIDE_WINDOW)

        assert _starts(occurrences) == [_utc(2024, 1, 1, 9), _utc(2024, 1, 2, 9), _utc(2024, 1, 3, 9)]


class TestTermination:
    def test_count_limits_total_instances(self, event_factory) -> None:
        base = event_factory()
        occurrences = generate_occurrences(
            base, _descriptor("daily", end=CountEnd(count=5)), WIDE_WINDOW
        )

        assert len(occurrences) == 5

    def test_count_includes_instances_before_the_window(self, event_factory) -> None:
        """Count is consumed from the series start, not from the window start."""
        base = event_factory()
        window = ExpansionWindow.create("2024-01-04T00:00:00Z", "2024-02-01T00:00:00Z")

        occurrences = generate_occurrences(base, _descriptor("daily", end=CountEnd(count=5)), window)

        assert _starts(occurrences) == [_utc(2024, 1, 4, 9), _utc(2024, 1, 5, 9)]

    def test_until_is_inclusive(self, event_factory) -> None:
        base = event_factory()
        descriptor = _descriptor("daily", end=UntilEnd(until=_utc(2024, 1, 3, 9)))

        occurrences = generate_occurrences(base, descriptor, WIDE_WINDOW)

        assert _starts(occurrences) == [_utc(2024, 1, 1, 9), _utc(2024, 1, 2, 9), _utc(2024, 1, 3, 9)]

    def test_until_before_start_yields_nothing(self, event_factory) -> None:
        base = event_factory()
        descriptor = _descriptor("daily", end=UntilEnd(until=_utc(2023, 12, 1)))

        assert generate_occurrences(base, descriptor, WIDE_WINDOW) == []

    def test_safety_horizon_bounds_unbounded_series(self, event_factory) -> None:
        """A one-year horizon stops a daily series on its first anniversary (inclusive)."""
        base = event_factory()
        budget = GenerationBudget(max_candidates=10000, safety_horizon_years=1)
        window = ExpansionWindow.create("2024-01-01T00:00:00Z", "2030-01-01T00:00:00Z")

        occurrences = generate_occurrences(base, _descriptor("daily"), window, budget)

        assert len(occurrences) == 367
        assert occurrences[-1].start_time == _utc(2025, 1, 1, 9)


class TestCandidateCap:
    def test_old_series_exhausts_cap_before_far_window(self, event_factory, caplog) -> None:
        """730 candidates from 2021-01-01 end on 2022-12-31, so a 2023 window is empty."""
        base = event_factory(start_time=_utc(2021, 1, 1, 9))
        window = ExpansionWindow.create("2023-01-05T00:00:00Z", "2023-01-10T00:00:00Z")

        with caplog.at_level(logging.WARNING, logger="crmcalendar_lite.lite_occurrence_generator"):
            occurrences = generate_occurrences(base, _descriptor("daily"), window)

        assert occurrences == []
        assert "generation cap" in caplog.text

    def test_cap_reached_exactly_on_last_visible_day(self, event_factory) -> None:
        base = event_factory(start_time=_utc(2021, 1, 1, 9))
        window = ExpansionWindow.create("2022-12-30T00:00:00Z", "2023-01-03T00:00:00Z")

        occurrences = generate_occurrences(base, _descriptor("daily"), window)

        assert _starts(occurrences) == [_utc(2022, 12, 30, 9), _utc(2022, 12, 31, 9)]

    def test_custom_budget_caps_candidates(self, event_factory) -> None:
        base = event_factory()
        budget = GenerationBudget(max_candidates=3)

        occurrences = generate_occurrences(base, _descriptor("daily"), WIDE_WINDOW, budget)

        assert len(occurrences) == 3

    def test_count_below_cap_does_not_warn(self, event_factory, caplog) -> None:
        base = event_factory()

        with caplog.at_level(logging.WARNING, logger="crmcalendar_lite.lite_occurrence_generator"):
            generate_occurrences(base, _descriptor("daily", end=CountEnd(count=5)), WIDE_WINDOW)

        assert "generation cap" not in caplog.text

    def test_count_above_cap_is_capped(self, event_factory) -> None:
        base = event_factory()
        budget = GenerationBudget(max_candidates=10)

        occurrences = generate_occurrences(
            base, _descriptor("daily", end=CountEnd(count=50)), WIDE_WINDOW, budget
        )

        assert len(occurrences) == 10


class TestOverlap:
    def test_in_progress_instance_is_included(self, event_factory) -> None:
        base = event_factory()
        window = ExpansionWindow.create("2024-01-02T09:30:00Z", "2024-01-02T12:00:00Z")

        occurrences = generate_occurrences(base, _descriptor("daily"), window)

        assert _starts(occurrences) == [_utc(2024, 1, 2, 9)]

    def test_instance_ending_at_window_start_is_excluded(self, event_factory) -> None:
        base = event_factory()
        window = ExpansionWindow.create("2024-01-02T10:00:00Z", "2024-01-02T12:00:00Z")

        assert generate_occurrences(base, _descriptor("daily"), window) == []

    def test_multi_day_duration_is_preserved(self, event_factory) -> None:
        base = event_factory(end_time=_utc(2024, 1, 3, 17, 30))
        occurrences = generate_occurrences(
            base, _descriptor("weekly", end=CountEnd(count=3)), WIDE_WINDOW
        )

        assert len(occurrences) == 3
        assert {occ.duration for occ in occurrences} == {base.duration}

    def test_display_fields_copied_verbatim(self, event_factory) -> None:
        base = event_factory(is_all_day=True, google_event_id="g-1", zoom_meeting_id="z-1")
        occurrence = generate_occurrences(
            base, _descriptor("daily", end=CountEnd(count=1)), WIDE_WINDOW
        )[0]

        assert (occurrence.title, occurrence.description, occurrence.location) == (
            "Standup",
            "Daily team sync",
            "Room 1",
        )
        assert occurrence.is_all_day is True
        assert occurrence.google_event_id == "g-1"
        assert occurrence.zoom_meeting_id == "z-1"
        assert occurrence.original_start_time == occurrence.start_time


class TestSingleInstance:
    def test_no_descriptor_returns_base_when_overlapping(self, event_factory) -> None:
        base = event_factory()
        occurrences = generate_occurrences(base, None, WIDE_WINDOW)

        assert len(occurrences) == 1
        assert occurrences[0].start_time == base.start_time
        assert occurrences[0].is_recurring is False

    def test_no_descriptor_outside_window_is_empty(self, event_factory) -> None:
        base = event_factory(start_time=_utc(2023, 6, 1, 9))

        assert generate_single(base, WIDE_WINDOW) == []


class TestStepping:
    def test_every_pattern_has_a_stepper(self) -> None:
        assert set(_STEPPERS) == set(RecurrencePatternType)

    @pytest.mark.parametrize("pattern", list(RecurrencePatternType))
    def test_every_pattern_moves_forward(self, pattern) -> None:
        cursor = _utc(2024, 1, 31, 9)
        assert next_start(pattern, cursor, 1) > cursor

    def test_daily_step_past_year_9999_raises(self) -> None:
        with pytest.raises(InvalidTimestamp):
            next_start(RecurrencePatternType.DAILY, _utc(9999, 12, 31, 9), 1)

    def test_yearly_step_past_year_9999_raises(self) -> None:
        with pytest.raises(InvalidTimestamp):
            next_start(RecurrencePatternType.YEARLY, _utc(9999, 6, 1), 1)

    def test_safety_horizon_past_year_9999_raises(self, event_factory) -> None:
        base = event_factory(start_time=_utc(9998, 1, 1, 9))
        window = ExpansionWindow.create("9998-01-01T00:00:00Z", "9998-02-01T00:00:00Z")

        with pytest.raises(InvalidTimestamp):
            generate_occurrences(base, _descriptor("daily"), window)


class TestGenerationBudget:
    def test_defaults(self) -> None:
        budget = GenerationBudget()
        assert budget.max_candidates == DEFAULT_MAX_CANDIDATES == 730
        assert budget.safety_horizon_years == 5

    @pytest.mark.parametrize("kwargs", [{"max_candidates": 0}, {"safety_horizon_years": 0}])
    def test_rejects_non_positive_bounds(self, kwargs) -> None:
        with pytest.raises(ValueError):
            GenerationBudget(**kwargs)

    def test_from_settings_mapping(self) -> None:
        budget = GenerationBudget.from_settings(
            {"max_generated_occurrences": 100, "safety_horizon_years": 2}
        )
        assert budget == GenerationBudget(max_candidates=100, safety_horizon_years=2)

    def test_from_settings_object_with_missing_fields(self) -> None:
        budget = GenerationBudget.from_settings(SimpleNamespace(max_generated_occurrences=50))
        assert budget == GenerationBudget(max_candidates=50, safety_horizon_years=5)

    def test_candidate_limit_uses_smaller_of_count_and_cap(self) -> None:
        budget = GenerationBudget(max_candidates=10)
        assert budget.candidate_limit(CountEnd(count=4)) == 4
        assert budget.candidate_limit(CountEnd(count=40)) == 10
        assert budget.candidate_limit(UnboundedEnd()) == 10
