from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any, Callable

import pytest

from crmcalendar_lite.lite_models import BaseEventDefinition
from crmcalendar_lite.lite_window_filter import ExpansionWindow

CRMCAL_ENV_VARS = (
    "CRMCAL_DEBUG",
    "CRMCAL_LOG_LEVEL",
    "CRMCAL_MAX_OCCURRENCES",
    "CRMCAL_SAFETY_HORIZON_YEARS",
    "CRMCAL_WORKER_CONCURRENCY",
    "CRMCAL_YIELD_FREQUENCY",
)


def pytest_configure(config: Any) -> None:
    """Register the markers used across lite tests."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "fast: Tests that finish in well under a second")


@pytest.fixture
def simple_settings() -> SimpleNamespace:
    """Lightweight settings object used across lite tests.

    Fields:
      - max_generated_occurrences: candidate cap per base event
      - safety_horizon_years: series end for unbounded series
      - worker_concurrency: concurrent expansions in the worker pool
      - yield_frequency: occurrences streamed between cooperative yields
    """
    return SimpleNamespace(
        max_generated_occurrences=730,
        safety_horizon_years=5,
        worker_concurrency=2,
        yield_frequency=3,
    )


@pytest.fixture
def series_start() -> datetime:
    """Deterministic series anchor: Monday 2024-01-01 09:00 UTC."""
    return datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def event_factory(series_start: datetime) -> Callable[..., BaseEventDefinition]:
    """Return a builder for BaseEventDefinition with one-hour defaults.

    builder(**overrides) -> BaseEventDefinition. ``start_time`` defaults to the
    ``series_start`` fixture and ``end_time`` to one hour after ``start_time``.
    """

    def builder(**overrides: Any) -> BaseEventDefinition:
        start = overrides.pop("start_time", series_start)
        data: dict[str, Any] = {
            "event_id": "evt-1",
            "user_id": "user-1",
            "title": "Standup",
            "description": "Daily team sync",
            "location": "Room 1",
            "start_time": start,
            "end_time": overrides.pop("end_time", None) or start + timedelta(hours=1),
        }
        data.update(overrides)
        return BaseEventDefinition(**data)

    return builder


@pytest.fixture
def window_factory() -> Callable[[Any, Any], ExpansionWindow]:
    """Return ExpansionWindow.create for terse window construction in tests."""
    return ExpansionWindow.create


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Ensure CRMCAL_* environment variables do not leak into or between tests."""
    for key in CRMCAL_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    yield
