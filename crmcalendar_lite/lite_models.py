"""Data models for recurring calendar events - CRM Calendar Lite version."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
    model_validator,
)

from .lite_datetime_utils import parse_optional_timestamp, parse_timestamp, to_utc
from .lite_exceptions import InvalidRecurrenceDescriptor, InvalidTimestamp


class RecurrencePatternType(str, Enum):
    """Recurrence pattern kinds, matching the stored enum column."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"

    @classmethod
    def coerce(cls, value: Any) -> "RecurrencePatternType":
        """Map a stored value onto a known kind; anything unrecognised is CUSTOM."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.CUSTOM


class DayOfWeek(int, Enum):
    """Days of the week, using ISO 8601 numbering (1-7, Monday-Sunday)."""

    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7


# Recurrence end conditions


class UnboundedEnd(BaseModel):
    """Series never ends on its own; the safety horizon applies."""

    type: Literal["never"] = "never"

    model_config = ConfigDict(frozen=True)


class UntilEnd(BaseModel):
    """Series ends at an explicit timestamp (inclusive)."""

    type: Literal["until"] = "until"
    until: datetime

    model_config = ConfigDict(frozen=True)

    @field_validator("until")
    @classmethod
    def _normalise_until(cls, value: datetime) -> datetime:
        return to_utc(value)


class CountEnd(BaseModel):
    """Series ends after a fixed number of occurrences."""

    type: Literal["count"] = "count"
    count: int = Field(..., gt=0)

    model_config = ConfigDict(frozen=True)


RecurrenceEnd = Annotated[Union[UnboundedEnd, UntilEnd, CountEnd], Field(discriminator="type")]


class RecurrenceDescriptor(BaseModel):
    """Validated recurrence settings for one base event.

    Only ``pattern``, ``interval`` and ``end`` drive stepping. The remaining
    fields are carried for summaries and for writing the row back.
    """

    pattern: RecurrencePatternType
    interval: int = Field(default=1, ge=1)
    end: RecurrenceEnd = Field(default_factory=UnboundedEnd)

    days_of_week: list[int] = Field(default_factory=list)
    day_of_month: Optional[int] = None
    month: Optional[int] = None
    rule: Optional[str] = None
    timezone: Optional[str] = None

    model_config = ConfigDict(frozen=True)


_TIMESTAMP_FIELDS = ("start_time", "end_time")
_OPTIONAL_TIMESTAMP_FIELDS = ("exception_date", "created_at", "updated_at")


def _coerce_optional_int(record: dict[str, Any], key: str) -> Optional[int]:
    raw = record.get(key)
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise InvalidRecurrenceDescriptor(f"{key} must be an integer, got {raw!r}")
    if isinstance(raw, float):
        if not raw.is_integer():
            raise InvalidRecurrenceDescriptor(f"{key} must be an integer, got {raw!r}")
        return int(raw)
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise InvalidRecurrenceDescriptor(f"{key} must be an integer, got {raw!r}") from e


class BaseEventDefinition(BaseModel):
    """Stored calendar event row, recurring or not.

    Read-only input to the expansion engine. ``start_time``/``end_time`` define
    the canonical occurrence duration.
    """

    # Identity
    event_id: str = Field(..., description="Event ID")
    user_id: Optional[str] = Field(default=None, description="Owning user")
    series_id: Optional[str] = Field(
        default=None, description="Series this event belongs to; None means it anchors its own"
    )

    # Display fields
    title: str = Field(default="", description="Event title")
    description: Optional[str] = None
    location: Optional[str] = None
    is_all_day: bool = False

    # Time information
    start_time: datetime = Field(..., description="Start of the first occurrence")
    end_time: datetime = Field(..., description="End of the first occurrence")

    # External sync ids
    google_event_id: Optional[str] = None
    zoom_meeting_id: Optional[str] = None

    # Recurrence
    is_recurring: bool = False
    recurrence_pattern: Optional[str] = None
    recurrence_interval: Optional[int] = None
    recurrence_day_of_week: Optional[list[int]] = None
    recurrence_day_of_month: Optional[int] = None
    recurrence_month: Optional[int] = None
    recurrence_end_date: Optional[datetime] = None
    recurrence_count: Optional[int] = None
    recurrence_rule: Optional[str] = None
    recurrence_timezone: Optional[str] = None

    # Exception linkage
    parent_event_id: Optional[str] = None
    is_exception: bool = False
    exception_date: Optional[datetime] = None

    # Metadata
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator(*_TIMESTAMP_FIELDS, mode="before")
    @classmethod
    def _parse_required_timestamp(cls, value: Any, info: ValidationInfo) -> datetime:
        return parse_timestamp(value, info.field_name)

    @field_validator(*_OPTIONAL_TIMESTAMP_FIELDS, mode="before")
    @classmethod
    def _parse_optional_timestamp(cls, value: Any, info: ValidationInfo) -> Optional[datetime]:
        return parse_optional_timestamp(value, info.field_name)

    @field_validator("recurrence_end_date", mode="before")
    @classmethod
    def _parse_recurrence_end_date(cls, value: Any) -> Optional[datetime]:
        try:
            return parse_optional_timestamp(value, "recurrence_end_date")
        except InvalidTimestamp as e:
            raise InvalidRecurrenceDescriptor(str(e)) from e

    @model_validator(mode="after")
    def _check_interval_order(self) -> "BaseEventDefinition":
        if self.end_time < self.start_time:
            raise InvalidTimestamp(
                f"end_time {self.end_time.isoformat()} is before start_time "
                f"{self.start_time.isoformat()} for event {self.event_id}"
            )
        return self

    @property
    def duration(self) -> timedelta:
        """Canonical occurrence duration."""
        return self.end_time - self.start_time

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "BaseEventDefinition":
        """Build a definition from a raw storage row.

        Timestamp problems raise ``InvalidTimestamp`` and malformed recurrence
        columns raise ``InvalidRecurrenceDescriptor``.
        """
        data = dict(record)

        for key in _TIMESTAMP_FIELDS:
            data[key] = parse_timestamp(data.get(key), key)
        for key in _OPTIONAL_TIMESTAMP_FIELDS:
            data[key] = parse_optional_timestamp(data.get(key), key)

        data["recurrence_interval"] = _coerce_optional_int(data, "recurrence_interval")
        data["recurrence_count"] = _coerce_optional_int(data, "recurrence_count")

        if data.get("event_id") is not None:
            data["event_id"] = str(data["event_id"])

        return cls.model_validate(data)


class Occurrence(BaseModel):
    """One concrete, ephemeral materialization of an event inside a window."""

    instance_id: Optional[str] = Field(default=None, description="Stable per-instance key")

    # Display fields copied from the base event
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    is_all_day: bool = False

    # Instance timing
    start_time: datetime
    end_time: datetime
    original_start_time: datetime = Field(
        ..., description="Start the generator produced, before any exception override"
    )

    google_event_id: Optional[str] = None
    zoom_meeting_id: Optional[str] = None

    # Series / exception linkage
    parent_event_id: Optional[str] = None
    is_exception: bool = False
    exception_date: Optional[datetime] = None
    series_id: Optional[str] = None
    is_recurring: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def duration(self) -> timedelta:
        """Length of this instance."""
        return self.end_time - self.start_time

    @field_serializer("start_time", "end_time", "original_start_time")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()

    @field_serializer("exception_date", when_used="unless-none")
    def serialize_optional_datetime(self, dt: datetime) -> str:
        """Serialize optional datetime fields to ISO format."""
        return dt.isoformat()
