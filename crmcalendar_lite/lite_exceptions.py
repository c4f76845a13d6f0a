"""Exception hierarchy for recurring-event expansion.

All three concrete errors are caller-input errors detected before or at the
start of generation. They are raised synchronously so that an empty result
(no occurrences in range) stays distinguishable from malformed input.
"""


class RecurrenceExpansionError(Exception):
    """Base exception for all expansion errors.

    Callers that only need to know "the input was bad" can catch this single
    type; the subclasses narrow down which part of the input was at fault.
    """


class InvalidRecurrenceDescriptor(RecurrenceExpansionError):
    """The stored recurrence fields cannot be turned into a descriptor.

    Raised when:
    - recurrence_interval or recurrence_count is not an integer
    - recurrence_end_date cannot be parsed as a timestamp
    """


class InvalidTimestamp(RecurrenceExpansionError):
    """A start/end timestamp is unparseable, non-finite or out of range.

    Raised when:
    - start_time or end_time on the base event cannot be parsed
    - end_time is earlier than start_time
    - stepping the cursor leaves the representable date range
    """


class InvalidWindow(RecurrenceExpansionError):
    """The requested query window is empty or inverted (end <= start)."""
