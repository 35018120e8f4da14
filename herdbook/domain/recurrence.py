"""
Deterministic occurrence generator for cattle events.

Uses date only (no timezone). An event produces its anchor occurrence at
event.date and, when repeating, further occurrences every repeat_duration days.
Occurrences are never stored: they are identified by (event_id, occurrence_index)
and recomputed on demand.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import NamedTuple

from herdbook.domain.cattle_event import Event, RecurringEvent


DEFAULT_HORIZON = 52  # ~ one year of weekly injections


class InvalidOccurrenceDate(ValueError):
    """Date is before the anchor or does not fall on the event's grid."""


class OccurrenceKey(NamedTuple):
    event_id: str
    occurrence_index: int

    def __str__(self) -> str:
        return f"{self.event_id}:{self.occurrence_index}"


@dataclass(frozen=True)
class Occurrence:
    event_id: str
    occurrence_index: int
    occurrence_date: date
    is_repeated_instance: bool
    completed: bool = False

    @property
    def key(self) -> OccurrenceKey:
        return OccurrenceKey(self.event_id, self.occurrence_index)


def occurrence_date_at(event: Event, index: int) -> date:
    if index < 0:
        raise InvalidOccurrenceDate(f"occurrence index must be >= 0, got {index}")
    if not isinstance(event, RecurringEvent):
        if index != 0:
            raise InvalidOccurrenceDate("non-repeating event has a single occurrence")
        return event.date
    return event.date + timedelta(days=event.repeat_duration * index)


def occurrence_index(event: Event, occurrence_date: date) -> int:
    """Position of occurrence_date in the event's series (0 = anchor)."""
    offset = (occurrence_date - event.date).days
    if offset < 0:
        raise InvalidOccurrenceDate(
            f"{occurrence_date.isoformat()} is before event start {event.date.isoformat()}"
        )
    if not isinstance(event, RecurringEvent):
        if offset != 0:
            raise InvalidOccurrenceDate(
                f"{occurrence_date.isoformat()} is not the date of a non-repeating event"
            )
        return 0
    index, rest = divmod(offset, event.repeat_duration)
    if rest:
        raise InvalidOccurrenceDate(
            f"{occurrence_date.isoformat()} is not on the {event.repeat_duration}-day grid"
        )
    return index


def generate_occurrences(event: Event, horizon_count: int = DEFAULT_HORIZON) -> list[Occurrence]:
    """Anchor occurrence plus horizon_count repeats (repeating events only).
    Deterministic, sorted ascending. Completion is not annotated here."""
    if horizon_count < 0:
        raise ValueError("horizon_count must be >= 0")
    if not isinstance(event, RecurringEvent):
        return [Occurrence(event.id, 0, event.date, is_repeated_instance=False)]
    step = timedelta(days=event.repeat_duration)
    return [
        Occurrence(event.id, k, event.date + step * k, is_repeated_instance=k > 0)
        for k in range(horizon_count + 1)
    ]


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


def next_actionable(event: Event, today: date) -> date | None:
    """First occurrence of a repeating injection that is neither completed nor in the past.

    Closed form: the answer is the later of the first index on/after today and
    the first index past the completed_through watermark.
    """
    if not isinstance(event, RecurringEvent) or not event.is_injection:
        return None
    r = event.repeat_duration
    first = 0
    if today > event.date:
        first = _ceil_div((today - event.date).days, r)
    watermark = event.completed_through
    if watermark is not None and watermark >= event.date:
        first = max(first, (watermark - event.date).days // r + 1)
    return occurrence_date_at(event, first)


def next_scheduled(event: Event, today: date) -> date | None:
    """First repeat after the anchor falling on/after today, ignoring completion."""
    if not isinstance(event, RecurringEvent):
        return None
    first = 1
    if today > event.date:
        first = max(first, _ceil_div((today - event.date).days, event.repeat_duration))
    return occurrence_date_at(event, first)


def completed_count(event: RecurringEvent) -> int:
    """How many occurrences the watermark covers."""
    watermark = event.completed_through
    if watermark is None or watermark < event.date:
        return 0
    return (watermark - event.date).days // event.repeat_duration + 1


def realign_watermark(previous: RecurringEvent, anchor: date, repeat_duration: int) -> date | None:
    """Watermark on a new (anchor, repeat_duration) grid covering the same number
    of occurrences as previous.completed_through did on the old grid."""
    count = completed_count(previous)
    if count == 0:
        return None
    return anchor + timedelta(days=repeat_duration * (count - 1))
