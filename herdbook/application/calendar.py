"""Calendar projection - occurrences of cattle events as presentation items"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from herdbook.domain.cattle_event import Event, KIND_INJECTION, KIND_NOTE
from herdbook.domain.completion import is_occurrence_completed
from herdbook.domain.recurrence import (
    DEFAULT_HORIZON, OccurrenceKey, generate_occurrences, next_scheduled,
)


TITLES = {KIND_INJECTION: "Injection", KIND_NOTE: "Note"}

# (kind, is_repeated_instance, completed) -> (color, background_color)
PALETTE = {
    (KIND_INJECTION, False, False): ("#dc2626", "#fecaca"),
    (KIND_INJECTION, True, False): ("#ef4444", "#fee2e2"),
    (KIND_INJECTION, False, True): ("#16a34a", "#bbf7d0"),
    (KIND_INJECTION, True, True): ("#22c55e", "#dcfce7"),
    (KIND_NOTE, False, False): ("#2563eb", "#bfdbfe"),
    (KIND_NOTE, True, False): ("#3b82f6", "#dbeafe"),
    (KIND_NOTE, False, True): ("#059669", "#a7f3d0"),
    (KIND_NOTE, True, True): ("#10b981", "#d1fae5"),
}


@dataclass(frozen=True)
class CalendarItem:
    key: OccurrenceKey
    title: str
    start: date
    note: str
    kind: str
    is_repeated: bool
    repeat_duration: int | None
    is_repeated_instance: bool
    completed: bool
    is_today: bool
    color: str
    background_color: str

    @property
    def event_id(self) -> str:
        return self.key.event_id

    @property
    def occurrence_index(self) -> int:
        return self.key.occurrence_index

    @property
    def draggable(self) -> bool:
        # only the anchor occurrence can be moved
        return not self.is_repeated_instance


@dataclass(frozen=True)
class EventListItem:
    event: Event
    completed: bool
    next_date: date | None


def project(
    events: Iterable[Event],
    today: date,
    horizon_count: int = DEFAULT_HORIZON,
) -> list[CalendarItem]:
    """One item per (event, occurrence) pair, in event order then date order."""
    items: list[CalendarItem] = []
    for event in events:
        for occ in generate_occurrences(event, horizon_count):
            completed = is_occurrence_completed(event, occ.occurrence_date)
            color, background = PALETTE[(event.kind, occ.is_repeated_instance, completed)]
            items.append(CalendarItem(
                key=occ.key,
                title=TITLES[event.kind],
                start=occ.occurrence_date,
                note=event.note,
                kind=event.kind,
                is_repeated=event.is_repeated,
                repeat_duration=event.repeat_duration,
                is_repeated_instance=occ.is_repeated_instance,
                completed=completed,
                is_today=occ.occurrence_date == today,
                color=color,
                background_color=background,
            ))
    return items


def event_list(events: Iterable[Event], today: date) -> list[EventListItem]:
    """Event list under the calendar: anchor completion and the next repeat."""
    return [
        EventListItem(
            event=event,
            completed=is_occurrence_completed(event, event.date),
            next_date=next_scheduled(event, today),
        )
        for event in events
    ]
