"""
Completion tracking without per-occurrence storage.

Non-repeating events carry a single completed flag. Repeating events carry a
completed_through watermark: every occurrence dated on or before it counts as
done, every later one does not.

All functions are pure and return a new event; persisting the change is the
caller's job (see completion_fields).
"""
from dataclasses import replace
from datetime import date, datetime, timedelta

from herdbook.domain.cattle_event import Event, RecurringEvent
from herdbook.domain.recurrence import occurrence_index


# An injection is settled for reminder purposes from the day after confirmation
SETTLE_OFFSET = timedelta(days=1)


def is_occurrence_completed(event: Event, occurrence_date: date) -> bool:
    if not isinstance(event, RecurringEvent):
        return event.completed
    return event.completed_through is not None and occurrence_date <= event.completed_through


def mark_completed(event: Event, occurrence_date: date, now: datetime) -> Event:
    """Mark an occurrence done. For repeating events all earlier occurrences
    become done as well; the watermark never moves backwards."""
    occurrence_index(event, occurrence_date)
    if not isinstance(event, RecurringEvent):
        if event.completed:
            return event
        return replace(event, completed=True, completed_at=now + SETTLE_OFFSET)

    watermark = occurrence_date + SETTLE_OFFSET
    if event.completed_through is not None and event.completed_through >= watermark:
        return event
    return replace(event, completed_through=watermark)


def mark_incomplete(event: Event, occurrence_date: date) -> Event:
    """Undo completion of an occurrence.

    Repeating events roll the watermark back to one step before the occurrence
    (no +1 day here, unlike mark_completed) or clear it when that would land
    before the anchor. Occurrences that are not completed are left alone.
    """
    occurrence_index(event, occurrence_date)
    if not isinstance(event, RecurringEvent):
        if not event.completed:
            return event
        completed_at = event.completed_at
        if completed_at is not None and event.repeat_duration:
            completed_at = completed_at + timedelta(days=event.repeat_duration)
        return replace(event, completed=False, completed_at=completed_at)

    if not is_occurrence_completed(event, occurrence_date):
        return event
    rolled_back = occurrence_date - timedelta(days=event.repeat_duration)
    if rolled_back < event.date:
        return replace(event, completed_through=None)
    return replace(event, completed_through=rolled_back)
