"""Event use cases - scheduling, editing, moving and completing cattle events"""
import logging
from datetime import date, datetime
from sqlalchemy.orm import Session

from herdbook.application.calendar import CalendarItem, EventListItem, event_list, project
from herdbook.application.cattle import refresh_next_injection, require_cattle
from herdbook.domain.cattle_event import (
    Event, InvalidEventDefinition, RecurringEvent, completion_fields, event_from_record,
)
from herdbook.domain.completion import mark_completed, mark_incomplete
from herdbook.domain.recurrence import DEFAULT_HORIZON, realign_watermark
from herdbook.infrastructure.store import CattleStore, EventStore
from herdbook.utils.dates import today_local

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("date", "kind", "note", "is_repeated", "repeat_duration")


class EventValidationError(ValueError):
    pass


class EventNotFoundError(EventValidationError):
    pass


def _load_event(store: EventStore, cattle_id: str, event_id: str) -> Event:
    record = store.get(cattle_id, event_id)
    if not record:
        raise EventNotFoundError(f"Event {event_id} not found")
    return event_from_record(record)


def _record_of(event: Event) -> dict:
    return {
        "id": event.id,
        "parent_id": event.parent_id,
        "date": event.date,
        "kind": event.kind,
        "note": event.note,
        "is_repeated": event.is_repeated,
        "repeat_duration": event.repeat_duration,
    }


# ============================================================================
# Queries
# ============================================================================

def get_cattle_events(db: Session, cattle_id: str) -> list[Event]:
    require_cattle(CattleStore(db), cattle_id)
    events = []
    for record in EventStore(db).list_all(cattle_id):
        try:
            events.append(event_from_record(record))
        except InvalidEventDefinition:
            logger.warning("Skipping malformed event %s of cattle %s", record.get("id"), cattle_id)
    return events


def get_cattle_calendar(
    db: Session,
    cattle_id: str,
    today: date,
    horizon_count: int = DEFAULT_HORIZON,
) -> list[CalendarItem]:
    return project(get_cattle_events(db, cattle_id), today, horizon_count)


def get_event_list(db: Session, cattle_id: str, today: date) -> list[EventListItem]:
    return event_list(get_cattle_events(db, cattle_id), today)


# ============================================================================
# Commands
# ============================================================================

class ScheduleEventUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.store = EventStore(db)

    def execute(
        self,
        cattle_id: str,
        event_date: date,
        kind: str,
        note: str,
        is_repeated: bool = False,
        repeat_duration: int | None = None,
        today: date | None = None,
    ) -> str:
        require_cattle(CattleStore(self.db), cattle_id)
        data = {
            "date": event_date,
            "kind": kind,
            "note": (note or "").strip(),
            "is_repeated": is_repeated,
            "repeat_duration": repeat_duration if is_repeated else None,
        }
        # fail fast before anything is written
        event_from_record({"id": "", "parent_id": cattle_id, **data})

        record = self.store.create(cattle_id, data)
        logger.info(
            "Scheduled %s %s for cattle %s on %s (every %s days)",
            kind, record["id"], cattle_id, event_date, data["repeat_duration"],
        )
        refresh_next_injection(self.db, cattle_id, today or today_local())
        return record["id"]


class EditEventUseCase:
    """Edit event fields. Completion state follows the new schedule:
    a repeating event keeps the same number of completed occurrences when its
    anchor or interval changes, switching between single and repeating starts
    from a clean slate."""

    def __init__(self, db: Session):
        self.db = db
        self.store = EventStore(db)

    def execute(self, cattle_id: str, event_id: str, today: date | None = None, **changes) -> Event:
        current = _load_event(self.store, cattle_id, event_id)
        fields = {k: changes[k] for k in EDITABLE_FIELDS if k in changes}
        if "note" in fields:
            fields["note"] = (fields["note"] or "").strip()
        if not fields:
            return current

        updated = event_from_record({**_record_of(current), **fields})

        if isinstance(current, RecurringEvent) and isinstance(updated, RecurringEvent):
            if (updated.date, updated.repeat_duration) != (current.date, current.repeat_duration):
                fields["completed_through"] = realign_watermark(
                    current, updated.date, updated.repeat_duration,
                )
        elif current.is_repeated != updated.is_repeated:
            fields.update(completed=False, completed_at=None, completed_through=None)

        self.store.update(cattle_id, event_id, fields)
        logger.info("Edited event %s of cattle %s: %s", event_id, cattle_id, sorted(fields))
        refresh_next_injection(self.db, cattle_id, today or today_local())
        return _load_event(self.store, cattle_id, event_id)


class MoveEventUseCase:
    """Drag an event to a new day. Only the anchor occurrence can be moved."""

    def __init__(self, db: Session):
        self.db = db
        self.store = EventStore(db)

    def execute(
        self,
        cattle_id: str,
        event_id: str,
        new_date: date,
        today: date,
        occurrence_index: int = 0,
    ) -> Event:
        if occurrence_index != 0:
            raise EventValidationError("Repeated events cannot be moved")
        if new_date < today:
            raise EventValidationError("Cannot move events to past dates")

        current = _load_event(self.store, cattle_id, event_id)
        fields = {"date": new_date}
        if isinstance(current, RecurringEvent):
            fields["completed_through"] = realign_watermark(current, new_date, current.repeat_duration)

        self.store.update(cattle_id, event_id, fields)
        logger.info("Moved event %s of cattle %s to %s", event_id, cattle_id, new_date)
        refresh_next_injection(self.db, cattle_id, today)
        return _load_event(self.store, cattle_id, event_id)


class DeleteEventUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.store = EventStore(db)

    def execute(self, cattle_id: str, event_id: str, today: date | None = None) -> None:
        _load_event(self.store, cattle_id, event_id)
        self.store.delete(cattle_id, event_id)
        logger.info("Deleted event %s of cattle %s", event_id, cattle_id)
        refresh_next_injection(self.db, cattle_id, today or today_local())


class MarkOccurrenceCompletedUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.store = EventStore(db)

    def execute(
        self,
        cattle_id: str,
        event_id: str,
        occurrence_date: date,
        now: datetime | None = None,
        today: date | None = None,
    ) -> Event:
        current = _load_event(self.store, cattle_id, event_id)
        updated = mark_completed(current, occurrence_date, now or datetime.utcnow())
        if updated != current:
            self.store.update(cattle_id, event_id, completion_fields(updated))
        refresh_next_injection(self.db, cattle_id, today or today_local())
        return updated


class MarkOccurrenceIncompleteUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.store = EventStore(db)

    def execute(
        self,
        cattle_id: str,
        event_id: str,
        occurrence_date: date,
        today: date | None = None,
    ) -> Event:
        current = _load_event(self.store, cattle_id, event_id)
        updated = mark_incomplete(current, occurrence_date)
        if updated != current:
            self.store.update(cattle_id, event_id, completion_fields(updated))
        refresh_next_injection(self.db, cattle_id, today or today_local())
        return updated
