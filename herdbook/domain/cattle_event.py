"""
CattleEvent domain entity - scheduled injections and notes for one animal.

Two layers live here:
- CattleEvent: generates event-log payloads (create / update / delete)
- NonRecurringEvent / RecurringEvent: the typed view the recurrence engine works on

Which completion fields mean anything depends on the variant:
NonRecurringEvent keeps a single completed flag, RecurringEvent keeps a
completed_through watermark.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Union


KIND_INJECTION = "INJECTION"
KIND_NOTE = "NOTE"
VALID_KINDS = frozenset({KIND_INJECTION, KIND_NOTE})

UPDATABLE_FIELDS = (
    "date", "kind", "is_repeated", "repeat_duration", "note",
    "completed", "completed_at", "completed_through",
)


class InvalidEventDefinition(ValueError):
    """Event record cannot be turned into a valid schedule."""


def _iso(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _as_date(value) -> date | None:
    """Accept date, datetime or ISO string; time of day is dropped."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _as_datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(str(value).strip())


class CattleEvent:
    @staticmethod
    def create(
        event_id: str,
        cattle_id: str,
        event_date: date,
        kind: str,
        note: str,
        is_repeated: bool = False,
        repeat_duration: int | None = None,
    ) -> Dict[str, Any]:
        now = datetime.utcnow().isoformat()
        return {
            "event_id": event_id,
            "cattle_id": cattle_id,
            "date": _iso(event_date),
            "kind": kind,
            "note": note,
            "is_repeated": is_repeated,
            "repeat_duration": repeat_duration,
            "completed": False,
            "completed_at": None,
            "completed_through": None,
            "created_at": now,
            "updated_at": now,
        }

    @staticmethod
    def update(event_id: str, cattle_id: str, **changes) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "event_id": event_id,
            "cattle_id": cattle_id,
            "updated_at": datetime.utcnow().isoformat(),
        }
        for key in UPDATABLE_FIELDS:
            if key in changes:
                payload[key] = _iso(changes[key])
        return payload

    @staticmethod
    def delete(event_id: str, cattle_id: str) -> Dict[str, Any]:
        return {
            "event_id": event_id,
            "cattle_id": cattle_id,
            "deleted_at": datetime.utcnow().isoformat(),
        }


def _check_common(kind: str, note: str) -> None:
    if kind not in VALID_KINDS:
        raise InvalidEventDefinition(f"invalid kind: {kind}")
    if not note or not note.strip():
        raise InvalidEventDefinition("note is required")


@dataclass(frozen=True)
class NonRecurringEvent:
    id: str
    parent_id: str
    date: date
    kind: str
    note: str
    completed: bool = False
    completed_at: datetime | None = None
    # Left over when a repeating event was switched to a single one
    repeat_duration: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self):
        _check_common(self.kind, self.note)
        if self.repeat_duration is not None and self.repeat_duration < 1:
            raise InvalidEventDefinition("repeat_duration must be >= 1 when set")

    @property
    def is_repeated(self) -> bool:
        return False

    @property
    def is_injection(self) -> bool:
        return self.kind == KIND_INJECTION


@dataclass(frozen=True)
class RecurringEvent:
    id: str
    parent_id: str
    date: date
    kind: str
    note: str
    repeat_duration: int
    completed_through: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self):
        _check_common(self.kind, self.note)
        if not isinstance(self.repeat_duration, int) or self.repeat_duration < 1:
            raise InvalidEventDefinition("repeating event requires repeat_duration >= 1")

    @property
    def is_repeated(self) -> bool:
        return True

    @property
    def is_injection(self) -> bool:
        return self.kind == KIND_INJECTION


Event = Union[NonRecurringEvent, RecurringEvent]


def event_from_record(record: Dict[str, Any]) -> Event:
    """Build the typed event from a store record (dict keyed as in the event store)."""
    event_date = _as_date(record.get("date"))
    if event_date is None:
        raise InvalidEventDefinition("date is required")
    repeat_duration = record.get("repeat_duration")
    common = dict(
        id=record["id"],
        parent_id=record["parent_id"],
        date=event_date,
        kind=record.get("kind") or "",
        note=record.get("note") or "",
        created_at=_as_datetime(record.get("created_at")),
        updated_at=_as_datetime(record.get("updated_at")),
    )
    if record.get("is_repeated"):
        if repeat_duration is None:
            raise InvalidEventDefinition("repeating event requires repeat_duration")
        return RecurringEvent(
            repeat_duration=int(repeat_duration),
            completed_through=_as_date(record.get("completed_through")),
            **common,
        )
    return NonRecurringEvent(
        completed=bool(record.get("completed")),
        completed_at=_as_datetime(record.get("completed_at")),
        repeat_duration=int(repeat_duration) if repeat_duration is not None else None,
        **common,
    )


def completion_fields(event: Event) -> Dict[str, Any]:
    """Fields to merge into the store after a completion change."""
    if isinstance(event, RecurringEvent):
        return {"completed_through": event.completed_through}
    return {"completed": event.completed, "completed_at": event.completed_at}
