"""
Cattle event API endpoints - schedule, calendar, completion
"""
from datetime import date as date_type, datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.orm import Session

from herdbook.api.deps import get_db, get_today
from herdbook.application.calendar import CalendarItem
from herdbook.application.cattle import CattleNotFoundError
from herdbook.application.events import (
    EventNotFoundError,
    ScheduleEventUseCase, EditEventUseCase, MoveEventUseCase, DeleteEventUseCase,
    MarkOccurrenceCompletedUseCase, MarkOccurrenceIncompleteUseCase,
    get_cattle_calendar, get_event_list,
)
from herdbook.config import get_settings
from herdbook.domain.cattle_event import Event, RecurringEvent


router = APIRouter(prefix="/api/v1/cattle/{cattle_id}/events", tags=["events"])


# === Request/Response models ===

class ScheduleEventRequest(BaseModel):
    date: date_type
    kind: Literal["INJECTION", "NOTE"] = "INJECTION"
    note: str
    is_repeated: bool = False
    repeat_duration: int | None = Field(default=None, ge=1)  # days

    @field_validator("note")
    @classmethod
    def note_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Note is required")
        return v.strip()

    @model_validator(mode="after")
    def repeat_needs_duration(self):
        if self.is_repeated and self.repeat_duration is None:
            raise ValueError("repeat_duration is required for repeated events")
        return self


class EditEventRequest(BaseModel):
    date: date_type | None = None
    kind: Literal["INJECTION", "NOTE"] | None = None
    note: str | None = None
    is_repeated: bool | None = None
    repeat_duration: int | None = Field(default=None, ge=1)


class OccurrenceRequest(BaseModel):
    occurrence_date: date_type


class MoveEventRequest(BaseModel):
    new_date: date_type
    occurrence_index: int = Field(default=0, ge=0)


class EventResponse(BaseModel):
    id: str
    cattle_id: str
    date: date_type
    kind: str
    note: str
    is_repeated: bool
    repeat_duration: int | None
    completed: bool
    completed_at: datetime | None = None
    completed_through: date_type | None = None
    next_date: date_type | None = None


class CalendarItemResponse(BaseModel):
    key: str
    event_id: str
    occurrence_index: int
    title: str
    start: date_type
    note: str
    kind: str
    is_repeated: bool
    repeat_duration: int | None
    is_repeated_instance: bool
    completed: bool
    is_today: bool
    draggable: bool
    color: str
    background_color: str


# === Helper functions ===

def _event_response(event: Event, completed: bool | None = None, next_date: date_type | None = None) -> EventResponse:
    recurring = isinstance(event, RecurringEvent)
    if completed is None:
        completed = event.completed_through is not None if recurring else event.completed
    return EventResponse(
        id=event.id,
        cattle_id=event.parent_id,
        date=event.date,
        kind=event.kind,
        note=event.note,
        is_repeated=event.is_repeated,
        repeat_duration=event.repeat_duration,
        completed=completed,
        completed_at=None if recurring else event.completed_at,
        completed_through=event.completed_through if recurring else None,
        next_date=next_date,
    )


def _calendar_item_response(item: CalendarItem) -> CalendarItemResponse:
    return CalendarItemResponse(
        key=str(item.key),
        event_id=item.event_id,
        occurrence_index=item.occurrence_index,
        title=item.title,
        start=item.start,
        note=item.note,
        kind=item.kind,
        is_repeated=item.is_repeated,
        repeat_duration=item.repeat_duration,
        is_repeated_instance=item.is_repeated_instance,
        completed=item.completed,
        is_today=item.is_today,
        draggable=item.draggable,
        color=item.color,
        background_color=item.background_color,
    )


def _raise_http(e: ValueError) -> None:
    status_code = 404 if isinstance(e, (CattleNotFoundError, EventNotFoundError)) else 400
    raise HTTPException(status_code=status_code, detail=str(e))


# === Endpoints ===

@router.post("/", response_model=EventResponse)
def schedule_event(
    cattle_id: str,
    req: ScheduleEventRequest,
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
):
    """Schedule an injection or a note"""
    try:
        event_id = ScheduleEventUseCase(db).execute(
            cattle_id=cattle_id,
            event_date=req.date,
            kind=req.kind,
            note=req.note,
            is_repeated=req.is_repeated,
            repeat_duration=req.repeat_duration,
            today=today,
        )
        items = get_event_list(db, cattle_id, today)
    except ValueError as e:
        _raise_http(e)

    for item in items:
        if item.event.id == event_id:
            return _event_response(item.event, item.completed, item.next_date)
    raise HTTPException(status_code=500, detail="Event creation failed")


@router.get("/", response_model=list[EventResponse])
def list_events(cattle_id: str, db: Session = Depends(get_db), today: date_type = Depends(get_today)):
    """Events of an animal with anchor completion and next repeat date"""
    try:
        items = get_event_list(db, cattle_id, today)
    except ValueError as e:
        _raise_http(e)
    return [_event_response(i.event, i.completed, i.next_date) for i in items]


@router.get("/calendar", response_model=list[CalendarItemResponse])
def calendar(
    cattle_id: str,
    horizon: int | None = Query(default=None, ge=0, le=520),
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
):
    """Every occurrence within the horizon, ready for the calendar widget"""
    if horizon is None:
        horizon = get_settings().OCCURRENCE_HORIZON
    try:
        items = get_cattle_calendar(db, cattle_id, today, horizon)
    except ValueError as e:
        _raise_http(e)
    return [_calendar_item_response(i) for i in items]


@router.patch("/{event_id}", response_model=EventResponse)
def edit_event(
    cattle_id: str,
    event_id: str,
    req: EditEventRequest,
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
):
    try:
        event = EditEventUseCase(db).execute(
            cattle_id, event_id, today=today, **req.model_dump(exclude_none=True),
        )
    except ValueError as e:
        _raise_http(e)
    return _event_response(event)


@router.post("/{event_id}/move", response_model=EventResponse)
def move_event(
    cattle_id: str,
    event_id: str,
    req: MoveEventRequest,
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
):
    """Drag an event to another day (anchor occurrence only, not into the past)"""
    try:
        event = MoveEventUseCase(db).execute(
            cattle_id, event_id, req.new_date, today, occurrence_index=req.occurrence_index,
        )
    except ValueError as e:
        _raise_http(e)
    return _event_response(event)


@router.post("/{event_id}/complete", response_model=EventResponse)
def complete_occurrence(
    cattle_id: str,
    event_id: str,
    req: OccurrenceRequest,
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
):
    try:
        event = MarkOccurrenceCompletedUseCase(db).execute(
            cattle_id, event_id, req.occurrence_date, today=today,
        )
    except ValueError as e:
        _raise_http(e)
    return _event_response(event)


@router.post("/{event_id}/incomplete", response_model=EventResponse)
def incomplete_occurrence(
    cattle_id: str,
    event_id: str,
    req: OccurrenceRequest,
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
):
    try:
        event = MarkOccurrenceIncompleteUseCase(db).execute(
            cattle_id, event_id, req.occurrence_date, today=today,
        )
    except ValueError as e:
        _raise_http(e)
    return _event_response(event)


@router.delete("/{event_id}", status_code=204)
def delete_event(
    cattle_id: str,
    event_id: str,
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
):
    try:
        DeleteEventUseCase(db).execute(cattle_id, event_id, today=today)
    except ValueError as e:
        _raise_http(e)
