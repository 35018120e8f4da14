"""CattleProjector - builds cattle and cattle_events read models from events"""
from datetime import date, datetime

from herdbook.readmodels.projectors.base import BaseProjector
from herdbook.infrastructure.db.models import CattleModel, CattleEventModel, EventLog


def _date(value) -> date | None:
    return date.fromisoformat(value[:10]) if value else None


def _datetime(value) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class CattleProjector(BaseProjector):
    def __init__(self, db):
        super().__init__(db, projector_name="cattle")

    def handle_event(self, event: EventLog) -> None:
        handlers = {
            "cattle_created": self._handle_cattle_created,
            "cattle_updated": self._handle_cattle_updated,
            "cattle_deleted": self._handle_cattle_deleted,
            "cattle_event_created": self._handle_event_created,
            "cattle_event_updated": self._handle_event_updated,
            "cattle_event_deleted": self._handle_event_deleted,
        }
        handler = handlers.get(event.event_type)
        if handler:
            handler(event)

    def reset(self) -> None:
        self.db.query(CattleEventModel).delete(synchronize_session=False)
        self.db.query(CattleModel).delete(synchronize_session=False)
        super().reset()

    # --- Cattle handlers ---

    def _handle_cattle_created(self, event: EventLog) -> None:
        p = event.payload_json
        self.db.flush()
        existing = self.db.query(CattleModel).filter(
            CattleModel.cattle_id == p["cattle_id"]
        ).first()
        if existing:
            return
        self.db.add(CattleModel(
            cattle_id=p["cattle_id"],
            name=p["name"],
            type=p["type"],
            image=p.get("image") or "",
            next_injection=_date(p.get("next_injection")),
            created_at=_datetime(p["created_at"]),
            updated_at=_datetime(p["updated_at"]),
        ))
        self.db.flush()

    def _handle_cattle_updated(self, event: EventLog) -> None:
        p = event.payload_json
        cattle = self.db.query(CattleModel).filter(
            CattleModel.cattle_id == p["cattle_id"]
        ).first()
        if not cattle:
            return
        for field in ("name", "type", "image"):
            if field in p:
                setattr(cattle, field, p[field])
        if "next_injection" in p:
            cattle.next_injection = _date(p["next_injection"])
        if p.get("updated_at"):
            cattle.updated_at = _datetime(p["updated_at"])

    def _handle_cattle_deleted(self, event: EventLog) -> None:
        p = event.payload_json
        self.db.query(CattleEventModel).filter(
            CattleEventModel.cattle_id == p["cattle_id"]
        ).delete(synchronize_session=False)
        self.db.query(CattleModel).filter(
            CattleModel.cattle_id == p["cattle_id"]
        ).delete(synchronize_session=False)

    # --- Event handlers ---

    def _handle_event_created(self, event: EventLog) -> None:
        p = event.payload_json
        self.db.flush()
        existing = self.db.query(CattleEventModel).filter(
            CattleEventModel.event_id == p["event_id"]
        ).first()
        if existing:
            return
        self.db.add(CattleEventModel(
            event_id=p["event_id"],
            cattle_id=p["cattle_id"],
            date=_date(p["date"]),
            kind=p["kind"],
            note=p["note"],
            is_repeated=bool(p.get("is_repeated")),
            repeat_duration=p.get("repeat_duration"),
            completed=bool(p.get("completed")),
            completed_at=_datetime(p.get("completed_at")),
            completed_through=_date(p.get("completed_through")),
            created_at=_datetime(p["created_at"]),
            updated_at=_datetime(p["updated_at"]),
        ))
        self.db.flush()

    def _handle_event_updated(self, event: EventLog) -> None:
        """Merge: only the fields present in the payload change."""
        p = event.payload_json
        ev = self.db.query(CattleEventModel).filter(
            CattleEventModel.event_id == p["event_id"],
            CattleEventModel.cattle_id == p["cattle_id"],
        ).first()
        if not ev:
            return
        for field in ("kind", "note", "is_repeated", "repeat_duration", "completed"):
            if field in p:
                setattr(ev, field, p[field])
        if "date" in p:
            ev.date = _date(p["date"])
        if "completed_at" in p:
            ev.completed_at = _datetime(p["completed_at"])
        if "completed_through" in p:
            ev.completed_through = _date(p["completed_through"])
        if p.get("updated_at"):
            ev.updated_at = _datetime(p["updated_at"])

    def _handle_event_deleted(self, event: EventLog) -> None:
        p = event.payload_json
        self.db.query(CattleEventModel).filter(
            CattleEventModel.event_id == p["event_id"],
            CattleEventModel.cattle_id == p["cattle_id"],
        ).delete(synchronize_session=False)
