"""
Herd store - cattle records and their events behind a small CRUD interface.

Writes go to the event log and are projected into the read models right away;
reads come from the read models. Subscribers to a collection path receive the
fresh collection after every committed change:

    "cattle"                    -> list of cattle records
    "cattle/<cattle_id>/events" -> list of event records of that animal

Concurrent writers are not reconciled: the later write wins.
"""
import logging
import re
import uuid
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from herdbook.domain.cattle import Cattle
from herdbook.domain.cattle_event import CattleEvent
from herdbook.infrastructure.db.models import CattleModel, CattleEventModel
from herdbook.infrastructure.eventlog.repository import EventLogRepository
from herdbook.readmodels.projectors.cattle import CattleProjector

logger = logging.getLogger(__name__)

CATTLE_PATH = "cattle"
_EVENTS_PATH_RE = re.compile(r"^cattle/(?P<cattle_id>[^/]+)/events$")

Record = Dict[str, Any]
Listener = Callable[[List[Record]], None]


class StoreUnavailable(RuntimeError):
    """The backing database could not be reached."""


class RecordNotFound(LookupError):
    """No record under the given (parent_id, id) key."""


def events_path(cattle_id: str) -> str:
    return f"{CATTLE_PATH}/{cattle_id}/events"


class ChangeFeed:
    """In-process registry of collection listeners."""

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}

    def subscribe(self, path: str, listener: Listener) -> Callable[[], None]:
        self._listeners.setdefault(path, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(path, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def has_listeners(self, path: str) -> bool:
        return bool(self._listeners.get(path))

    def publish(self, path: str, records: List[Record]) -> None:
        for listener in list(self._listeners.get(path, [])):
            try:
                listener(records)
            except Exception:
                logger.exception("Change listener failed for path=%s", path)


@lru_cache
def get_change_feed() -> ChangeFeed:
    """Process-wide feed shared by all sessions"""
    return ChangeFeed()


def cattle_record(row: CattleModel) -> Record:
    return {
        "id": row.cattle_id,
        "name": row.name,
        "type": row.type,
        "image": row.image,
        "next_injection": row.next_injection,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }


def event_record(row: CattleEventModel) -> Record:
    return {
        "id": row.event_id,
        "parent_id": row.cattle_id,
        "date": row.date,
        "kind": row.kind,
        "note": row.note,
        "is_repeated": row.is_repeated,
        "repeat_duration": row.repeat_duration,
        "completed": row.completed,
        "completed_at": row.completed_at,
        "completed_through": row.completed_through,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }


class BaseStore:
    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed or get_change_feed()
        self.event_repo = EventLogRepository(db)

    @contextmanager
    def _io(self, action: str):
        try:
            yield
        except OperationalError as e:
            self.db.rollback()
            logger.exception("Store unavailable during %s", action)
            raise StoreUnavailable(f"store unavailable during {action}") from e

    def _append(self, event_type: str, payload: Record) -> None:
        self.event_repo.append_event(event_type=event_type, payload=payload)
        self.db.commit()
        CattleProjector(self.db).run()

    def _load(self, path: str) -> List[Record]:
        if path == CATTLE_PATH:
            rows = self.db.query(CattleModel).order_by(CattleModel.created_at.asc()).all()
            return [cattle_record(r) for r in rows]
        match = _EVENTS_PATH_RE.match(path)
        if match:
            rows = self.db.query(CattleEventModel).filter(
                CattleEventModel.cattle_id == match.group("cattle_id")
            ).order_by(CattleEventModel.date.asc(), CattleEventModel.created_at.asc()).all()
            return [event_record(r) for r in rows]
        raise ValueError(f"unknown collection path: {path}")

    def _notify(self, path: str) -> None:
        if not self.feed.has_listeners(path):
            return
        with self._io(f"notify {path}"):
            records = self._load(path)
        self.feed.publish(path, records)

    def subscribe(self, collection_path: str, on_change: Listener) -> Callable[[], None]:
        """Listen for changes of a collection; on_change receives the current
        collection immediately and after every change. Returns unsubscribe()."""
        with self._io(f"subscribe {collection_path}"):
            current = self._load(collection_path)
        unsubscribe = self.feed.subscribe(collection_path, on_change)
        try:
            on_change(current)
        except Exception:
            unsubscribe()
            raise
        return unsubscribe


class CattleStore(BaseStore):
    """Parent records: the registered animals."""

    def create(self, cattle_data: Record) -> Record:
        cattle_id = uuid.uuid4().hex
        payload = Cattle.create(
            cattle_id=cattle_id,
            name=cattle_data["name"],
            cattle_type=cattle_data["type"],
            image=cattle_data.get("image") or "",
        )
        with self._io("create cattle"):
            self._append("cattle_created", payload)
            record = self.get(cattle_id)
        self._notify(CATTLE_PATH)
        return record

    def get(self, cattle_id: str) -> Optional[Record]:
        with self._io("get cattle"):
            row = self.db.query(CattleModel).filter(CattleModel.cattle_id == cattle_id).first()
        return cattle_record(row) if row else None

    def list_all(self) -> List[Record]:
        with self._io("list cattle"):
            return self._load(CATTLE_PATH)

    def update(self, cattle_id: str, fields: Record) -> None:
        with self._io("update cattle"):
            self._append("cattle_updated", Cattle.update(cattle_id, **fields))
        self._notify(CATTLE_PATH)

    def update_next_injection(self, cattle_id: str, next_injection) -> None:
        with self._io("update next injection"):
            self._append("cattle_updated", Cattle.set_next_injection(cattle_id, next_injection))
        self._notify(CATTLE_PATH)

    def delete(self, cattle_id: str) -> None:
        with self._io("delete cattle"):
            self._append("cattle_deleted", Cattle.delete(cattle_id))
        self._notify(CATTLE_PATH)
        self._notify(events_path(cattle_id))


class EventStore(BaseStore):
    """Event records scoped to a cattle record."""

    def create(self, parent_id: str, event_data: Record) -> Record:
        event_id = uuid.uuid4().hex
        payload = CattleEvent.create(
            event_id=event_id,
            cattle_id=parent_id,
            event_date=event_data["date"],
            kind=event_data["kind"],
            note=event_data["note"],
            is_repeated=bool(event_data.get("is_repeated")),
            repeat_duration=event_data.get("repeat_duration"),
        )
        with self._io("create event"):
            self._append("cattle_event_created", payload)
            record = self.get(parent_id, event_id)
        self._notify(events_path(parent_id))
        return record

    def get(self, parent_id: str, event_id: str) -> Optional[Record]:
        with self._io("get event"):
            row = self.db.query(CattleEventModel).filter(
                CattleEventModel.cattle_id == parent_id,
                CattleEventModel.event_id == event_id,
            ).first()
        return event_record(row) if row else None

    def _require(self, parent_id: str, event_id: str) -> None:
        if self.get(parent_id, event_id) is None:
            raise RecordNotFound(f"event {event_id} not found under cattle {parent_id}")

    def list_all(self, parent_id: str) -> List[Record]:
        with self._io("list events"):
            return self._load(events_path(parent_id))

    def update(self, parent_id: str, event_id: str, fields: Record) -> None:
        """Merge fields into the stored record (not a full replace)."""
        self._require(parent_id, event_id)
        with self._io("update event"):
            self._append("cattle_event_updated", CattleEvent.update(event_id, parent_id, **fields))
        self._notify(events_path(parent_id))

    def delete(self, parent_id: str, event_id: str) -> None:
        self._require(parent_id, event_id)
        with self._io("delete event"):
            self._append("cattle_event_deleted", CattleEvent.delete(event_id, parent_id))
        self._notify(events_path(parent_id))
