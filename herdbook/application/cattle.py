"""Cattle use cases - registry, headcount, next injection summaries"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from sqlalchemy.orm import Session

from herdbook.domain.cattle_event import InvalidEventDefinition, event_from_record
from herdbook.domain.recurrence import next_actionable
from herdbook.infrastructure.store import CattleStore, EventStore

logger = logging.getLogger(__name__)


class CattleValidationError(ValueError):
    pass


class CattleNotFoundError(CattleValidationError):
    pass


@dataclass
class HeadCount:
    total: int
    by_type: dict[str, int] = field(default_factory=dict)


def require_cattle(store: CattleStore, cattle_id: str) -> dict:
    cattle = store.get(cattle_id)
    if not cattle:
        raise CattleNotFoundError(f"Cattle {cattle_id} not found")
    return cattle


def _clean(value: str, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise CattleValidationError(f"{label} is required")
    return value


class CreateCattleUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.store = CattleStore(db)

    def execute(self, name: str, cattle_type: str, image: str) -> str:
        record = self.store.create({
            "name": _clean(name, "Name"),
            "type": _clean(cattle_type, "Type"),
            "image": _clean(image, "Image"),
        })
        logger.info("Registered cattle %s (%s)", record["id"], record["type"])
        return record["id"]


class UpdateCattleUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.store = CattleStore(db)

    def execute(self, cattle_id: str, **changes) -> None:
        require_cattle(self.store, cattle_id)
        fields = {}
        for key, label in (("name", "Name"), ("type", "Type"), ("image", "Image")):
            if changes.get(key) is not None:
                fields[key] = _clean(changes[key], label)
        if fields:
            self.store.update(cattle_id, fields)


class DeleteCattleUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.store = CattleStore(db)

    def execute(self, cattle_id: str) -> None:
        require_cattle(self.store, cattle_id)
        self.store.delete(cattle_id)
        logger.info("Deleted cattle %s", cattle_id)


def compute_next_injection(event_records: list[dict], today: date) -> date | None:
    """Earliest actionable occurrence over the animal's repeating injections."""
    candidates = []
    for record in event_records:
        try:
            event = event_from_record(record)
        except InvalidEventDefinition:
            logger.warning("Skipping malformed event %s", record.get("id"))
            continue
        due = next_actionable(event, today)
        if due is not None:
            candidates.append(due)
    return min(candidates) if candidates else None


def refresh_next_injection(db: Session, cattle_id: str, today: date) -> date | None:
    """Recompute and persist cattle.next_injection; writes only on change."""
    cattle_store = CattleStore(db)
    cattle = require_cattle(cattle_store, cattle_id)
    due = compute_next_injection(EventStore(db).list_all(cattle_id), today)
    if cattle["next_injection"] != due:
        cattle_store.update_next_injection(cattle_id, due)
    return due


def get_next_injections(db: Session, today: date) -> dict[str, date | None]:
    """cattle_id -> next injection due, computed live (not from the stored field)."""
    events = EventStore(db)
    return {
        cattle["id"]: compute_next_injection(events.list_all(cattle["id"]), today)
        for cattle in CattleStore(db).list_all()
    }


def count_cattle(db: Session) -> HeadCount:
    herd = CattleStore(db).list_all()
    return HeadCount(total=len(herd), by_type=dict(Counter(c["type"] for c in herd)))
