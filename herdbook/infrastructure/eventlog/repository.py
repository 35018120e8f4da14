"""
Event Log Repository - source of truth for the herd registry

Every change to cattle and their events is written as an immutable event;
read models are rebuilt from it by projectors.
"""
from datetime import datetime
from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session

from herdbook.infrastructure.db.models import EventLog


class EventLogRepository:
    """
    Repository for the event log
    """

    def __init__(self, db: Session):
        self.db = db

    def append_event(
        self,
        event_type: str,
        payload: Dict[str, Any],
        occurred_at: Optional[datetime] = None,
        idempotency_key: Optional[str] = None,
    ) -> int:
        """
        Append an event to the log

        Args:
            event_type: Event type (e.g. "cattle_event_created")
            payload: Event data (stored as JSONB)
            occurred_at: When it happened (default: now)
            idempotency_key: Optional key, unique across the log

        Returns:
            id of the appended log row

        Raises:
            IntegrityError: idempotency_key already exists

        Example:
            >>> repo = EventLogRepository(db)
            >>> log_id = repo.append_event(
            ...     event_type="cattle_created",
            ...     payload={"cattle_id": "a1b2", "name": "Gauri"},
            ... )
        """
        if occurred_at is None:
            occurred_at = datetime.utcnow()

        event = EventLog(
            event_type=event_type,
            payload_json=payload,
            occurred_at=occurred_at,
            idempotency_key=idempotency_key,
        )

        self.db.add(event)
        self.db.flush()  # get the id without commit

        return event.id

    def get_event(self, log_id: int) -> Optional[EventLog]:
        return self.db.query(EventLog).filter(EventLog.id == log_id).first()

    def list_events_since(
        self,
        after_id: int = 0,
        limit: int = 200,
        event_types: Optional[List[str]] = None,
    ) -> List[EventLog]:
        """
        Events after the given id (for projectors)

        Args:
            after_id: Return events with id > after_id (checkpoint)
            limit: Batch size (default: 200)
            event_types: Optional filter by event type

        Returns:
            Events ordered by id (ASC)
        """
        query = self.db.query(EventLog).filter(EventLog.id > after_id)

        if event_types:
            query = query.filter(EventLog.event_type.in_(event_types))

        query = query.order_by(EventLog.id.asc()).limit(limit)

        return query.all()

    def count_events(self, event_types: Optional[List[str]] = None) -> int:
        query = self.db.query(EventLog)

        if event_types:
            query = query.filter(EventLog.event_type.in_(event_types))

        return query.count()
