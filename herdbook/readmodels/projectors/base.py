"""
Base Projector - base class for projectors (CQRS read side)

Projectors build read models from the event log.
A checkpoint makes runs idempotent and incremental.
"""
from abc import ABC, abstractmethod
from typing import List, Optional
from sqlalchemy.orm import Session

from herdbook.infrastructure.db.models import EventLog, ProjectorCheckpoint
from herdbook.infrastructure.eventlog.repository import EventLogRepository


class BaseProjector(ABC):
    """
    Base class for projectors

    Each projector:
    1. Reads events from event_log after its checkpoint
    2. Handles each event (handle_event)
    3. Updates its read model
    4. Saves the new checkpoint
    """

    def __init__(self, db: Session, projector_name: str):
        """
        Args:
            db: SQLAlchemy session
            projector_name: Unique projector name (checkpoint key)
        """
        self.db = db
        self.projector_name = projector_name
        self.event_repo = EventLogRepository(db)

    @abstractmethod
    def handle_event(self, event: EventLog) -> None:
        """
        Handle one event and update the read model

        Note:
            Must be idempotent - handling the same event twice
            must not corrupt the read model.
        """
        pass

    def get_checkpoint(self) -> int:
        """Last processed event log id (0 if the projector never ran)"""
        checkpoint = self.db.query(ProjectorCheckpoint).filter(
            ProjectorCheckpoint.projector_name == self.projector_name
        ).first()

        return checkpoint.last_event_id if checkpoint else 0

    def save_checkpoint(self, event_id: int) -> None:
        # Flush so the query sees uncommitted changes
        self.db.flush()

        checkpoint = self.db.query(ProjectorCheckpoint).filter(
            ProjectorCheckpoint.projector_name == self.projector_name
        ).first()

        if checkpoint:
            checkpoint.last_event_id = event_id
        else:
            checkpoint = ProjectorCheckpoint(
                projector_name=self.projector_name,
                last_event_id=event_id
            )
            self.db.add(checkpoint)

    def run(
        self,
        event_types: Optional[List[str]] = None,
        batch_size: int = 200
    ) -> int:
        """
        Process every new event

        Args:
            event_types: Optional event type filter (None = all events)
            batch_size: Batch size (default: 200)

        Returns:
            Number of processed events

        Example:
            >>> projector = CattleProjector(db)
            >>> count = projector.run()
        """
        checkpoint = self.get_checkpoint()
        processed_count = 0

        while True:
            events = self.event_repo.list_events_since(
                after_id=checkpoint,
                limit=batch_size,
                event_types=event_types
            )

            if not events:
                break

            for event in events:
                self.handle_event(event)
                checkpoint = event.id
                processed_count += 1

            self.save_checkpoint(checkpoint)
            self.db.commit()

            if len(events) < batch_size:
                break

        return processed_count

    def reset(self) -> None:
        """
        Reset the projector checkpoint

        Warning:
            Causes a full rebuild of the read model on the next run!
            Subclasses drop their read model rows as well.
        """
        self.save_checkpoint(0)
