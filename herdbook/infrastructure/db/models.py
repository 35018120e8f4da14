"""
SQLAlchemy ORM models (event log + read models)
"""
from datetime import date as date_type, datetime
from sqlalchemy import String, DateTime, Integer, Text, TIMESTAMP, Date, func, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from herdbook.infrastructure.db.session import Base


class EventLog(Base):
    """
    Event log - source of truth for the herd registry

    Every change is appended as an immutable event
    """
    __tablename__ = "event_log"

    id: Mapped[int] = mapped_column(primary_key=True)

    event_type: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    payload_json: Mapped[dict] = mapped_column(JSONB, nullable=False)  # PostgreSQL JSONB

    occurred_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        index=True
    )
    idempotency_key: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True
    )
    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


# ============================================================================
# Read Models (projections built from events)
# ============================================================================


class ProjectorCheckpoint(Base):
    """
    Infrastructure: Track projector progress for idempotent event processing
    """
    __tablename__ = "projector_checkpoints"

    projector_name: Mapped[str] = mapped_column(String(128), primary_key=True)
    last_event_id: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


class CattleModel(Base):
    """Read model: registered animals (built by CattleProjector)"""
    __tablename__ = "cattle"

    cattle_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    image: Mapped[str] = mapped_column(Text, nullable=False, default="")  # data URL from the camera
    next_injection: Mapped[date_type | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class CattleEventModel(Base):
    """Read model: injections and notes scheduled for an animal"""
    __tablename__ = "cattle_events"

    event_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    cattle_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)  # -> cattle

    date: Mapped[date_type] = mapped_column(Date, nullable=False)  # anchor occurrence
    kind: Mapped[str] = mapped_column(String(16), nullable=False)  # INJECTION | NOTE
    note: Mapped[str] = mapped_column(Text, nullable=False)
    is_repeated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    repeat_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # days

    # Non-repeating events only
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    # Repeating events only: occurrences dated <= completed_through are done
    completed_through: Mapped[date_type | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
