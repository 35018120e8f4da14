"""create herd tables

Revision ID: 3f2a9c1d7b40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Event log, projector checkpoints and the herd read models."""
    op.create_table(
        'event_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=128), nullable=False),
        sa.Column('payload_json', JSONB, nullable=False),
        sa.Column('occurred_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('idempotency_key', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_event_log_event_type', 'event_log', ['event_type'])
    op.create_index('ix_event_log_occurred_at', 'event_log', ['occurred_at'])
    op.create_index('ix_event_log_idempotency_key', 'event_log', ['idempotency_key'], unique=True)

    op.create_table(
        'projector_checkpoints',
        sa.Column('projector_name', sa.String(128), primary_key=True),
        sa.Column('last_event_id', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'cattle',
        sa.Column('cattle_id', sa.String(32), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(64), nullable=False),
        sa.Column('image', sa.Text(), nullable=False, server_default=''),
        sa.Column('next_injection', sa.Date(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'cattle_events',
        sa.Column('event_id', sa.String(32), primary_key=True),
        sa.Column('cattle_id', sa.String(32), nullable=False, index=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('kind', sa.String(16), nullable=False),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('is_repeated', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('repeat_duration', sa.Integer(), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('completed_through', sa.Date(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    """Drop herd tables."""
    op.drop_table('cattle_events')
    op.drop_table('cattle')
    op.drop_table('projector_checkpoints')
    op.drop_index('ix_event_log_idempotency_key', table_name='event_log')
    op.drop_index('ix_event_log_occurred_at', table_name='event_log')
    op.drop_index('ix_event_log_event_type', table_name='event_log')
    op.drop_table('event_log')
