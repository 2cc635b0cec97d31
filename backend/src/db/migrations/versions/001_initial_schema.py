"""Initial collaboration schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2024-05-20

Creates the collaboration tables:
- events: Shared events owned by their creator
- participations: Invitations to events (one row per event and user)
- schedule_entries: Personal schedule rows derived from approved participations
- task_requests: Two-party task requests

Participations and schedule entries cascade on event delete.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _uuid_column() -> sa.Column:
    # Native UUID on PostgreSQL, 16 raw bytes on SQLite
    return sa.Column(
        'uuid',
        postgresql.UUID(as_uuid=True).with_variant(sa.LargeBinary(16), 'sqlite'),
        nullable=False
    )


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade() -> None:
    """
    Create events, participations, schedule_entries and task_requests.

    Constraints:
    - uq_participation_event_user: at most one invitation per event and user
    - uq_schedule_entry_user_event: at most one schedule entry per event and user
    """

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('event_type', sa.String(length=20), nullable=False),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('location_ref', sa.String(length=64), nullable=True),
        sa.Column('location_text', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('project_ref', sa.String(length=64), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('updated_by', sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            'end_time IS NULL OR start_time IS NULL OR end_time > start_time',
            name='ck_events_time_window'
        ),
        sa.CheckConstraint('capacity IS NULL OR capacity >= 1', name='ck_events_capacity')
    )
    op.create_index('ix_events_uuid', 'events', ['uuid'], unique=True)
    op.create_index('ix_events_event_type', 'events', ['event_type'])
    op.create_index('ix_events_event_date', 'events', ['event_date'])
    op.create_index('ix_events_project_ref', 'events', ['project_ref'])
    op.create_index('ix_events_created_by', 'events', ['created_by'])
    op.create_index('idx_events_type_date', 'events', ['event_type', 'event_date'])

    op.create_table(
        'participations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('invited_by', sa.String(length=64), nullable=False),
        sa.Column('response_note', sa.Text(), nullable=True),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_participation_event_user')
    )
    op.create_index('ix_participations_uuid', 'participations', ['uuid'], unique=True)
    op.create_index('ix_participations_event_id', 'participations', ['event_id'])
    op.create_index('ix_participations_user_id', 'participations', ['user_id'])
    op.create_index('ix_participations_status', 'participations', ['status'])

    op.create_table(
        'schedule_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('location_text', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'event_id', name='uq_schedule_entry_user_event')
    )
    op.create_index('ix_schedule_entries_uuid', 'schedule_entries', ['uuid'], unique=True)
    op.create_index('ix_schedule_entries_event_id', 'schedule_entries', ['event_id'])
    op.create_index('idx_schedule_entries_user_date', 'schedule_entries', ['user_id', 'entry_date'])

    op.create_table(
        'task_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('requested_by', sa.String(length=64), nullable=False),
        sa.Column('requested_to', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('deadline', sa.Date(), nullable=True),
        sa.Column('project_ref', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('response_note', sa.Text(), nullable=True),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('requested_by <> requested_to', name='ck_task_requests_not_self')
    )
    op.create_index('ix_task_requests_uuid', 'task_requests', ['uuid'], unique=True)
    op.create_index('ix_task_requests_requested_by', 'task_requests', ['requested_by'])
    op.create_index('ix_task_requests_requested_to', 'task_requests', ['requested_to'])
    op.create_index('ix_task_requests_status', 'task_requests', ['status'])


def downgrade() -> None:
    """Drop all collaboration tables."""
    op.drop_table('task_requests')
    op.drop_table('schedule_entries')
    op.drop_table('participations')
    op.drop_table('events')
