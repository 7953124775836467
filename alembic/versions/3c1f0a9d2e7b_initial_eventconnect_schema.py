"""Initial EventConnect schema

Revision ID: 3c1f0a9d2e7b
Revises:
Create Date: 2026-10-19 10:02:11.412087

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2e7b'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Session store of the identity collaborator; never read by this service
    op.create_table(
        'sessions',
        sa.Column('sid', sa.String(255), primary_key=True),
        sa.Column('sess', sa.JSON, nullable=False),
        sa.Column('expire', sa.DateTime, nullable=False),
    )
    op.create_index('idx_session_expire', 'sessions', ['expire'])

    op.create_table(
        'users',
        sa.Column('id', sa.String(255), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('first_name', sa.String(255), nullable=True),
        sa.Column('last_name', sa.String(255), nullable=True),
        sa.Column('profile_image_url', sa.String(1024), nullable=True),
        sa.Column('avatar_seed', sa.String(255), nullable=False, server_default='default'),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('interests', sa.JSON, nullable=False),
        sa.Column('personality', sa.JSON, nullable=False),
        sa.Column('signature', sa.Text, nullable=True),
        sa.Column('skipped_events', sa.JSON, nullable=False),
        sa.Column('events_shown_since_skip', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'events',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('sub_category', sa.String(100), nullable=True),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('time', sa.Time, nullable=False),
        sa.Column('timezone', sa.String(64), nullable=False, server_default='UTC'),
        sa.Column('starts_at', sa.DateTime, nullable=False),
        sa.Column('location', sa.String(255), nullable=False),
        sa.Column('latitude', sa.Numeric(10, 8), nullable=True),
        sa.Column('longitude', sa.Numeric(11, 8), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('image_url', sa.String(1024), nullable=True),
        sa.Column('organizer_id', sa.String(255), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('capacity', sa.Integer, nullable=True),
        sa.Column('parking_info', sa.Text, nullable=True),
        sa.Column('meeting_point', sa.Text, nullable=True),
        sa.Column('duration', sa.String(100), nullable=True),
        sa.Column('what_to_bring', sa.Text, nullable=True),
        sa.Column('special_notes', sa.Text, nullable=True),
        sa.Column('requirements', sa.Text, nullable=True),
        sa.Column('contact_info', sa.Text, nullable=True),
        sa.Column('cancellation_policy', sa.Text, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('price >= 0', name='ck_event_price_non_negative'),
        sa.CheckConstraint('capacity IS NULL OR capacity >= 1', name='ck_event_capacity_positive'),
    )
    op.create_index('idx_event_starts_at', 'events', ['starts_at'])
    op.create_index('idx_event_organizer', 'events', ['organizer_id'])
    op.create_index('idx_event_created_at', 'events', ['created_at'])
    op.create_index('idx_event_category', 'events', ['category'])
    op.create_index('idx_event_active', 'events', ['is_active'])

    op.create_table(
        'event_rsvps',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('event_id', sa.Integer, sa.ForeignKey('events.id'), nullable=False),
        sa.Column('user_id', sa.String(255), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='going'),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_event_rsvp_event_user'),
    )
    op.create_index('idx_rsvp_user', 'event_rsvps', ['user_id'])
    op.create_index('idx_rsvp_event', 'event_rsvps', ['event_id'])

    op.create_table(
        'chat_messages',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('event_id', sa.Integer, sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(255), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_chat_event_created', 'chat_messages', ['event_id', 'created_at'])

    op.create_table(
        'message_reads',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(255), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('event_id', sa.Integer, sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('last_read_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'event_id', name='uq_message_read_user_event'),
    )


def downgrade() -> None:
    op.drop_table('message_reads')
    op.drop_table('chat_messages')
    op.drop_table('event_rsvps')
    op.drop_table('events')
    op.drop_table('users')
    op.drop_table('sessions')
