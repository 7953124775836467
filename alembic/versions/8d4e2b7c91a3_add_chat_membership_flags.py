"""Add chat membership flags

Revision ID: 8d4e2b7c91a3
Revises: 3c1f0a9d2e7b
Create Date: 2026-10-20 09:14:37.528614

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '8d4e2b7c91a3'
down_revision: Union[str, None] = '3c1f0a9d2e7b'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        'event_rsvps',
        sa.Column('has_left_chat', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.add_column(
        'events',
        sa.Column('organizer_left_chat', sa.Boolean(), nullable=False, server_default=sa.false()),
    )


def downgrade() -> None:
    op.drop_column('events', 'organizer_left_chat')
    op.drop_column('event_rsvps', 'has_left_chat')
