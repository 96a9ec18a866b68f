"""create_meeting_aggregate

Revision ID: 5b1e0c7a9d21
Revises:
Create Date: 2026-10-12 10:04:51.218730

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b1e0c7a9d21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CHILD_TABLES = (
    'tasks',
    'decisions',
    'questions',
    'insights',
    'deadlines',
    'attendees',
    'follow_ups',
    'risks',
    'agenda_items',
)


def _child_table(name: str, *columns: sa.Column) -> None:
    """Create a table owned by meetings, removed with its meeting."""
    op.create_table(
        name,
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('meeting_id', sa.String(length=36), nullable=False),
        *columns,
        sa.ForeignKeyConstraint(['meeting_id'], ['meetings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(f'ix_{name}_meeting_id', name, ['meeting_id'])


def upgrade() -> None:
    """Upgrade schema: Create meetings and their owned item tables."""
    op.create_table(
        'meetings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('raw_transcript', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=False),
        sa.Column('file_name', sa.String(length=512), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_meetings_created_at', 'meetings', ['created_at'])

    _child_table(
        'tasks',
        sa.Column('task', sa.Text(), nullable=False),
        sa.Column('owner', sa.Text(), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
    )
    _child_table(
        'decisions',
        sa.Column('decision', sa.Text(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
    )
    _child_table(
        'questions',
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('answer', sa.Text(), nullable=True),
    )
    _child_table(
        'insights',
        sa.Column('insight', sa.Text(), nullable=False),
        sa.Column('reference', sa.Text(), nullable=False),
    )
    _child_table(
        'deadlines',
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
    )
    _child_table(
        'attendees',
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('role', sa.Text(), nullable=False),
    )
    _child_table(
        'follow_ups',
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('owner', sa.Text(), nullable=False),
    )
    _child_table(
        'risks',
        sa.Column('risk', sa.Text(), nullable=False),
        sa.Column('impact', sa.Text(), nullable=False),
    )
    _child_table(
        'agenda_items',
        sa.Column('item', sa.Text(), nullable=False),
    )


def downgrade() -> None:
    """Downgrade schema: Drop meetings and all owned item tables."""
    for name in CHILD_TABLES:
        op.drop_index(f'ix_{name}_meeting_id', table_name=name)
        op.drop_table(name)
    op.drop_index('ix_meetings_created_at', table_name='meetings')
    op.drop_table('meetings')
