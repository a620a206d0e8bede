"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create initial database schema:
    - shortcuts table: Shortcut registry
    - visit_events table: One row per recorded visit, source of analytics
    """
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    if 'shortcuts' not in existing_tables:
        op.create_table(
            'shortcuts',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('name', sa.String(length=64), nullable=False),
            sa.Column('link', sa.Text(), nullable=False),
            sa.Column('title', sa.String(length=256), nullable=False, server_default=''),
            sa.Column('description', sa.Text(), nullable=False, server_default=''),
            sa.Column('tags', sa.JSON(), nullable=False, server_default='[]'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_shortcuts_name', 'shortcuts', ['name'], unique=True)
        op.create_index('ix_shortcuts_created_at', 'shortcuts', ['created_at'])

    if 'visit_events' not in existing_tables:
        op.create_table(
            'visit_events',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('shortcut_name', sa.String(length=64), nullable=False),
            sa.Column('visited_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('referrer', sa.String(length=2048), nullable=True),
            sa.Column('browser_name', sa.String(length=64), nullable=False, server_default='Unknown'),
            sa.Column('os_name', sa.String(length=64), nullable=False, server_default='Unknown'),
            sa.Column('request_id', sa.String(length=128), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(
                ['shortcut_name'],
                ['shortcuts.name'],
                name='fk_visit_events_shortcut_name',
                ondelete='CASCADE',
                onupdate='CASCADE'
            ),
            sa.UniqueConstraint(
                'shortcut_name',
                'request_id',
                name='uq_visit_events_shortcut_request_id'
            )
        )
        op.create_index('ix_visit_events_shortcut_name', 'visit_events', ['shortcut_name'])
        op.create_index('ix_visit_events_visited_at', 'visit_events', ['visited_at'])


def downgrade() -> None:
    """
    Drop all tables and indexes.
    """
    op.drop_index('ix_visit_events_visited_at', table_name='visit_events')
    op.drop_index('ix_visit_events_shortcut_name', table_name='visit_events')
    op.drop_table('visit_events')

    op.drop_index('ix_shortcuts_created_at', table_name='shortcuts')
    op.drop_index('ix_shortcuts_name', table_name='shortcuts')
    op.drop_table('shortcuts')
