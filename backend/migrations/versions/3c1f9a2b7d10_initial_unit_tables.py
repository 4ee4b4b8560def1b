"""initial unit tables

Revision ID: 3c1f9a2b7d10
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f9a2b7d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'platoons',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_platoons_name', 'platoons', ['name'], unique=True)

    op.create_table(
        'soldiers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('full_name', sa.String(128), nullable=False),
        sa.Column('role_in_unit', sa.String(128), nullable=True),
        sa.Column('weapon_serial', sa.String(64), nullable=True),
        sa.Column('civilian_job', sa.String(128), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(8), nullable=False, server_default='Base'),
        sa.Column('platoon_id', sa.String(36), sa.ForeignKey('platoons.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('Base', 'Home')", name='chk_soldier_status'),
    )
    op.create_index('ix_soldiers_full_name', 'soldiers', ['full_name'])

    op.create_table(
        'events',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(200), nullable=True),
        sa.Column('soldier_id', sa.String(36), sa.ForeignKey('soldiers.id'), nullable=True),
        sa.Column('creator_id', sa.String(36), nullable=True),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('category', sa.String(32), nullable=False),
        sa.Column('source', sa.String(16), nullable=False, server_default='commander'),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_events_source_open', 'events', ['source', 'ended_at'])

    op.create_table(
        'checklists',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('platoon_id', sa.String(36), sa.ForeignKey('platoons.id'), nullable=True),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'checklist_completions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('checklist_id', sa.String(36), sa.ForeignKey('checklists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('soldier_id', sa.String(36), sa.ForeignKey('soldiers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('checklist_id', 'soldier_id', name='uq_checklist_completion'),
    )

    op.create_table(
        'news',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('platoon_id', sa.String(36), sa.ForeignKey('platoons.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('news')
    op.drop_table('checklist_completions')
    op.drop_table('checklists')
    op.drop_index('ix_events_source_open', table_name='events')
    op.drop_table('events')
    op.drop_index('ix_soldiers_full_name', table_name='soldiers')
    op.drop_table('soldiers')
    op.drop_index('ix_platoons_name', table_name='platoons')
    op.drop_table('platoons')
