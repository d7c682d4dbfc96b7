"""Add processed activities table

Revision ID: 001_processed_activities
Revises:
Create Date: 2026-10-18

Adds:
- processed_activities: activity queue entries and processing outcomes
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_processed_activities'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'processed_activities',
        sa.Column('id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('user_display_name', sa.String(255), nullable=True),
        sa.Column('date_queued', sa.DateTime(), nullable=True),
        sa.Column('date_processed', sa.DateTime(), nullable=True),
        sa.Column('retry_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('batch', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('recipes', sa.JSON(), nullable=True),
        sa.Column('updated_fields', sa.JSON(), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('linkback', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sport_type', sa.String(50), nullable=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('date_start', sa.DateTime(), nullable=True),
        sa.Column('utc_start_offset', sa.Integer(), nullable=True),
        sa.Column('new_records', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_processed_activities_user_id', 'processed_activities', ['user_id'])
    op.create_index('ix_processed_activities_date_queued', 'processed_activities', ['date_queued'])
    op.create_index('ix_processed_activities_date_processed', 'processed_activities', ['date_processed'])
    op.create_index('ix_processed_activities_batch', 'processed_activities', ['batch'])


def downgrade() -> None:
    op.drop_index('ix_processed_activities_batch', table_name='processed_activities')
    op.drop_index('ix_processed_activities_date_processed', table_name='processed_activities')
    op.drop_index('ix_processed_activities_date_queued', table_name='processed_activities')
    op.drop_index('ix_processed_activities_user_id', table_name='processed_activities')
    op.drop_table('processed_activities')
