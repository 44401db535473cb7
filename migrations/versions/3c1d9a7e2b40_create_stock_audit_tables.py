"""create stock audit tables

Revision ID: 3c1d9a7e2b40
Revises:
Create Date: 2026-10-12 09:14:02.118530
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '3c1d9a7e2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns():
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'audit_counts',
        *_audit_columns(),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('store_name', sa.String(length=150), nullable=True),
        sa.Column('status', sa.Enum('OPEN', 'FINALIZED', name='countstatus'), nullable=False),
        sa.Column('finalized_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_counts_id', 'audit_counts', ['id'])
    op.create_index('ix_audit_counts_owner_id', 'audit_counts', ['owner_id'])

    op.create_table(
        'plan_items',
        *_audit_columns(),
        sa.Column('count_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=False),
        sa.Column('expected_quantity', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['count_id'], ['audit_counts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('count_id', 'code', name='uq_plan_items_count_code'),
    )
    op.create_index('ix_plan_items_id', 'plan_items', ['id'])
    op.create_index('ix_plan_items_count_id', 'plan_items', ['count_id'])

    op.create_table(
        'manual_entries',
        *_audit_columns(),
        sa.Column('count_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('observed_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['count_id'], ['audit_counts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_manual_entries_id', 'manual_entries', ['id'])
    op.create_index('ix_manual_entries_count_id', 'manual_entries', ['count_id'])
    op.create_index('ix_manual_entries_code', 'manual_entries', ['code'])

    op.create_table(
        'count_results',
        *_audit_columns(),
        sa.Column('count_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('status', sa.Enum('REGULAR', 'EXCESS', 'SHORTAGE', name='resultstatus'), nullable=False),
        sa.Column('observed_quantity', sa.Integer(), nullable=False),
        sa.Column('expected_quantity', sa.Integer(), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(['count_id'], ['audit_counts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_count_results_id', 'count_results', ['id'])
    op.create_index('ix_count_results_count_id', 'count_results', ['count_id'])

    op.create_table(
        'audit_categories',
        *_audit_columns(),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('color', sa.String(length=7), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('last_counted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_categories_id', 'audit_categories', ['id'])
    op.create_index('ix_audit_categories_owner_id', 'audit_categories', ['owner_id'])

    op.create_table(
        'schedule_configs',
        *_audit_columns(),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sectors_per_week', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('total_weeks', sa.Integer(), nullable=False),
        sa.Column('work_days', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('generated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_schedule_configs_id', 'schedule_configs', ['id'])
    op.create_index('ix_schedule_configs_owner_id', 'schedule_configs', ['owner_id'])

    op.create_table(
        'schedule_items',
        *_audit_columns(),
        sa.Column('config_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('scheduled_date', sa.Date(), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('status', sa.Enum('PENDING', 'COMPLETED', 'SKIPPED', 'RESCHEDULED', name='schedulestatus'), nullable=False),
        sa.Column('linked_count_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['config_id'], ['schedule_configs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['audit_categories.id']),
        sa.ForeignKeyConstraint(['linked_count_id'], ['audit_counts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_schedule_items_id', 'schedule_items', ['id'])
    op.create_index('ix_schedule_items_config_id', 'schedule_items', ['config_id'])
    op.create_index('ix_schedule_items_scheduled_date', 'schedule_items', ['scheduled_date'])

    op.create_table(
        'schedule_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('schedule_item_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.Enum('CREATED', 'RESCHEDULED', 'COMPLETED', 'SKIPPED', name='scheduleaction'), nullable=False),
        sa.Column('old_date', sa.Date(), nullable=True),
        sa.Column('new_date', sa.Date(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('actor_id', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['schedule_item_id'], ['schedule_items.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_schedule_history_id', 'schedule_history', ['id'])
    op.create_index('ix_schedule_history_schedule_item_id', 'schedule_history', ['schedule_item_id'])
    print("✓ [3c1d9a7e2b40] Created stock audit tables")


def downgrade() -> None:
    op.drop_table('schedule_history')
    op.drop_table('schedule_items')
    op.drop_table('schedule_configs')
    op.drop_table('audit_categories')
    op.drop_table('count_results')
    op.drop_table('manual_entries')
    op.drop_table('plan_items')
    op.drop_table('audit_counts')

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for enum_name in ('scheduleaction', 'schedulestatus', 'resultstatus', 'countstatus'):
            sa.Enum(name=enum_name).drop(bind, checkfirst=True)
