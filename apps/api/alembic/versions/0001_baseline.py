"""Baseline migration - contract registry, notifications and job runs

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-18

Portable DDL (op.create_table) so the same revision runs on Postgres and
SQLite.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by', sa.String(255), nullable=False),
        sa.Column('modified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('modified_by', sa.String(255), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_by', sa.String(255), nullable=True),
    ]


def upgrade() -> None:
    """Create registry, notification and job run tables."""

    # ==========================================================================
    # Users & departments
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        *_audit_columns(),
    )
    op.create_table(
        'departments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=True),
        *_audit_columns(),
    )

    # ==========================================================================
    # Contract registry
    # ==========================================================================
    op.create_table(
        'contracts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('protocol_number', sa.String(50), nullable=True),
        sa.Column('external_reference', sa.String(100), nullable=True),
        sa.Column('contract_type', sa.String(20), nullable=False),
        sa.Column('counterparty_name', sa.String(255), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('owner_name', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('document_date', sa.Date(), nullable=True),
        sa.Column('effective_date', sa.Date(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('notice_days', sa.Integer(), nullable=True),
        sa.Column('alert_days', sa.Integer(), nullable=False),
        sa.Column('auto_renew', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('renewal_term_days', sa.Integer(), nullable=True),
        sa.Column('annual_amount', sa.Numeric(14, 2), nullable=True),
        sa.Column('one_off_amount', sa.Numeric(14, 2), nullable=True),
        sa.Column('status', sa.String(40), nullable=False),
        sa.Column(
            'parent_id',
            sa.Uuid(),
            sa.ForeignKey('contracts.id', ondelete='SET NULL'),
            nullable=True,
        ),
        *_audit_columns(),
    )
    op.create_index('idx_contracts_status_expiry', 'contracts', ['status', 'expiry_date'])
    op.create_index('idx_contracts_parent', 'contracts', ['parent_id'])
    op.create_index(
        'ix_contracts_protocol_number', 'contracts', ['protocol_number'], unique=True
    )

    # ==========================================================================
    # Notification configuration
    # ==========================================================================
    op.create_table(
        'notification_configs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('code', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.String(255), nullable=False),
        sa.Column('module', sa.String(100), nullable=False),
        sa.Column('is_enabled', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('email_subject', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_audit_columns(),
    )
    op.create_index('ix_notification_configs_module', 'notification_configs', ['module'])

    op.create_table(
        'notification_recipients',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'config_id',
            sa.Uuid(),
            sa.ForeignKey('notification_configs.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('recipient_type', sa.String(20), nullable=False),
        sa.Column(
            'department_id',
            sa.Uuid(),
            sa.ForeignKey('departments.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column('role', sa.String(50), nullable=True),
        sa.Column(
            'user_id',
            sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        *_audit_columns(),
    )
    op.create_index(
        'idx_notification_recipients_config',
        'notification_recipients',
        ['config_id', 'sort_order'],
    )

    # ==========================================================================
    # Job run ledger
    # ==========================================================================
    op.create_table(
        'job_runs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('job_name', sa.String(100), nullable=False),
        sa.Column('trigger', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('records_changed', sa.Integer(), nullable=False),
        sa.Column('failure_count', sa.Integer(), nullable=False),
        sa.Column('last_error', sa.Text(), nullable=True),
    )
    op.create_index('idx_job_runs_name_started', 'job_runs', ['job_name', 'started_at'])


def downgrade() -> None:
    """Drop all baseline tables."""
    op.drop_index('idx_job_runs_name_started', table_name='job_runs')
    op.drop_table('job_runs')
    op.drop_index('idx_notification_recipients_config', table_name='notification_recipients')
    op.drop_table('notification_recipients')
    op.drop_index('ix_notification_configs_module', table_name='notification_configs')
    op.drop_table('notification_configs')
    op.drop_index('ix_contracts_protocol_number', table_name='contracts')
    op.drop_index('idx_contracts_parent', table_name='contracts')
    op.drop_index('idx_contracts_status_expiry', table_name='contracts')
    op.drop_table('contracts')
    op.drop_table('departments')
    op.drop_table('users')
