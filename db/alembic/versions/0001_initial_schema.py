"""initial AutoTime schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade() -> None:
    # Tenancy & auth
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('company_number', sa.String(length=50), nullable=True),
        sa.Column('vat_number', sa.String(length=50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('logo_url', sa.String(length=500), nullable=True),
        sa.Column('subscription_status', sa.String(length=20), nullable=False, server_default='trial'),
        sa.Column('trial_ends_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('max_managers', sa.Integer(), nullable=True, server_default='3'),  # NULL = unlimited
        sa.Column('max_workers', sa.Integer(), nullable=True, server_default='10'),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_organizations_id', 'organizations', ['id'])

    op.create_table(
        'user_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),  # super_admin, manager, worker
        sa.Column('organization_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('must_change_password', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('failed_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('locked_until', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE')
    )
    op.create_index('ix_user_accounts_id', 'user_accounts', ['id'])
    op.create_index('ix_user_accounts_email', 'user_accounts', ['email'], unique=True)
    op.create_index('ix_user_accounts_role', 'user_accounts', ['role'])
    op.create_index('ix_user_accounts_organization_id', 'user_accounts', ['organization_id'])

    op.create_table(
        'refresh_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(length=500), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['user_accounts.id'], ondelete='CASCADE')
    )
    op.create_index('ix_refresh_tokens_account_id', 'refresh_tokens', ['account_id'])
    op.create_index('ix_refresh_tokens_token', 'refresh_tokens', ['token'], unique=True)
    op.create_index('ix_refresh_tokens_expires_at', 'refresh_tokens', ['expires_at'])

    # People
    op.create_table(
        'managers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False, unique=True),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['user_accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE')
    )
    op.create_index('ix_managers_id', 'managers', ['id'])
    op.create_index('ix_managers_organization_id', 'managers', ['organization_id'])

    op.create_table(
        'workers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False, unique=True),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('manager_id', sa.Integer(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('postcode', sa.String(length=10), nullable=True),
        sa.Column('hourly_rate', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('date_started', sa.Date(), nullable=True),
        sa.Column('emergency_contact', sa.String(length=100), nullable=True),
        sa.Column('emergency_phone', sa.String(length=30), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['user_accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['manager_id'], ['managers.id'], ondelete='SET NULL')
    )
    op.create_index('ix_workers_id', 'workers', ['id'])
    op.create_index('ix_workers_organization_id', 'workers', ['organization_id'])
    op.create_index('ix_workers_is_active', 'workers', ['is_active'])

    # Sites & time
    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('postcode', sa.String(length=10), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('geofence_radius', sa.Integer(), nullable=False, server_default='100'),  # meters, 50..500
        sa.Column('geofence_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE')
    )
    op.create_index('ix_jobs_id', 'jobs', ['id'])
    op.create_index('ix_jobs_organization_id', 'jobs', ['organization_id'])

    op.create_table(
        'clock_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('worker_id', sa.Integer(), nullable=False),
        sa.Column('job_id', sa.Integer(), nullable=False),
        sa.Column('clock_in', sa.DateTime(timezone=True), nullable=False),
        sa.Column('clock_out', sa.DateTime(timezone=True), nullable=True),
        sa.Column('clock_in_lat', sa.Float(), nullable=True),
        sa.Column('clock_in_lng', sa.Float(), nullable=True),
        sa.Column('clock_out_lat', sa.Float(), nullable=True),
        sa.Column('clock_out_lng', sa.Float(), nullable=True),
        sa.Column('clock_in_photo', sa.String(length=500), nullable=True),
        sa.Column('clock_out_photo', sa.String(length=500), nullable=True),
        sa.Column('total_hours', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('needs_approval', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('auto_clocked_out', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_overtime', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('ot_status', sa.String(length=20), nullable=True),  # pending, approved, rejected
        sa.Column('ot_requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ot_approved_by', sa.Integer(), nullable=True),
        sa.Column('ot_approved_reason', sa.Text(), nullable=True),
        sa.Column('ot_approved_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.ForeignKeyConstraint(['approved_by'], ['managers.id']),
        sa.ForeignKeyConstraint(['ot_approved_by'], ['managers.id'])
    )
    op.create_index('ix_clock_entries_id', 'clock_entries', ['id'])
    op.create_index('ix_clock_entries_worker_id', 'clock_entries', ['worker_id'])
    op.create_index('ix_clock_entries_job_id', 'clock_entries', ['job_id'])
    op.create_index('ix_clock_entries_clock_in', 'clock_entries', ['clock_in'])

    op.create_table(
        'time_amendments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('clock_entry_id', sa.Integer(), nullable=False),
        sa.Column('worker_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('requested_clock_in', sa.DateTime(timezone=True), nullable=True),
        sa.Column('requested_clock_out', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('manager_notes', sa.Text(), nullable=True),
        sa.Column('manager_id', sa.Integer(), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['clock_entry_id'], ['clock_entries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['manager_id'], ['managers.id']),
        sa.ForeignKeyConstraint(['approved_by'], ['managers.id'])
    )
    op.create_index('ix_time_amendments_id', 'time_amendments', ['id'])
    op.create_index('ix_time_amendments_clock_entry_id', 'time_amendments', ['clock_entry_id'])
    op.create_index('ix_time_amendments_worker_id', 'time_amendments', ['worker_id'])
    op.create_index('ix_time_amendments_status', 'time_amendments', ['status'])

    op.create_table(
        'clock_entry_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('clock_entry_id', sa.Integer(), nullable=False),
        sa.Column('change_type', sa.String(length=30), nullable=False),
        sa.Column('changed_by', sa.Integer(), nullable=True),
        sa.Column('old_clock_in', sa.DateTime(timezone=True), nullable=True),
        sa.Column('new_clock_in', sa.DateTime(timezone=True), nullable=True),
        sa.Column('old_clock_out', sa.DateTime(timezone=True), nullable=True),
        sa.Column('new_clock_out', sa.DateTime(timezone=True), nullable=True),
        sa.Column('old_total_hours', sa.Float(), nullable=True),
        sa.Column('new_total_hours', sa.Float(), nullable=True),
        sa.Column('amendment_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['clock_entry_id'], ['clock_entries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['changed_by'], ['user_accounts.id']),
        sa.ForeignKeyConstraint(['amendment_id'], ['time_amendments.id'], ondelete='SET NULL')
    )
    op.create_index('ix_clock_entry_history_clock_entry_id', 'clock_entry_history', ['clock_entry_id'])

    # Expenses
    op.create_table(
        'expense_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('calculation_type', sa.String(length=20), nullable=False, server_default='flat_rate'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('organization_id', 'name', name='uq_expense_types_org_name')
    )
    op.create_index('ix_expense_types_id', 'expense_types', ['id'])
    op.create_index('ix_expense_types_organization_id', 'expense_types', ['organization_id'])

    op.create_table(
        'additional_costs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('worker_id', sa.Integer(), nullable=False),
        sa.Column('clock_entry_id', sa.Integer(), nullable=True),
        sa.Column('expense_type_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['clock_entry_id'], ['clock_entries.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['expense_type_id'], ['expense_types.id'], ondelete='SET NULL')
    )
    op.create_index('ix_additional_costs_id', 'additional_costs', ['id'])
    op.create_index('ix_additional_costs_worker_id', 'additional_costs', ['worker_id'])
    op.create_index('ix_additional_costs_date', 'additional_costs', ['date'])

    # Subscription
    op.create_table(
        'subscription_usage',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('plan_type', sa.String(length=20), nullable=False),
        sa.Column('max_managers', sa.Integer(), nullable=True),
        sa.Column('max_workers', sa.Integer(), nullable=True),
        sa.Column('current_manager_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_worker_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE')
    )
    op.create_index('ix_subscription_usage_organization_id', 'subscription_usage', ['organization_id'])

    # Notifications
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('worker_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('dedupe_key', sa.String(length=255), nullable=True, unique=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id'], ondelete='CASCADE')
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_worker_id', 'notifications', ['worker_id'])

    op.create_table(
        'notification_preferences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('worker_id', sa.Integer(), nullable=False, unique=True),
        sa.Column('push_token', sa.String(length=500), nullable=True),
        sa.Column('email_notifications', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('push_notifications', sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id'], ondelete='CASCADE')
    )

    # Reporting
    op.create_table(
        'report_line_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('week_start', sa.Date(), nullable=False),
        sa.Column('worker_id', sa.Integer(), nullable=False),
        sa.Column('worker_name', sa.String(length=100), nullable=True),
        sa.Column('work_date', sa.Date(), nullable=False),
        sa.Column('job_id', sa.Integer(), nullable=True),
        sa.Column('job_name', sa.String(length=255), nullable=True),
        sa.Column('entry_type', sa.String(length=20), nullable=False),  # work, overtime, expense
        sa.Column('expense_type', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Numeric(10, 2), nullable=False, server_default='1'),
        sa.Column('unit_amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('account_code', sa.String(length=20), nullable=False),
        sa.Column('tax_type', sa.String(length=50), nullable=False, server_default='No VAT'),
        sa.Column('source_clock_entry_id', sa.Integer(), nullable=True),
        sa.Column('source_cost_id', sa.Integer(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['source_clock_entry_id'], ['clock_entries.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['source_cost_id'], ['additional_costs.id'], ondelete='SET NULL')
    )
    op.create_index('ix_report_line_items_id', 'report_line_items', ['id'])
    op.create_index('ix_report_line_items_org_week', 'report_line_items', ['organization_id', 'week_start'])

    op.create_table(
        'xero_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False, unique=True),
        sa.Column('invoice_prefix', sa.String(length=20), nullable=False, server_default='INV'),
        sa.Column('starting_invoice_number', sa.Integer(), nullable=False, server_default='1001'),
        sa.Column('default_account_code', sa.String(length=20), nullable=False, server_default='5000'),
        sa.Column('default_tax_type', sa.String(length=50), nullable=False, server_default='20% VAT'),
        sa.Column('payment_terms_days', sa.Integer(), nullable=False, server_default='30'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE')
    )

    # Caches
    op.create_table(
        'uk_postcodes',
        sa.Column('postcode', sa.String(length=10), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('postcode')
    )

    op.create_table(
        'idempotency_keys',
        sa.Column('key', sa.String(length=64), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('key')
    )


def downgrade() -> None:
    for table in (
        'idempotency_keys',
        'uk_postcodes',
        'xero_settings',
        'report_line_items',
        'notification_preferences',
        'notifications',
        'subscription_usage',
        'additional_costs',
        'expense_types',
        'clock_entry_history',
        'time_amendments',
        'clock_entries',
        'jobs',
        'workers',
        'managers',
        'refresh_tokens',
        'user_accounts',
        'organizations',
    ):
        op.drop_table(table)
