"""initial retailops schema

Revision ID: r0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the RetailOps back-office schema:
- stores, users, user_store_access: tenancy and store membership
- session_tokens, security_events: login sessions and denial audit trail
- rokar_import_batches, rokar_import_rows: staged spreadsheet uploads
- rokar_entries: daily cash ledger, one row per (store, date)
- attendance_records: one row per (store, date, staff member)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'r0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # stores
    # ============================================================================
    op.create_table(
        'stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('brand', sa.String(length=120), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('city', sa.String(length=120), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('brand', 'name', 'city', name='uq_stores_brand_name_city'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stores_owner_id', 'stores', ['owner_id'])

    # ============================================================================
    # users: profiles with role, capability record and activation stamps
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('assigned_store_id', sa.Integer(), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('activated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('activated_by', sa.String(length=255), nullable=True),
        sa.Column('deactivated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deactivated_by', sa.String(length=255), nullable=True),
        sa.Column('deactivation_reason', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['assigned_store_id'], ['stores.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_assigned_store_id', 'users', ['assigned_store_id'])
    op.create_index('ix_users_role_active', 'users', ['role', 'is_active'])

    op.create_table(
        'user_store_access',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('is_member', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('granted_by', sa.String(length=255), nullable=True),
        sa.Column('granted_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'store_id', name='uq_user_store_access'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_user_store_access_user', 'user_store_access', ['user_id'])
    op.create_index('ix_user_store_access_store', 'user_store_access', ['store_id'])

    # ============================================================================
    # session_tokens, security_events
    # ============================================================================
    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    op.create_table(
        'security_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('resource', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_security_events_store_id', 'security_events', ['store_id'])
    op.create_index('ix_security_events_user_id', 'security_events', ['user_id'])
    op.create_index('ix_security_events_event_type', 'security_events', ['event_type'])
    op.create_index('ix_security_events_success', 'security_events', ['success'])
    op.create_index('ix_security_events_occurred_at', 'security_events', ['occurred_at'])
    op.create_index('ix_security_events_user_type', 'security_events', ['user_id', 'event_type'])
    op.create_index('ix_security_events_occurred', 'security_events', ['occurred_at'])

    # ============================================================================
    # rokar_import_batches / rokar_import_rows: staged uploads
    # ============================================================================
    op.create_table(
        'rokar_import_batches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('source_file_name', sa.String(length=255), nullable=True),
        sa.Column('source_file_format', sa.String(length=16), nullable=True),
        sa.Column('store_id', sa.Integer(), nullable=True),
        sa.Column('overwrite', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('total_rows', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('skipped_blank_rows', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('missing_headers', sa.JSON(), nullable=False),
        sa.Column('inserted_rows', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('overwritten_rows', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('skipped_rows', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_rows', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_rokar_import_batches_status', 'rokar_import_batches', ['status'])
    op.create_index('ix_rokar_import_batches_store_id', 'rokar_import_batches', ['store_id'])

    op.create_table(
        'rokar_import_rows',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('batch_id', sa.Integer(), nullable=False),
        sa.Column('row_number', sa.Integer(), nullable=False),
        sa.Column('normalized_data', sa.JSON(), nullable=False),
        sa.Column('outcome', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('ledger_id', sa.String(length=288), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['batch_id'], ['rokar_import_batches.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_rokar_import_rows_batch_id', 'rokar_import_rows', ['batch_id'])
    op.create_index('ix_rokar_import_rows_batch_row', 'rokar_import_rows', ['batch_id', 'row_number'])
    op.create_index('ix_rokar_import_rows_batch_outcome', 'rokar_import_rows', ['batch_id', 'outcome'])

    # ============================================================================
    # rokar_entries: id is "{store_id}_{date}"
    # ============================================================================
    amount_columns = [
        'opening_balance', 'closing_balance',
        'computer_sale', 'manual_sale', 'manual_billed', 'total_sale', 'customer_dues_paid',
        'paytm', 'phonepe', 'gpay', 'bank_deposit', 'home',
        'dues_given', 'total_cash_out',
    ]
    op.create_table(
        'rokar_entries',
        sa.Column('id', sa.String(length=288), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.String(length=255), nullable=False),
        *[sa.Column(name, sa.Float(), nullable=False, server_default='0') for name in amount_columns],
        sa.Column('expense_breakup', sa.JSON(), nullable=False),
        sa.Column('expense_total', sa.Float(), nullable=False, server_default='0'),
        sa.Column('staff_salary_total', sa.Float(), nullable=False, server_default='0'),
        sa.Column('store_name', sa.String(length=120), nullable=True),
        sa.Column('brand', sa.String(length=120), nullable=True),
        sa.Column('city', sa.String(length=120), nullable=True),
        sa.Column('source', sa.String(length=16), nullable=False, server_default='MANUAL'),
        sa.Column('import_batch_id', sa.Integer(), nullable=True),
        sa.Column('imported_by', sa.String(length=255), nullable=True),
        sa.Column('imported_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('entered_by', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['import_batch_id'], ['rokar_import_batches.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'date', name='uq_rokar_store_date'),
    )
    op.create_index('ix_rokar_entries_store_id', 'rokar_entries', ['store_id'])
    op.create_index('ix_rokar_entries_date', 'rokar_entries', ['date'])
    op.create_index('ix_rokar_entries_import_batch_id', 'rokar_entries', ['import_batch_id'])
    op.create_index('ix_rokar_store_date', 'rokar_entries', ['store_id', 'date'])

    # ============================================================================
    # attendance_records: id is "{store_id}_{date}_{staff_id}"
    # ============================================================================
    op.create_table(
        'attendance_records',
        sa.Column('id', sa.String(length=128), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('staff_id', sa.Integer(), nullable=False),
        sa.Column('staff_name', sa.String(length=120), nullable=True),
        sa.Column('staff_email', sa.String(length=255), nullable=True),
        sa.Column('present', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('check_in', sa.String(length=5), nullable=True),
        sa.Column('check_out', sa.String(length=5), nullable=True),
        sa.Column('day_type', sa.String(length=8), nullable=False, server_default='FULL'),
        sa.Column('day_fraction', sa.Float(), nullable=False, server_default='0'),
        sa.Column('original_check_in', sa.String(length=5), nullable=True),
        sa.Column('time_modified_by', sa.String(length=255), nullable=True),
        sa.Column('time_modified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('time_modification_reason', sa.Text(), nullable=True),
        sa.Column('marked_by', sa.String(length=255), nullable=True),
        sa.Column('marked_as', sa.String(length=16), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['staff_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'date', 'staff_id', name='uq_attendance_store_date_staff'),
    )
    op.create_index('ix_attendance_records_store_id', 'attendance_records', ['store_id'])
    op.create_index('ix_attendance_records_date', 'attendance_records', ['date'])
    op.create_index('ix_attendance_records_staff_id', 'attendance_records', ['staff_id'])
    op.create_index('ix_attendance_store_date', 'attendance_records', ['store_id', 'date'])


def downgrade():
    op.drop_table('attendance_records')
    op.drop_table('rokar_entries')
    op.drop_table('rokar_import_rows')
    op.drop_table('rokar_import_batches')
    op.drop_table('security_events')
    op.drop_table('session_tokens')
    op.drop_table('user_store_access')
    op.drop_table('users')
    op.drop_table('stores')
