"""Initial HomeBake schema

Revision ID: 20261001_initial
Revises:
Create Date: 2026-10-01

Creates:
1. users, session_tokens, audit_events (auth and audit)
2. qr_invites (staff onboarding)
3. bread_types, batches, production_logs (catalog and production)
4. sales_logs, remaining_bread, shift_feedback, shift_reports (sales)
5. activities, push_subscriptions, notification_attempts (activity feed and push)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. AUTH
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)
        batch_op.create_index(batch_op.f('ix_users_role'), ['role'], unique=False)
        batch_op.create_index('ix_users_role_active', ['role', 'is_active'], unique=False)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_session_tokens_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_token_hash'), ['token_hash'], unique=True)
        batch_op.create_index(batch_op.f('ix_session_tokens_expires_at'), ['expires_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_is_revoked'), ['is_revoked'], unique=False)
        batch_op.create_index('ix_session_tokens_user_active', ['user_id', 'is_revoked'], unique=False)

    op.create_table('audit_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor_user_id', sa.Integer(), nullable=True),
        sa.Column('target_user_id', sa.Integer(), nullable=True),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('resource', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('audit_events', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_audit_events_actor_user_id'), ['actor_user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_events_target_user_id'), ['target_user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_events_event_type'), ['event_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_events_occurred_at'), ['occurred_at'], unique=False)
        batch_op.create_index('ix_audit_events_type_occurred', ['event_type', 'occurred_at'], unique=False)

    # ==========================================================================
    # 2. INVITES
    # ==========================================================================
    op.create_table('qr_invites',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(length=16), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_by_user_id', sa.Integer(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['used_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('qr_invites', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_qr_invites_token'), ['token'], unique=True)
        batch_op.create_index(batch_op.f('ix_qr_invites_is_used'), ['is_used'], unique=False)
        batch_op.create_index(batch_op.f('ix_qr_invites_expires_at'), ['expires_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_qr_invites_created_by_user_id'), ['created_by_user_id'], unique=False)
        batch_op.create_index('ix_qr_invites_token_used_expires', ['token', 'is_used', 'expires_at'], unique=False)

    # ==========================================================================
    # 3. CATALOG AND PRODUCTION
    # ==========================================================================
    op.create_table('bread_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('size', sa.String(length=50), nullable=True),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('bread_types', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_bread_types_name'), ['name'], unique=True)
        batch_op.create_index(batch_op.f('ix_bread_types_is_active'), ['is_active'], unique=False)

    op.create_table('batches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bread_type_id', sa.Integer(), nullable=False),
        sa.Column('batch_number', sa.String(length=16), nullable=False),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('target_quantity', sa.Integer(), nullable=True),
        sa.Column('actual_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['bread_type_id'], ['bread_types.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('bread_type_id', 'batch_number', 'shift', name='uq_batches_bread_number_shift'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('batches', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_batches_bread_type_id'), ['bread_type_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_batches_shift'), ['shift'], unique=False)
        batch_op.create_index(batch_op.f('ix_batches_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_batches_created_by_user_id'), ['created_by_user_id'], unique=False)
        batch_op.create_index('ix_batches_bread_type_shift', ['bread_type_id', 'shift'], unique=False)
        batch_op.create_index('ix_batches_shift_created', ['shift', 'created_at'], unique=False)

    op.create_table('production_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bread_type_id', sa.Integer(), nullable=False),
        sa.Column('batch_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('recorded_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['bread_type_id'], ['bread_types.id'], ),
        sa.ForeignKeyConstraint(['batch_id'], ['batches.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['recorded_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('production_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_production_logs_bread_type_id'), ['bread_type_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_production_logs_batch_id'), ['batch_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_production_logs_shift'), ['shift'], unique=False)
        batch_op.create_index(batch_op.f('ix_production_logs_recorded_by_user_id'), ['recorded_by_user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_production_logs_created_at'), ['created_at'], unique=False)
        batch_op.create_index('ix_production_logs_shift_created', ['shift', 'created_at'], unique=False)

    # ==========================================================================
    # 4. SALES
    # ==========================================================================
    op.create_table('sales_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bread_type_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('discount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('returned', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('leftovers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('recorded_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['bread_type_id'], ['bread_types.id'], ),
        sa.ForeignKeyConstraint(['recorded_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_sales_logs_bread_type_id'), ['bread_type_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_logs_shift'), ['shift'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_logs_recorded_by_user_id'), ['recorded_by_user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_logs_created_at'), ['created_at'], unique=False)
        batch_op.create_index('ix_sales_logs_shift_created', ['shift', 'created_at'], unique=False)

    op.create_table('remaining_bread',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bread_type_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('recorded_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['bread_type_id'], ['bread_types.id'], ),
        sa.ForeignKeyConstraint(['recorded_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('remaining_bread', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_remaining_bread_bread_type_id'), ['bread_type_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_remaining_bread_shift'), ['shift'], unique=False)
        batch_op.create_index(batch_op.f('ix_remaining_bread_created_at'), ['created_at'], unique=False)

    op.create_table('shift_feedback',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('shift_feedback', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_shift_feedback_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_shift_feedback_created_at'), ['created_at'], unique=False)

    op.create_table('shift_reports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('report_date', sa.Date(), nullable=False),
        sa.Column('total_revenue_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_items_sold', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_remaining', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('sales_data', sa.JSON(), nullable=False),
        sa.Column('remaining_breads', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'shift', 'report_date', name='uq_shift_reports_user_shift_date'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('shift_reports', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_shift_reports_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_shift_reports_created_at'), ['created_at'], unique=False)
        batch_op.create_index('ix_shift_reports_date_shift', ['report_date', 'shift'], unique=False)

    # ==========================================================================
    # 5. ACTIVITY FEED AND PUSH
    # ==========================================================================
    op.create_table('activities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('user_name', sa.String(length=100), nullable=False),
        sa.Column('user_role', sa.String(length=16), nullable=False),
        sa.Column('activity_type', sa.String(length=32), nullable=False),
        sa.Column('shift', sa.String(length=16), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('activities', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_activities_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_activities_activity_type'), ['activity_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_activities_created_at'), ['created_at'], unique=False)
        batch_op.create_index('ix_activities_type_created', ['activity_type', 'created_at'], unique=False)

    op.create_table('push_subscriptions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('endpoint', sa.Text(), nullable=True),
        sa.Column('p256dh_key', sa.String(length=255), nullable=True),
        sa.Column('auth_key', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('push_subscriptions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_push_subscriptions_enabled'), ['enabled'], unique=False)

    op.create_table('notification_attempts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('activity_type', sa.String(length=32), nullable=False),
        sa.Column('recipient_user_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('status_code', sa.Integer(), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['recipient_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('notification_attempts', schema=None) as batch_op:
        batch_op.create_index('ix_notification_attempts_status_created', ['status', 'created_at'], unique=False)


def downgrade():
    op.drop_table('notification_attempts')
    op.drop_table('push_subscriptions')
    op.drop_table('activities')
    op.drop_table('shift_reports')
    op.drop_table('shift_feedback')
    op.drop_table('remaining_bread')
    op.drop_table('sales_logs')
    op.drop_table('production_logs')
    op.drop_table('batches')
    op.drop_table('bread_types')
    op.drop_table('qr_invites')
    op.drop_table('audit_events')
    op.drop_table('session_tokens')
    op.drop_table('users')
