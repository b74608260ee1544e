"""Initial schema: shops, users, permission registry, customers, records

Revision ID: 20261016_initial
Revises:
Create Date: 2026-10-16

This migration creates:
1. users and shops (mutual foreign keys; shops.owner_id is added after users)
2. permission_records, one row per (shop, role)
3. customers and optometry_records, both scoped by shop_id
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261016_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    ]


def upgrade():
    # ==========================================================================
    # 1. SHOPS TABLE (owner_id FK added once users exists)
    # ==========================================================================
    op.create_table('shops',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.JSON(), nullable=False),
        sa.Column('subscription_plan', sa.String(length=32), nullable=False, server_default='basic'),
        sa.Column('subscription_status', sa.String(length=32), nullable=False, server_default='active'),
        sa.Column('subscription_start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('subscription_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('subscription_features', sa.JSON(), nullable=False),
        sa.Column('settings', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_shops_name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('shops', schema=None) as batch_op:
        batch_op.create_index('ix_shops_status', ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_shops_is_active'), ['is_active'], unique=False)
        batch_op.create_index(batch_op.f('ix_shops_owner_id'), ['owner_id'], unique=False)

    # ==========================================================================
    # 2. USERS TABLE
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='optometrist'),
        sa.Column('shop_id', sa.Integer(), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('license_number', sa.String(length=64), nullable=True),
        sa.Column('specialization', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('refresh_token_hash', sa.String(length=64), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=True),
        sa.Column('accessible_pages', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)
        batch_op.create_index(batch_op.f('ix_users_shop_id'), ['shop_id'], unique=False)
        batch_op.create_index('ix_users_shop_role', ['shop_id', 'role'], unique=False)

    with op.batch_alter_table('shops', schema=None) as batch_op:
        batch_op.create_foreign_key('fk_shops_owner_id', 'users', ['owner_id'], ['id'])
        batch_op.create_foreign_key('fk_shops_created_by_id', 'users', ['created_by_id'], ['id'])

    # ==========================================================================
    # 3. PERMISSION REGISTRY
    # ==========================================================================
    op.create_table('permission_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('page_access', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], ),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shop_id', 'role', name='uq_permission_records_shop_role'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('permission_records', schema=None) as batch_op:
        batch_op.create_index('ix_permission_records_shop_id', ['shop_id'], unique=False)

    # ==========================================================================
    # 4. CUSTOMERS
    # ==========================================================================
    op.create_table('customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('sex', sa.String(length=16), nullable=True),
        sa.Column('phone', sa.String(length=15), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('address', sa.JSON(), nullable=True),
        sa.Column('medical_history', sa.JSON(), nullable=True),
        sa.Column('emergency_contact', sa.JSON(), nullable=True),
        sa.Column('insurance', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('last_visit_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('customers', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_customers_shop_id'), ['shop_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_customers_is_active'), ['is_active'], unique=False)
        batch_op.create_index('ix_customers_shop_name', ['shop_id', 'name'], unique=False)
        batch_op.create_index('ix_customers_shop_phone', ['shop_id', 'phone'], unique=False)

    # ==========================================================================
    # 5. OPTOMETRY RECORDS
    # ==========================================================================
    op.create_table('optometry_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('right_eye', sa.JSON(), nullable=False),
        sa.Column('left_eye', sa.JSON(), nullable=False),
        sa.Column('ph', sa.String(length=32), nullable=True),
        sa.Column('prism', sa.String(length=32), nullable=True),
        sa.Column('base', sa.String(length=32), nullable=True),
        sa.Column('pd', sa.String(length=32), nullable=True),
        sa.Column('optometrist', sa.String(length=100), nullable=True),
        sa.Column('assistant', sa.String(length=100), nullable=True),
        sa.Column('examination_type', sa.String(length=32), nullable=False, server_default='routine'),
        sa.Column('chief_complaint', sa.Text(), nullable=True),
        sa.Column('history', sa.Text(), nullable=True),
        sa.Column('diagnosis', sa.Text(), nullable=True),
        sa.Column('recommendations', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('prescription_type', sa.String(length=32), nullable=True),
        sa.Column('lens_type', sa.String(length=32), nullable=True),
        sa.Column('frame', sa.String(length=120), nullable=True),
        sa.Column('next_appointment', sa.DateTime(timezone=True), nullable=True),
        sa.Column('follow_up_notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='completed'),
        sa.Column('signed_by', sa.String(length=100), nullable=True),
        sa.Column('signature_date', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], ),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('optometry_records', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_optometry_records_shop_id'), ['shop_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_optometry_records_customer_id'), ['customer_id'], unique=False)
        batch_op.create_index('ix_optometry_records_shop_customer', ['shop_id', 'customer_id'], unique=False)
        batch_op.create_index('ix_optometry_records_shop_date', ['shop_id', 'date'], unique=False)


def downgrade():
    op.drop_table('optometry_records')
    op.drop_table('customers')
    op.drop_table('permission_records')
    with op.batch_alter_table('shops', schema=None) as batch_op:
        batch_op.drop_constraint('fk_shops_created_by_id', type_='foreignkey')
        batch_op.drop_constraint('fk_shops_owner_id', type_='foreignkey')
    op.drop_table('users')
    op.drop_table('shops')
