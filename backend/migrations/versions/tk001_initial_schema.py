"""Initial schema: tenants, users, sessions, catalog, purchases, sales

MULTI-TENANT SCHEMA:
1. 'tenants' is the tenant root; status gates sign-in and every request
2. users.tenant_id is NULL only for super_admin
3. Every catalog / purchase / sale row carries tenant_id
4. products.stock is guarded by CHECK (stock >= 0)

Revision ID: tk001_initial_schema
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'tk001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # Tenancy and accounts
    # ==========================================================================
    op.create_table('tenants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('subdomain', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('active', 'inactive')", name='ck_tenants_status'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('subdomain'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_tenants_status', 'tenants', ['status'])

    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='owner'),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('super_admin', 'owner', 'kasir')", name='ck_users_role'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_users_tenant_id', 'users', ['tenant_id'])
    op.create_index('ix_users_tenant_role', 'users', ['tenant_id', 'role'])

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)

    # ==========================================================================
    # Catalog
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('purchase_price', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('sell_price', sa.Numeric(14, 2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'barcode', name='uq_products_tenant_barcode'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_products_tenant_id', 'products', ['tenant_id'])
    op.create_index('ix_products_tenant_name', 'products', ['tenant_id', 'name'])

    op.create_table('suppliers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_suppliers_tenant_id', 'suppliers', ['tenant_id'])

    # ==========================================================================
    # Purchases (stock in)
    # ==========================================================================
    op.create_table('purchases',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        sa.Column('total', sa.Numeric(14, 2), nullable=False),
        sa.Column('payment_status', sa.String(length=16), nullable=False, server_default='belum_lunas'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "payment_status IN ('lunas', 'belum_lunas', 'sebagian')",
            name='ck_purchases_payment_status',
        ),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_purchases_tenant_id', 'purchases', ['tenant_id'])
    op.create_index('ix_purchases_tenant_created', 'purchases', ['tenant_id', 'created_at'])

    op.create_table('purchase_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('purchase_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(14, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(14, 2), nullable=False),
        sa.ForeignKeyConstraint(['purchase_id'], ['purchases.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_purchase_items_purchase_id', 'purchase_items', ['purchase_id'])

    # ==========================================================================
    # Sales (stock out)
    # ==========================================================================
    op.create_table('sales',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('total', sa.Numeric(14, 2), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('payment_received', sa.Numeric(14, 2), nullable=False),
        sa.Column('change_amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("payment_method IN ('cash', 'qris', 'ewallet')", name='ck_sales_payment_method'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sales_tenant_id', 'sales', ['tenant_id'])
    op.create_index('ix_sales_tenant_created', 'sales', ['tenant_id', 'created_at'])
    op.create_index('ix_sales_tenant_user_created', 'sales', ['tenant_id', 'user_id', 'created_at'])

    op.create_table('sale_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(14, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(14, 2), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])


def downgrade():
    op.drop_index('ix_sale_items_sale_id', 'sale_items')
    op.drop_table('sale_items')

    op.drop_index('ix_sales_tenant_user_created', 'sales')
    op.drop_index('ix_sales_tenant_created', 'sales')
    op.drop_index('ix_sales_tenant_id', 'sales')
    op.drop_table('sales')

    op.drop_index('ix_purchase_items_purchase_id', 'purchase_items')
    op.drop_table('purchase_items')

    op.drop_index('ix_purchases_tenant_created', 'purchases')
    op.drop_index('ix_purchases_tenant_id', 'purchases')
    op.drop_table('purchases')

    op.drop_index('ix_suppliers_tenant_id', 'suppliers')
    op.drop_table('suppliers')

    op.drop_index('ix_products_tenant_name', 'products')
    op.drop_index('ix_products_tenant_id', 'products')
    op.drop_table('products')

    op.drop_index('ix_session_tokens_token_hash', 'session_tokens')
    op.drop_index('ix_session_tokens_user_id', 'session_tokens')
    op.drop_table('session_tokens')

    op.drop_index('ix_users_tenant_role', 'users')
    op.drop_index('ix_users_tenant_id', 'users')
    op.drop_table('users')

    op.drop_index('ix_tenants_status', 'tenants')
    op.drop_table('tenants')
