"""initial shop schema

Revision ID: sd001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete ShopDesk schema:
- shops, profiles, custom_roles, session_tokens: tenancy and auth
- products, inventory_logs, damaged_inventory: catalog and stock movements
- transactions, returns: sales
- supplier, purchase_entry, purchase_entry_products: purchasing
- notifications: in-app messages
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'sd001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('CURRENT_TIMESTAMP'))


def _updated_at():
    return sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade():
    # ============================================================================
    # shops: tenant boundary
    # ============================================================================
    op.create_table(
        'shops',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('slug', sa.String(length=64), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('gst_number', sa.String(length=32), nullable=True),
        sa.Column('owner_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_shops_slug', 'shops', ['slug'], unique=True)
    op.create_index('ix_shops_owner_id', 'shops', ['owner_id'])
    op.create_index('ix_shops_is_active', 'shops', ['is_active'])

    # ============================================================================
    # custom_roles / profiles / session_tokens: auth
    # ============================================================================
    op.create_table(
        'custom_roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shop_id', 'name', name='uq_custom_roles_shop_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_custom_roles_shop_id', 'custom_roles', ['shop_id'])

    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=120), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('custom_role_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _created_at(),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.ForeignKeyConstraint(['custom_role_id'], ['custom_roles.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'], unique=True)
    op.create_index('ix_profiles_shop_id', 'profiles', ['shop_id'])
    op.create_index('ix_profiles_shop_role', 'profiles', ['shop_id', 'role'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=True),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id']),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_profile_id', 'session_tokens', ['profile_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)

    # ============================================================================
    # products / inventory_logs / damaged_inventory: catalog and stock
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('unit_type', sa.String(length=16), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('mrp', sa.Numeric(12, 2), nullable=False),
        sa.Column('stock_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('weight_rate', sa.Numeric(12, 2), nullable=False),
        sa.Column('gst_percentage', sa.Numeric(6, 2), nullable=False),
        sa.Column('stock', sa.Numeric(12, 3), nullable=False),
        sa.Column('sales_count', sa.Numeric(12, 3), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shop_id', 'sku', name='uq_products_shop_sku'),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_shop_id', 'products', ['shop_id'])
    op.create_index('ix_products_shop_name', 'products', ['shop_id', 'name'])
    op.create_index('ix_products_barcode', 'products', ['barcode'])

    op.create_table(
        'inventory_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('action', sa.String(length=16), nullable=False),
        sa.Column('reference', sa.String(length=64), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_inventory_logs_shop_id', 'inventory_logs', ['shop_id'])
    op.create_index('ix_inventory_logs_product_id', 'inventory_logs', ['product_id'])
    op.create_index('ix_inventory_logs_shop_created', 'inventory_logs', ['shop_id', 'created_at'])

    op.create_table(
        'damaged_inventory',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('reported_by', sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['reported_by'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_damaged_inventory_shop_id', 'damaged_inventory', ['shop_id'])
    op.create_index('ix_damaged_inventory_product_id', 'damaged_inventory', ['product_id'])

    # ============================================================================
    # transactions / returns: sales
    # ============================================================================
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('cashier_id', sa.Integer(), nullable=True),
        sa.Column('transaction_code', sa.String(length=32), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('payment_method', sa.String(length=8), nullable=False),
        sa.Column('payment_details', sa.JSON(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.ForeignKeyConstraint(['cashier_id'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shop_id', 'transaction_code', name='uq_transactions_shop_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_transactions_shop_id', 'transactions', ['shop_id'])
    op.create_index('ix_transactions_cashier_id', 'transactions', ['cashier_id'])
    op.create_index('ix_transactions_shop_created', 'transactions', ['shop_id', 'created_at'])

    op.create_table(
        'returns',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('transaction_id', sa.Integer(), nullable=False),
        sa.Column('transaction_code', sa.String(length=32), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('returned_quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('return_reason', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        _created_at(),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id']),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_returns_shop_id', 'returns', ['shop_id'])
    op.create_index('ix_returns_transaction_id', 'returns', ['transaction_id'])
    op.create_index('ix_returns_status', 'returns', ['status'])

    # ============================================================================
    # supplier / purchase_entry / purchase_entry_products: purchasing
    # ============================================================================
    op.create_table(
        'supplier',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('gst_number', sa.String(length=32), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=120), nullable=True),
        sa.Column('state', sa.String(length=120), nullable=True),
        sa.Column('country', sa.String(length=120), nullable=False),
        sa.Column('pincode', sa.String(length=16), nullable=True),
        sa.Column('contact_person', sa.String(length=120), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('credit_days', sa.Integer(), nullable=False),
        sa.Column('credit_limit', sa.Numeric(12, 2), nullable=False),
        sa.Column('outstanding_balance', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_status', sa.String(length=16), nullable=False),
        sa.Column('payment_mode', sa.String(length=32), nullable=False),
        sa.Column('paid_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('balance_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('bill_date', sa.Date(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_supplier_shop_id', 'supplier', ['shop_id'])
    op.create_index('ix_supplier_shop_name', 'supplier', ['shop_id', 'name'])

    op.create_table(
        'purchase_entry',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('supplier_name', sa.String(length=255), nullable=False),
        sa.Column('state', sa.String(length=120), nullable=False),
        sa.Column('gst_no', sa.String(length=32), nullable=True),
        sa.Column('bill_no', sa.String(length=64), nullable=True),
        sa.Column('purchase_date', sa.Date(), nullable=False),
        sa.Column('supplier_bill_date', sa.Date(), nullable=False),
        sa.Column('invoice_type', sa.String(length=32), nullable=False),
        sa.Column('gross_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('discount', sa.Numeric(8, 2), nullable=False),
        sa.Column('add_charges', sa.Numeric(8, 2), nullable=False),
        sa.Column('discount_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('surcharge_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('total_gst', sa.Numeric(14, 2), nullable=False),
        sa.Column('round_off_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('net_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('payment_mode', sa.String(length=32), nullable=False),
        sa.Column('paid_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('balance_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('payment_status', sa.String(length=16), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        _created_at(),
        sa.Column('transferred_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.ForeignKeyConstraint(['supplier_id'], ['supplier.id']),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_purchase_entry_shop_id', 'purchase_entry', ['shop_id'])
    op.create_index('ix_purchase_entry_supplier_id', 'purchase_entry', ['supplier_id'])
    op.create_index('ix_purchase_entry_invoice_type', 'purchase_entry', ['invoice_type'])
    op.create_index('ix_purchase_entry_shop_created', 'purchase_entry', ['shop_id', 'created_at'])

    op.create_table(
        'purchase_entry_products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('purchase_entry_id', sa.Integer(), nullable=False),
        sa.Column('line_key', sa.String(length=64), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('unit_type', sa.String(length=16), nullable=False),
        sa.Column('stock', sa.Numeric(12, 3), nullable=False),
        sa.Column('mrp', sa.Numeric(12, 2), nullable=False),
        sa.Column('stock_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('weight_rate', sa.Numeric(12, 2), nullable=False),
        sa.Column('gst_percentage', sa.Numeric(6, 2), nullable=False),
        sa.Column('sgst', sa.Numeric(14, 2), nullable=False),
        sa.Column('cgst', sa.Numeric(14, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(14, 2), nullable=False),
        sa.ForeignKeyConstraint(['purchase_entry_id'], ['purchase_entry.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_purchase_entry_products_purchase_entry_id', 'purchase_entry_products', ['purchase_entry_id'])

    # ============================================================================
    # notifications
    # ============================================================================
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('sender_id', sa.Integer(), nullable=True),
        sa.Column('recipient_role', sa.String(length=16), nullable=True),
        sa.Column('recipient_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.ForeignKeyConstraint(['sender_id'], ['profiles.id']),
        sa.ForeignKeyConstraint(['recipient_id'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_notifications_shop_id', 'notifications', ['shop_id'])
    op.create_index('ix_notifications_recipient_id', 'notifications', ['recipient_id'])
    op.create_index('ix_notifications_shop_created', 'notifications', ['shop_id', 'created_at'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('purchase_entry_products')
    op.drop_table('purchase_entry')
    op.drop_table('supplier')
    op.drop_table('returns')
    op.drop_table('transactions')
    op.drop_table('damaged_inventory')
    op.drop_table('inventory_logs')
    op.drop_table('products')
    op.drop_table('session_tokens')
    op.drop_table('profiles')
    op.drop_table('custom_roles')
    op.drop_table('shops')
