"""Initial POS schema

Revision ID: 3f1c9a2e7b01
Revises: 
Create Date: 2026-10-19 09:12:44.118302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers used by Alembic
revision: str = '3f1c9a2e7b01'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLES = ('SUPER_ADMIN', 'ADMIN', 'CASHIER', 'STAFF')
ORDER_STATUSES = (
    'DRAFT', 'PENDING_PAYMENT', 'AWAITING_CONFIRMATION', 'PAID', 'PREPARING',
    'READY', 'COMPLETED', 'CANCELLED', 'REFUNDED',
)
ORDER_TYPES = ('DINE_IN', 'TAKEAWAY', 'DELIVERY')
DISCOUNT_TYPES = ('PERCENTAGE', 'FIXED_AMOUNT')
PAYMENT_METHODS = ('CASH', 'BANK_TRANSFER', 'QRIS', 'CREDIT_CARD', 'DEBIT_CARD', 'E_WALLET', 'OTHER')
PAYMENT_STATUSES = ('PENDING', 'COMPLETED', 'FAILED', 'EXPIRED', 'REFUNDED')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', sa.Enum(*ROLES, name='role'), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('sku', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('price', sa.Numeric(12, 2), sa.CheckConstraint('price >= 0'), nullable=False),
        sa.Column('cost_price', sa.Numeric(12, 2), sa.CheckConstraint('cost_price >= 0'), nullable=True),
        sa.Column('track_inventory', sa.Boolean(), nullable=False),
        sa.Column('quantity', sa.Integer(), sa.CheckConstraint('quantity >= 0'), nullable=False),
        sa.Column('low_stock_alert', sa.Integer(), nullable=True),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_products_id', 'products', ['id'])
    op.create_index('ix_products_name', 'products', ['name'])
    op.create_index('ix_products_sku', 'products', ['sku'], unique=True)
    op.create_index('ix_products_category', 'products', ['category'])

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('qty', sa.Integer(), nullable=False),
        sa.Column('previous_stock', sa.Integer(), nullable=False),
        sa.Column('current_stock', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('reference_type', sa.String(20), nullable=True),
        sa.Column('reference_id', sa.String(40), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_stock_movements_id', 'stock_movements', ['id'])
    op.create_index('ix_stock_movements_product_id', 'stock_movements', ['product_id'])

    op.create_table(
        'pos_carts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('state', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_pos_carts_id', 'pos_carts', ['id'])
    op.create_index('ix_pos_carts_user_id', 'pos_carts', ['user_id'], unique=True)

    op.create_table(
        'held_orders',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('order_number', sa.String(40), nullable=False),
        sa.Column('cart', sa.JSON(), nullable=False),
        sa.Column('held_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_held_orders_user_id', 'held_orders', ['user_id'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_number', sa.String(40), nullable=False),
        sa.Column('order_type', sa.Enum(*ORDER_TYPES, name='ordertype'), nullable=False),
        sa.Column('status', sa.Enum(*ORDER_STATUSES, name='orderstatus'), nullable=False),
        sa.Column('cashier_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('customer_name', sa.String(), nullable=True),
        sa.Column('customer_phone', sa.String(), nullable=True),
        sa.Column('customer_email', sa.String(), nullable=True),
        sa.Column('customer_address', sa.String(), nullable=True),
        sa.Column('table_number', sa.String(), nullable=True),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount_type', sa.Enum(*DISCOUNT_TYPES, name='discounttype'), nullable=True),
        sa.Column('discount_value', sa.Numeric(12, 2), nullable=True),
        sa.Column('discount_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_rate', sa.Numeric(5, 4), nullable=True),
        sa.Column('tax_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('service_charge', sa.Numeric(12, 2), nullable=False),
        sa.Column('delivery_fee', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_method', sa.Enum(*PAYMENT_METHODS, name='paymentmethod'), nullable=True),
        sa.Column('payment_status', sa.Enum(*PAYMENT_STATUSES, name='paymentstatus'), nullable=False),
        sa.Column('paid_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('change_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('gateway_reference', sa.String(), nullable=True),
        sa.Column('stock_deducted', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('preparing_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ready_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('refunded_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_orders_id', 'orders', ['id'])
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_cashier_id', 'orders', ['cashier_id'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=True),
        sa.Column('product_name', sa.String(), nullable=False),
        sa.Column('product_sku', sa.String(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
    )
    op.create_index('ix_order_items_id', 'order_items', ['id'])
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('ts', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', sa.String(50), nullable=True),
        sa.Column('resource', sa.String(50), nullable=True),
        sa.Column('resource_id', sa.String(64), nullable=True),
        sa.Column('status', sa.String(20), nullable=True),
        sa.Column('ip', sa.String(64), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
    )
    op.create_index('ix_logs_id', 'logs', ['id'])
    op.create_index('ix_logs_ts', 'logs', ['ts'])
    op.create_index('ix_logs_action', 'logs', ['action'])
    op.create_index('ix_logs_resource', 'logs', ['resource'])
    op.create_index('ix_logs_resource_id', 'logs', ['resource_id'])
    op.create_index('ix_logs_user_id', 'logs', ['user_id'])
    op.create_index('ix_logs_status', 'logs', ['status'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('logs')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('held_orders')
    op.drop_table('pos_carts')
    op.drop_table('stock_movements')
    op.drop_table('products')
    op.drop_table('users')
