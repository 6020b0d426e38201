"""Initial marketplace schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-03-02

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

json_type = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps(updated=True):
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False)]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False))
    return columns


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), server_default='buyer', nullable=False),
        sa.Column('company', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('google_id', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('admins',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(length=30), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), server_default='super_admin', nullable=False),
        sa.Column('status', sa.String(length=20), server_default='active', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_admins_email', 'admins', ['email'])

    op.create_table('stock',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('reorder_level', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('supplier_id', sa.Uuid(), nullable=True),
        sa.Column('date_added', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.CheckConstraint('quantity >= 0', name='stock_quantity_non_negative_check'),
        sa.CheckConstraint('reorder_level >= 0', name='stock_reorder_level_non_negative_check'),
        sa.ForeignKeyConstraint(['supplier_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('stock_id', sa.Uuid(), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('image', sa.String(length=500), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('price >= 0', name='product_price_non_negative_check'),
        sa.ForeignKeyConstraint(['stock_id'], ['stock.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('carts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('items', json_type, nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )

    op.create_table('orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_number', sa.String(length=50), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('items', json_type, nullable=False),
        sa.Column('subtotal', sa.Float(), nullable=False),
        sa.Column('delivery_charge', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('customer', json_type, nullable=False),
        sa.Column('address', json_type, nullable=False),
        sa.Column('delivery_method', sa.String(length=20), server_default='home', nullable=False),
        sa.Column('courier', sa.String(length=20), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('payment_method', sa.String(length=30), nullable=False),
        sa.Column('payment_status', sa.String(length=20), server_default='unpaid', nullable=False),
        sa.Column('payment_intent_id', sa.String(length=100), nullable=True),
        sa.Column('payment_slip', json_type, nullable=True),
        sa.Column('status', sa.String(length=30), server_default='pending', nullable=False),
        sa.Column('history', json_type, nullable=False),
        *_timestamps(),
        sa.CheckConstraint('subtotal >= 0', name='order_subtotal_non_negative_check'),
        sa.CheckConstraint('delivery_charge >= 0', name='order_delivery_charge_non_negative_check'),
        sa.CheckConstraint('total >= 0', name='order_total_non_negative_check'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table('reorder_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('priority', sa.String(length=20), server_default='Normal', nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('replies', json_type, nullable=False),
        *_timestamps(),
        sa.CheckConstraint('quantity >= 1', name='reorder_quantity_positive_check'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('supplier_offers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('supplier_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('price_per_unit', sa.Float(), nullable=False),
        sa.Column('quantity_offered', sa.Integer(), nullable=False),
        sa.Column('delivery_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='Pending', nullable=False),
        sa.Column('decision_by', sa.Uuid(), nullable=True),
        sa.Column('decision_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('price_per_unit >= 0', name='offer_price_non_negative_check'),
        sa.CheckConstraint('quantity_offered >= 1', name='offer_quantity_positive_check'),
        sa.ForeignKeyConstraint(['supplier_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['decision_by'], ['admins.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_supplier_offers_supplier_id', 'supplier_offers', ['supplier_id'])

    op.create_table('feedback',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='feedback_rating_range_check'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('finance',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        *_timestamps(updated=False),
        sa.CheckConstraint('amount >= 0', name='finance_amount_non_negative_check'),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade():
    op.drop_table('finance')
    op.drop_table('feedback')
    op.drop_index('ix_supplier_offers_supplier_id', table_name='supplier_offers')
    op.drop_table('supplier_offers')
    op.drop_table('reorder_requests')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_user_id', table_name='orders')
    op.drop_index('ix_orders_order_number', table_name='orders')
    op.drop_table('orders')
    op.drop_table('carts')
    op.drop_table('products')
    op.drop_table('stock')
    op.drop_index('ix_admins_email', table_name='admins')
    op.drop_table('admins')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
