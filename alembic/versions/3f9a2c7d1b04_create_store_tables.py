"""create_store_tables

Revision ID: 3f9a2c7d1b04
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f9a2c7d1b04'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

order_status_enum = postgresql.ENUM(
    'pending', 'confirmed', 'processing', 'shipped', 'delivered', 'cancelled',
    name='store_order_status_enum',
    create_type=False,
)
payment_status_enum = postgresql.ENUM(
    'pending', 'completed', 'failed', 'refunded',
    name='store_payment_status_enum',
    create_type=False,
)
app_role_enum = postgresql.ENUM(
    'admin', 'user',
    name='store_app_role_enum',
    create_type=False,
)


def upgrade() -> None:
    """Upgrade schema - Create orders, user roles and newsletter tables."""
    bind = op.get_bind()
    order_status_enum.create(bind, checkfirst=True)
    payment_status_enum.create(bind, checkfirst=True)
    app_role_enum.create(bind, checkfirst=True)

    op.create_table(
        'store_orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=True),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=50), nullable=True),
        sa.Column('items', postgresql.JSONB(), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('shipping_cost', sa.Numeric(12, 2), server_default='0', nullable=True),
        sa.Column('tax', sa.Numeric(12, 2), server_default='0', nullable=True),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', order_status_enum, server_default='pending', nullable=True),
        sa.Column('payment_status', payment_status_enum, server_default='pending', nullable=True),
        sa.Column('payment_reference', sa.String(length=128), nullable=False),
        sa.Column('payment_provider', sa.String(length=32), server_default='paystack', nullable=True),
        sa.Column('shipping_address', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_store_orders_order_number', 'store_orders', ['order_number'], unique=True)
    op.create_index('ix_store_orders_payment_reference', 'store_orders', ['payment_reference'], unique=True)
    op.create_index('ix_store_orders_user_id', 'store_orders', ['user_id'], unique=False)
    op.create_index('ix_store_orders_customer_email', 'store_orders', ['customer_email'], unique=False)

    op.create_table(
        'store_user_roles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('role', app_role_enum, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'role', name='unique_user_role'),
    )
    op.create_index('ix_store_user_roles_user_id', 'store_user_roles', ['user_id'], unique=False)

    op.create_table(
        'store_newsletter_subscribers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )


def downgrade() -> None:
    """Downgrade schema - Drop store tables and enums."""
    op.drop_table('store_newsletter_subscribers')
    op.drop_index('ix_store_user_roles_user_id', table_name='store_user_roles')
    op.drop_table('store_user_roles')
    op.drop_index('ix_store_orders_customer_email', table_name='store_orders')
    op.drop_index('ix_store_orders_user_id', table_name='store_orders')
    op.drop_index('ix_store_orders_payment_reference', table_name='store_orders')
    op.drop_index('ix_store_orders_order_number', table_name='store_orders')
    op.drop_table('store_orders')

    bind = op.get_bind()
    app_role_enum.drop(bind, checkfirst=True)
    payment_status_enum.drop(bind, checkfirst=True)
    order_status_enum.drop(bind, checkfirst=True)
