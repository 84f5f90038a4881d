"""create_store_inventory

Revision ID: 8b1e5d2a9c47
Revises: 3f9a2c7d1b04
Create Date: 2026-10-19 14:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8b1e5d2a9c47'
down_revision: Union[str, Sequence[str], None] = '3f9a2c7d1b04'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - Create inventory table."""
    op.create_table(
        'store_inventory',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('stock_quantity', sa.Integer(), server_default='0', nullable=False),
        sa.Column('low_stock_threshold', sa.Integer(), server_default='10', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id'),
        sa.CheckConstraint('stock_quantity >= 0', name='inventory_stock_non_negative'),
        sa.CheckConstraint('low_stock_threshold >= 0', name='inventory_threshold_non_negative'),
    )


def downgrade() -> None:
    """Downgrade schema - Drop inventory table."""
    op.drop_table('store_inventory')
