"""Create orders table

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

This migration creates the orders table with the payment ledger columns
(total_paid, payment_status, installment plan, payment_count).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the orders table."""
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='pending'),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total_paid', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column(
            'payment_status',
            sa.Enum('pending', 'partial', 'completed', name='order_payment_status', create_constraint=True),
            nullable=False,
            server_default='pending'
        ),
        sa.Column('installment_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('number_of_installments', sa.Integer(), nullable=True),
        sa.Column('payment_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('total_paid <= total_amount', name='ck_orders_total_paid_le_total_amount'),
    )

    op.create_index('ix_orders_payment_status', 'orders', ['payment_status'])


def downgrade() -> None:
    """Drop the orders table."""
    op.drop_index('ix_orders_payment_status', table_name='orders')
    op.drop_table('orders')
