"""orders and user status

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-17 15:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


orderstatus = postgresql.ENUM(
    'DRAFT', 'PENDING', 'CONFIRMED', 'SHIPPED', 'DELIVERED', 'CANCELLED',
    name='orderstatus',
    create_type=False,
)


def upgrade() -> None:
    op.add_column(
        'users',
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    orderstatus.create(op.get_bind(), checkfirst=True)
    op.create_table('orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=False),
        sa.Column('conversation_id', sa.Integer(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.Column('contact_name_snapshot', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('contact_phone_snapshot', sa.String(length=20), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=50), nullable=False),
        sa.Column('delivery_address', sa.Text(), nullable=False),
        sa.Column('order_description', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', orderstatus, nullable=False, server_default='DRAFT'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.ForeignKeyConstraint(['updated_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_orders_company_created', 'orders', ['company_id', 'created_at', 'id'], unique=False)
    op.create_index('ix_orders_company_status', 'orders', ['company_id', 'status'], unique=False)
    op.create_index('ix_orders_contact', 'orders', ['contact_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_orders_contact', table_name='orders')
    op.drop_index('ix_orders_company_status', table_name='orders')
    op.drop_index('ix_orders_company_created', table_name='orders')
    op.drop_table('orders')
    orderstatus.drop(op.get_bind(), checkfirst=True)

    op.drop_column('users', 'is_active')
