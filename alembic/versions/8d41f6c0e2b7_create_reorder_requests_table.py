"""create reorder_requests table

Revision ID: 8d41f6c0e2b7
Revises: 3b7e1c2a9d40
Create Date: 2026-10-19 15:40:07.552918

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d41f6c0e2b7'
down_revision: Union[str, None] = '3b7e1c2a9d40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    from sqlalchemy import inspect
    conn = op.get_bind()
    inspector = inspect(conn)
    if 'reorder_requests' in inspector.get_table_names():
        return

    op.create_table(
        'reorder_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=True),
        sa.Column('part_number', sa.String(length=128), nullable=False),
        sa.Column('part_description', sa.Text(), nullable=False, server_default=''),
        sa.Column('current_qty', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reorder_point', sa.Integer(), nullable=True),
        sa.Column('supplier', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('location', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('timeframe', sa.String(length=32), nullable=False, server_default=''),
        sa.Column('urgency', sa.String(length=16), nullable=False),
        sa.Column('requester', sa.String(length=255), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('status_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_reorder_requests_part_number', 'reorder_requests', ['part_number'])
    op.create_index('ix_reorder_requests_status', 'reorder_requests', ['status'])


def downgrade() -> None:
    op.drop_index('ix_reorder_requests_status', table_name='reorder_requests')
    op.drop_index('ix_reorder_requests_part_number', table_name='reorder_requests')
    op.drop_table('reorder_requests')
