"""create inventory, pending_changes and app_settings tables

Revision ID: 3b7e1c2a9d40
Revises:
Create Date: 2026-10-19 10:12:41.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7e1c2a9d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Idempotent: skip tables that already exist (e.g. created by create_all in dev)
    from sqlalchemy import inspect
    conn = op.get_bind()
    inspector = inspect(conn)
    tables = inspector.get_table_names()

    if 'inventory' not in tables:
        op.create_table(
            'inventory',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('part_number', sa.String(length=128), nullable=False),
            sa.Column('mfg_part_number', sa.String(length=128), nullable=False, server_default=''),
            sa.Column('qty', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('part_description', sa.Text(), nullable=False, server_default=''),
            sa.Column('supplier', sa.String(length=255), nullable=False, server_default=''),
            sa.Column('location', sa.String(length=64), nullable=False, server_default=''),
            sa.Column('package', sa.String(length=32), nullable=False, server_default=''),
            sa.Column('reorder_point', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_inventory_part_number', 'inventory', ['part_number'])
        op.create_index('ix_inventory_location', 'inventory', ['location'])

    if 'pending_changes' not in tables:
        op.create_table(
            'pending_changes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('change_type', sa.String(length=32), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
            sa.Column('requested_by', sa.String(length=255), nullable=False),
            sa.Column('item_data', sa.Text(), nullable=False, server_default='{}'),
            sa.Column('original_data', sa.Text(), nullable=True),
            sa.Column('approved_by', sa.String(length=255), nullable=True),
            sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_pending_changes_status', 'pending_changes', ['status'])

    if 'app_settings' not in tables:
        op.create_table(
            'app_settings',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('key', sa.String(length=128), nullable=False),
            sa.Column('value', sa.Text(), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('key', name='uq_app_settings_key'),
        )

    # Insert default settings
    op.execute("""
        INSERT INTO app_settings (key, value, updated_at)
        VALUES ('default_reorder_point', '10', now())
        ON CONFLICT (key) DO NOTHING
    """)


def downgrade() -> None:
    op.drop_table('app_settings')
    op.drop_index('ix_pending_changes_status', table_name='pending_changes')
    op.drop_table('pending_changes')
    op.drop_index('ix_inventory_location', table_name='inventory')
    op.drop_index('ix_inventory_part_number', table_name='inventory')
    op.drop_table('inventory')
