"""Initial schema with holders, assets and the custody ledger

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create holders table
    op.create_table(
        'holders',
        sa.Column('holder_code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('unit', sa.String(255), nullable=False, server_default=''),
        sa.Column('portrait_ref', sa.String(1024), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('holder_code')
    )
    op.create_index('ix_holders_name', 'holders', ['name'], unique=False)

    # Create assets table
    op.create_table(
        'assets',
        sa.Column('serial', sa.String(100), nullable=False),
        sa.Column('category', sa.String(30), nullable=False),
        sa.Column('make', sa.String(100), nullable=False),
        sa.Column('model', sa.String(100), nullable=False),
        sa.Column('color', sa.String(50), nullable=False, server_default=''),
        sa.Column('holder_code', sa.String(50), nullable=True),
        sa.Column('credential_ref', sa.String(1024), nullable=True),
        sa.Column('custody_status', sa.String(3), nullable=False, server_default='IN'),
        sa.Column('custody_version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('serial'),
        # One asset per category per holder
        sa.UniqueConstraint('holder_code', 'category', name='uq_asset_holder_category')
    )
    op.create_index('ix_assets_category', 'assets', ['category'], unique=False)
    op.create_index('ix_assets_holder_code', 'assets', ['holder_code'], unique=False)

    # Create custody_events table (append-only, no FK so history outlives the asset)
    op.create_table(
        'custody_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('serial', sa.String(100), nullable=False),
        sa.Column('holder_code', sa.String(50), nullable=True),
        sa.Column('holder_name', sa.String(255), nullable=True),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_custody_events_id', 'custody_events', ['id'], unique=False)
    op.create_index('ix_custody_events_serial', 'custody_events', ['serial'], unique=False)
    op.create_index('ix_custody_events_occurred_at', 'custody_events', ['occurred_at'], unique=False)
    # Latest-event-per-serial lookups
    op.create_index('ix_custody_serial_occurred', 'custody_events', ['serial', 'occurred_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_custody_serial_occurred', table_name='custody_events')
    op.drop_index('ix_custody_events_occurred_at', table_name='custody_events')
    op.drop_index('ix_custody_events_serial', table_name='custody_events')
    op.drop_index('ix_custody_events_id', table_name='custody_events')
    op.drop_table('custody_events')

    op.drop_index('ix_assets_holder_code', table_name='assets')
    op.drop_index('ix_assets_category', table_name='assets')
    op.drop_table('assets')

    op.drop_index('ix_holders_name', table_name='holders')
    op.drop_table('holders')
