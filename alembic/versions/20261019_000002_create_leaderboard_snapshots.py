"""Create leaderboard snapshot tables

Revision ID: 20261019_000002
Revises: 20261019_000001
Create Date: 2026-10-19

Snapshot rows are keyed by (organization_id, donor_label) and fully replaced
for an organization on every recompute.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000002'
down_revision: Union[str, None] = '20261019_000001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the one-time and recurring snapshot tables."""
    op.create_table(
        'organization_top_one_time_snapshots',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('donor_label', sa.String(length=255), nullable=False),
        sa.Column('sponsor_key', sa.String(length=255), nullable=True),
        sa.Column('total_amount', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('donations_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('latest_donation_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['organization_id'],
            ['organizations.id'],
            name='fk_top_one_time_organization_id',
            ondelete='CASCADE',
        ),
        sa.UniqueConstraint('organization_id', 'donor_label', name='uq_top_one_time_org_label'),
    )
    op.create_index(
        'ix_organization_top_one_time_snapshots_organization_id',
        'organization_top_one_time_snapshots',
        ['organization_id'],
    )

    op.create_table(
        'organization_top_recurring_snapshots',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('donor_label', sa.String(length=255), nullable=False),
        sa.Column('total_amount', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('payments_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('subscribers_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['organization_id'],
            ['organizations.id'],
            name='fk_top_recurring_organization_id',
            ondelete='CASCADE',
        ),
        sa.UniqueConstraint('organization_id', 'donor_label', name='uq_top_recurring_org_label'),
    )
    op.create_index(
        'ix_organization_top_recurring_snapshots_organization_id',
        'organization_top_recurring_snapshots',
        ['organization_id'],
    )


def downgrade() -> None:
    """Drop the snapshot tables."""
    op.drop_table('organization_top_recurring_snapshots')
    op.drop_table('organization_top_one_time_snapshots')
