"""Create organizations, users, payment and legacy autopayment tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

These are the inputs the leaderboards are computed from. The
subscription_key / recurring_period columns on payment_transactions are
filled from recurring_metadata by the application on every write.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create the source tables."""
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_legacy_migrated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('leaderboard_label_mode', sa.String(length=20), nullable=False, server_default='donor'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'payment_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='RUB'),
        sa.Column('donor_id', sa.Integer(), nullable=True),
        sa.Column('donor_name', sa.String(length=255), nullable=True),
        sa.Column('donor_email', sa.String(length=255), nullable=True),
        sa.Column('donor_phone', sa.String(length=32), nullable=True),
        sa.Column('is_anonymous', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('payment_method_slug', sa.String(length=50), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('recurring_metadata', sa.JSON(), nullable=True),
        sa.Column('subscription_key', sa.String(length=191), nullable=True),
        sa.Column('recurring_period', sa.String(length=20), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['organization_id'],
            ['organizations.id'],
            name='fk_payment_transactions_organization_id',
            ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['donor_id'],
            ['users.id'],
            name='fk_payment_transactions_donor_id',
            ondelete='SET NULL',
        ),
    )

    # Create indexes for common queries
    op.create_index('ix_payment_transactions_organization_id', 'payment_transactions', ['organization_id'])
    op.create_index('ix_payment_transactions_donor_id', 'payment_transactions', ['donor_id'])
    op.create_index('ix_payment_transactions_org_status', 'payment_transactions', ['organization_id', 'status'])
    op.create_index(
        'ix_payment_transactions_org_subscription',
        'payment_transactions',
        ['organization_id', 'subscription_key'],
    )

    op.create_table(
        'organization_autopayments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('subscription_key', sa.String(length=191), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('phone_number', sa.String(length=32), nullable=True),
        sa.Column('amount', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('recurring_period', sa.String(length=20), nullable=True),
        sa.Column('payment_method_slug', sa.String(length=50), nullable=True),
        sa.Column('first_payment_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['organization_id'],
            ['organizations.id'],
            name='fk_organization_autopayments_organization_id',
            ondelete='CASCADE',
        ),
        sa.UniqueConstraint('organization_id', 'subscription_key', name='uq_org_autopayments_org_key'),
    )

    op.create_index('ix_organization_autopayments_organization_id', 'organization_autopayments', ['organization_id'])
    op.create_index('ix_organization_autopayments_subscription_key', 'organization_autopayments', ['subscription_key'])
    op.create_index('ix_organization_autopayments_recurring_period', 'organization_autopayments', ['recurring_period'])


def downgrade() -> None:
    """Drop the source tables."""
    op.drop_table('organization_autopayments')
    op.drop_table('payment_transactions')
    op.drop_table('users')
    op.drop_table('organizations')
