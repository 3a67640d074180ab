"""Add first_payment_at to the recurring snapshot

Revision ID: 20261019_000003
Revises: 20261019_000002
Create Date: 2026-10-19

Stored so the duration label of a recurring row can be rendered from the
snapshot without touching the payments.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000003'
down_revision: Union[str, None] = '20261019_000002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table('organization_top_recurring_snapshots') as batch_op:
        batch_op.add_column(sa.Column('first_payment_at', sa.DateTime(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table('organization_top_recurring_snapshots') as batch_op:
        batch_op.drop_column('first_payment_at')
