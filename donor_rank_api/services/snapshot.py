"""Persistence of precomputed leaderboards.

Snapshots are never patched row by row: a recompute deletes every row of the
organization and inserts the new set inside one transaction, with the
organization row locked so two recomputes of the same organization cannot
interleave.
"""

import logging
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import Session

from donor_rank_api.models.organization import Organization
from donor_rank_api.models.snapshot import TopOneTimeSnapshot, TopRecurringSnapshot
from donor_rank_api.services.aggregation import DonorAggregate

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Read and fully replace one kind of leaderboard snapshot."""

    model: Any = None
    kind: str = ""

    def to_row(self, organization_id: int, aggregate: DonorAggregate) -> dict[str, Any]:
        raise NotImplementedError

    def to_aggregate(self, row: Any) -> DonorAggregate:
        raise NotImplementedError

    def get(self, db: Session, organization_id: int) -> list[DonorAggregate]:
        """Snapshot rows, total descending then label ascending."""
        query = (
            select(self.model)
            .where(self.model.organization_id == organization_id)
            .order_by(self.model.total_amount.desc(), self.model.donor_label.asc())
        )
        return [self.to_aggregate(row) for row in db.execute(query).scalars().all()]

    def replace(self, db: Session, organization_id: int, aggregates: list[DonorAggregate]) -> int:
        """Swap the organization's snapshot for ``aggregates``.

        An empty list still clears the snapshot. On any failure the transaction
        is rolled back, the previous snapshot stays in place and the error is
        re-raised.
        """
        rows = [self.to_row(organization_id, aggregate) for aggregate in aggregates]

        try:
            # Serializes concurrent replaces of the same organization
            db.execute(
                select(Organization.id).where(Organization.id == organization_id).with_for_update()
            )
            db.execute(delete(self.model).where(self.model.organization_id == organization_id))
            if rows:
                db.execute(insert(self.model), rows)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception(
                "Failed to replace %s snapshot for organization %s", self.kind, organization_id
            )
            raise

        logger.info(
            "Replaced %s snapshot for organization %s with %d rows", self.kind, organization_id, len(rows)
        )
        return len(rows)


class OneTimeSnapshotStore(SnapshotStore):
    model = TopOneTimeSnapshot
    kind = "one-time"

    def to_row(self, organization_id: int, aggregate: DonorAggregate) -> dict[str, Any]:
        return {
            "organization_id": organization_id,
            "donor_label": aggregate.donor_label,
            "sponsor_key": aggregate.sponsor_key,
            "total_amount": aggregate.total_amount,
            "donations_count": aggregate.count,
            "latest_donation_at": aggregate.latest_activity_at,
        }

    def to_aggregate(self, row: TopOneTimeSnapshot) -> DonorAggregate:
        return DonorAggregate(
            donor_label=row.donor_label,
            total_amount=row.total_amount,
            count=row.donations_count,
            latest_activity_at=row.latest_donation_at,
            sponsor_key=row.sponsor_key,
        )


class RecurringSnapshotStore(SnapshotStore):
    model = TopRecurringSnapshot
    kind = "recurring"

    def to_row(self, organization_id: int, aggregate: DonorAggregate) -> dict[str, Any]:
        return {
            "organization_id": organization_id,
            "donor_label": aggregate.donor_label,
            "total_amount": aggregate.total_amount,
            "payments_count": aggregate.count,
            "subscribers_count": aggregate.subscribers_count,
            "first_payment_at": aggregate.first_activity_at,
        }

    def to_aggregate(self, row: TopRecurringSnapshot) -> DonorAggregate:
        return DonorAggregate(
            donor_label=row.donor_label,
            total_amount=row.total_amount,
            count=row.payments_count,
            subscribers_count=row.subscribers_count,
            first_activity_at=row.first_payment_at,
        )


one_time_snapshots = OneTimeSnapshotStore()
recurring_snapshots = RecurringSnapshotStore()
