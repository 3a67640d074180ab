"""Where subscription keys come from for an organization.

Current-system organizations only know subscriptions through their payments.
Migrated organizations also carry subscriptions imported from the legacy
system, some of which never charged in the current one. Both variants share
the same grouping; only the key set and the legacy index differ.
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import CompoundSelect, Select, func, select, union
from sqlalchemy.orm import Session

from donor_rank_api.models.legacy_autopayment import LegacyAutopayment
from donor_rank_api.models.payment import PaymentTransaction
from donor_rank_api.services.aggregation import DEFAULT_LEGACY_PERIOD, SubscriptionGroup, group_subscriptions
from donor_rank_api.services.period import activity_column
from donor_rank_api.services.subscription import COMPLETED_STATUS


class CurrentSystemSource:
    """Subscriptions reconstructed from current-system payments only."""

    def keys_query(
            self,
            organization_id: int,
            recurring_period: str | None = None,
    ) -> Select | CompoundSelect:
        query = (
            select(PaymentTransaction.subscription_key.label("subscription_key"))
            .where(PaymentTransaction.organization_id == organization_id)
            .where(PaymentTransaction.status == COMPLETED_STATUS)
            .where(PaymentTransaction.subscription_key.is_not(None))
        )
        if recurring_period:
            query = query.where(PaymentTransaction.recurring_period == recurring_period)
        return query.distinct()

    def count_keys(self, db: Session, organization_id: int, recurring_period: str | None = None) -> int:
        keys = self.keys_query(organization_id, recurring_period).subquery()
        return db.execute(select(func.count()).select_from(keys)).scalar_one()

    def page_keys(
            self,
            db: Session,
            organization_id: int,
            offset: int,
            limit: int,
            recurring_period: str | None = None,
    ) -> list[str]:
        """Subscription keys for one page, ordered by key for stable pagination."""
        keys = self.keys_query(organization_id, recurring_period).subquery()
        query = (
            select(keys.c.subscription_key)
            .order_by(keys.c.subscription_key)
            .offset(offset)
            .limit(limit)
        )
        return list(db.execute(query).scalars().all())

    def legacy_index(
            self,
            db: Session,
            organization_id: int,
            keys: Sequence[str] | None = None,
    ) -> dict[str, LegacyAutopayment]:
        return {}

    def load_groups(
            self,
            db: Session,
            organization_id: int,
            keys: Sequence[str] | None = None,
            since: datetime | None = None,
    ) -> list[SubscriptionGroup]:
        """Load subscription groups, for the given keys or for every key.

        With ``since`` only charges from that moment on are loaded, and
        subscriptions without such a charge are left out.
        """
        if keys is not None and not keys:
            return []

        query = (
            select(PaymentTransaction)
            .where(PaymentTransaction.organization_id == organization_id)
            .where(PaymentTransaction.status == COMPLETED_STATUS)
            .where(PaymentTransaction.subscription_key.is_not(None))
            .order_by(PaymentTransaction.created_at, PaymentTransaction.id)
        )
        if keys is not None:
            query = query.where(PaymentTransaction.subscription_key.in_(keys))
        if since is not None:
            query = query.where(activity_column() >= since)

        payments = db.execute(query).scalars().all()
        groups = group_subscriptions(payments, self.legacy_index(db, organization_id, keys), keys)
        if since is not None:
            groups = [group for group in groups if group.payments]
        return groups


class LegacySnapshotSource(CurrentSystemSource):
    """Current-system subscriptions blended with the imported legacy ones."""

    def keys_query(
            self,
            organization_id: int,
            recurring_period: str | None = None,
    ) -> Select | CompoundSelect:
        legacy_keys = select(LegacyAutopayment.subscription_key.label("subscription_key")).where(
            LegacyAutopayment.organization_id == organization_id
        )
        if recurring_period:
            # Listed rows show a missing legacy period as the default one
            legacy_period = func.coalesce(LegacyAutopayment.recurring_period, DEFAULT_LEGACY_PERIOD)
            legacy_keys = legacy_keys.where(legacy_period == recurring_period)
        return union(super().keys_query(organization_id, recurring_period), legacy_keys)

    def legacy_index(
            self,
            db: Session,
            organization_id: int,
            keys: Sequence[str] | None = None,
    ) -> dict[str, LegacyAutopayment]:
        query = select(LegacyAutopayment).where(LegacyAutopayment.organization_id == organization_id)
        if keys is not None:
            query = query.where(LegacyAutopayment.subscription_key.in_(keys))
        return {row.subscription_key: row for row in db.execute(query).scalars().all()}


def select_source(is_migrated: bool) -> CurrentSystemSource:
    """Pick the subscription source once, from the organization's migrated flag."""
    return LegacySnapshotSource() if is_migrated else CurrentSystemSource()
