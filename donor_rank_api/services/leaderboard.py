"""Service layer for sponsor listings and donor leaderboards."""

import hashlib
import logging
from datetime import datetime

from sqlalchemy import String, case, func, literal, null, select
from sqlalchemy.orm import Session

from donor_rank_api.config import get_settings
from donor_rank_api.models.organization import User
from donor_rank_api.models.payment import PaymentTransaction
from donor_rank_api.schemas.common import Page, PaginationParams, create_pagination_meta, paginate
from donor_rank_api.schemas.leaderboard import (
    LeaderboardPeriod,
    SponsorRow,
    SponsorSort,
    TopDonorRow,
    TopRecurringRow,
)
from donor_rank_api.services.aggregation import (
    DonorAggregate,
    build_one_time_leaderboard,
    build_recurring_leaderboard,
    sponsor_display_name,
)
from donor_rank_api.services.formatting import format_currency, format_duration_label
from donor_rank_api.services.identity import sponsor_key_expression
from donor_rank_api.services.labels import label_normalizer_for, normalize_donor_label
from donor_rank_api.services.organization import OrganizationContext
from donor_rank_api.services.period import activity_column, period_start, utc_now
from donor_rank_api.services.snapshot import one_time_snapshots, recurring_snapshots
from donor_rank_api.services.sources import select_source
from donor_rank_api.services.subscription import COMPLETED_STATUS

logger = logging.getLogger(__name__)


def row_id(prefix: str, label: str) -> str:
    """Stable identifier of a leaderboard row, derived from its label."""
    return f"{prefix}:" + hashlib.md5(label.encode("utf-8"), usedforsecurity=False).hexdigest()


class LeaderboardService:
    """Business logic for the one-time and recurring leaderboards."""

    @staticmethod
    def one_time_aggregates(
            db: Session,
            context: OrganizationContext,
            since: datetime | None = None,
    ) -> list[DonorAggregate]:
        """Aggregate the organization's completed payments by sponsor identity."""
        query = (
            select(PaymentTransaction)
            .where(PaymentTransaction.organization_id == context.organization_id)
            .where(PaymentTransaction.status == COMPLETED_STATUS)
        )
        if since is not None:
            query = query.where(activity_column() >= since)
        records = db.execute(query).scalars().all()

        donor_ids = {record.donor_id for record in records if record.donor_id is not None}
        account_names: dict[int, str | None] = {}
        if donor_ids:
            account_names = {
                user_id: name
                for user_id, name in db.execute(select(User.id, User.name).where(User.id.in_(donor_ids))).all()
            }

        return build_one_time_leaderboard(records, account_names, label_normalizer_for(context.label_mode))

    @staticmethod
    def recurring_aggregates(
            db: Session,
            context: OrganizationContext,
            since: datetime | None = None,
    ) -> list[DonorAggregate]:
        """Aggregate subscriptions from the organization's subscription source."""
        source = select_source(context.is_migrated)
        groups = source.load_groups(db, context.organization_id, since=since)
        return build_recurring_leaderboard(groups, label_normalizer_for(context.label_mode))

    @staticmethod
    def compute_one_time_leaderboard(db: Session, context: OrganizationContext) -> int:
        """Recompute and persist the one-time snapshot. Returns rows written."""
        aggregates = LeaderboardService.one_time_aggregates(db, context)
        return one_time_snapshots.replace(db, context.organization_id, aggregates)

    @staticmethod
    def compute_recurring_leaderboard(db: Session, context: OrganizationContext) -> int:
        """Recompute and persist the recurring snapshot. Returns rows written."""
        aggregates = LeaderboardService.recurring_aggregates(db, context)
        return recurring_snapshots.replace(db, context.organization_id, aggregates)

    @staticmethod
    def get_one_time_leaderboard(
            db: Session,
            context: OrganizationContext,
            limit: int,
            period: str = LeaderboardPeriod.ALL,
    ) -> list[TopDonorRow]:
        """Top one-time donors.

        The whole history is read from the snapshot. Organizations that were
        never migrated fall back to a live computation while their snapshot is
        empty; for migrated ones the snapshot is the only source. A week or
        month window is always computed live, since snapshots only hold totals.
        """
        limit = max(1, min(limit, get_settings().leaderboard_max_per_page))

        since = period_start(period)
        if since is not None:
            aggregates = LeaderboardService.one_time_aggregates(db, context, since)
        else:
            aggregates = one_time_snapshots.get(db, context.organization_id)
            if not aggregates and not context.is_migrated:
                logger.debug("Empty one-time snapshot for organization %s, computing live", context.organization_id)
                aggregates = LeaderboardService.one_time_aggregates(db, context)

        return [
            TopDonorRow(
                id=row_id("one-time", aggregate.donor_label),
                rank=rank,
                donor_label=aggregate.donor_label,
                total_amount=aggregate.total_amount,
                total_amount_formatted=format_currency(aggregate.total_amount),
                donations_count=aggregate.count,
                latest_donation_at=aggregate.latest_activity_at,
            )
            for rank, aggregate in enumerate(aggregates[:limit], start=1)
        ]

    @staticmethod
    def get_recurring_leaderboard(
            db: Session,
            context: OrganizationContext,
            page: int = 1,
            per_page: int = 20,
            period: str = LeaderboardPeriod.ALL,
    ) -> Page[TopRecurringRow]:
        """Recurring supporters leaderboard, paginated; windows are computed live."""
        now = utc_now()
        since = period_start(period, now)
        if since is not None:
            aggregates = LeaderboardService.recurring_aggregates(db, context, since)
        else:
            aggregates = recurring_snapshots.get(db, context.organization_id)
            if not aggregates and not context.is_migrated:
                logger.debug("Empty recurring snapshot for organization %s, computing live", context.organization_id)
                aggregates = LeaderboardService.recurring_aggregates(db, context)

        result = paginate(aggregates, page, per_page, get_settings().leaderboard_max_per_page)
        offset = (result.meta.current_page - 1) * result.meta.per_page

        return Page(
            data=[
                TopRecurringRow(
                    id=row_id("recurring", aggregate.donor_label),
                    rank=offset + position,
                    donor_label=aggregate.donor_label,
                    total_amount=aggregate.total_amount,
                    total_amount_formatted=format_currency(aggregate.total_amount),
                    payments_count=aggregate.count,
                    subscribers_count=aggregate.subscribers_count,
                    first_payment_at=aggregate.first_activity_at,
                    duration_label=format_duration_label(aggregate.first_activity_at, now),
                )
                for position, aggregate in enumerate(result.data, start=1)
            ],
            meta=result.meta,
        )


class SponsorService:
    """Live sponsor listing, grouped and ordered in the database."""

    @staticmethod
    def _grouped_sponsors(organization_id: int, since: datetime | None = None):
        pt = PaymentTransaction
        visible = pt.is_anonymous.is_(False)
        display = func.coalesce(func.nullif(User.name, ""), func.nullif(pt.donor_name, ""))

        records = (
            select(
                sponsor_key_expression().label("sponsor_key"),
                pt.amount.label("amount"),
                pt.created_at.label("created_at"),
                case((visible, display), else_=null()).label("display_name"),
                case((visible, func.nullif(pt.donor_phone, "")), else_=null()).label("donor_phone"),
                case((visible, func.nullif(pt.donor_email, "")), else_=null()).label("donor_email"),
            )
            .select_from(pt)
            .outerjoin(User, User.id == pt.donor_id)
            .where(pt.organization_id == organization_id)
            .where(pt.status == COMPLETED_STATUS)
        )
        if since is not None:
            records = records.where(activity_column() >= since)
        records = records.subquery()

        total = func.sum(records.c.amount)
        return (
            select(
                records.c.sponsor_key,
                total.label("total_amount"),
                func.count().label("donations_count"),
                func.max(records.c.created_at).label("latest_donation_at"),
                func.max(records.c.display_name).label("display_name"),
                func.max(records.c.donor_phone).label("donor_phone"),
                func.max(records.c.donor_email).label("donor_email"),
            )
            .group_by(records.c.sponsor_key)
            .having(total > 0)
        )

    @staticmethod
    def list_sponsors(
            db: Session,
            context: OrganizationContext,
            sort: str = SponsorSort.TOP,
            page: int = 1,
            per_page: int = 20,
            period: str = LeaderboardPeriod.ALL,
    ) -> Page[SponsorRow]:
        """List sponsors with their totals, sorted by ``top`` or ``recent``.

        Ties fall back to the name chain shown for the sponsor, compared before
        contact masking, and finally to the sponsor key.
        """
        params = PaginationParams.clamped(page, per_page, get_settings().leaderboard_max_per_page)
        since = period_start(period)
        grouped = SponsorService._grouped_sponsors(context.organization_id, since).subquery()

        total_count = db.execute(select(func.count()).select_from(grouped)).scalar_one()

        name_key = func.coalesce(
            grouped.c.display_name,
            grouped.c.donor_phone,
            grouped.c.donor_email,
            literal(get_settings().anonymous_label, String),
        )
        if sort == SponsorSort.RECENT:
            ordering = [grouped.c.latest_donation_at.desc(), grouped.c.total_amount.desc()]
        else:
            ordering = [grouped.c.total_amount.desc()]
        query = (
            select(grouped)
            .order_by(*ordering, name_key.asc(), grouped.c.sponsor_key.asc())
            .offset(params.offset)
            .limit(params.per_page)
        )

        data = []
        for row in db.execute(query).all():
            total_amount = int(row.total_amount)
            data.append(
                SponsorRow(
                    sponsor_key=row.sponsor_key,
                    display_name=normalize_donor_label(
                        sponsor_display_name(row.display_name, row.donor_phone, row.donor_email)
                    ),
                    total_amount=total_amount,
                    total_amount_formatted=format_currency(total_amount),
                    donations_count=row.donations_count,
                    latest_donation_at=row.latest_donation_at,
                )
            )

        return Page(
            data=data,
            meta=create_pagination_meta(params.page, params.per_page, total_count),
        )
