"""Service layer for the autopayment (recurring subscription) listing."""

from sqlalchemy.orm import Session

from donor_rank_api.config import get_settings
from donor_rank_api.schemas.autopayment import AutopaymentFilters, AutopaymentRow, SubscribersCount
from donor_rank_api.schemas.common import Page, PaginationParams, create_pagination_meta
from donor_rank_api.services.aggregation import build_autopayment_row
from donor_rank_api.services.organization import OrganizationContext
from donor_rank_api.services.sources import select_source


class AutopaymentService:
    """Business logic for listing subscriptions."""

    @staticmethod
    def list_autopayments(
            db: Session,
            context: OrganizationContext,
            page: int = 1,
            per_page: int = 20,
            filters: AutopaymentFilters | None = None,
    ) -> Page[AutopaymentRow]:
        """One row per subscription, ordered by subscription key.

        Keys are counted and paginated in the database; only the charges of the
        requested page are loaded. Migrated organizations also list legacy
        subscriptions that never charged in the current system.
        """
        settings = get_settings()
        params = PaginationParams.clamped(page, per_page, settings.autopayments_max_per_page)
        period = filters.recurring_period.value if filters and filters.recurring_period else None
        source = select_source(context.is_migrated)

        total_count = source.count_keys(db, context.organization_id, period)
        keys = source.page_keys(db, context.organization_id, params.offset, params.per_page, period)
        groups = source.load_groups(db, context.organization_id, keys)

        return Page(
            data=[build_autopayment_row(group, settings.payments_preview_count) for group in groups],
            meta=create_pagination_meta(params.page, params.per_page, total_count),
        )

    @staticmethod
    def count_subscribers(db: Session, context: OrganizationContext) -> SubscribersCount:
        """Distinct subscriptions of the organization, not the number of charges."""
        source = select_source(context.is_migrated)
        return SubscribersCount(
            organization_id=context.organization_id,
            subscribers_count=source.count_keys(db, context.organization_id),
        )
