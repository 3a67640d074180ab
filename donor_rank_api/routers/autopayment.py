"""API routes for the autopayment listing."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from donor_rank_api.dependencies import DBSession, OrgContext
from donor_rank_api.rate_limit import RATE_LIMIT_DEFAULT, RATE_LIMIT_STATS, limiter
from donor_rank_api.schemas.autopayment import AutopaymentFilters, AutopaymentRow, SubscribersCount
from donor_rank_api.schemas.common import Page
from donor_rank_api.services.autopayment import AutopaymentService

router = APIRouter(prefix="/organizations/{organization_id}", tags=["autopayments"])


# noinspection PyUnusedLocal
@router.get("/autopayments", response_model=Page[AutopaymentRow])
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_autopayments(
        request: Request,
        db: DBSession,
        context: OrgContext,
        filters: Annotated[AutopaymentFilters, Depends()],
        page: Annotated[int, Query(description="Page number, clamped to at least 1")] = 1,
        per_page: Annotated[int, Query(description="Items per page, clamped to 1-100")] = 20,
) -> Page[AutopaymentRow]:
    """List subscriptions, one row each, ordered by subscription key.

    Supports filtering by:
    - recurring_period: daily, weekly or monthly
    """
    return AutopaymentService.list_autopayments(db, context, page=page, per_page=per_page, filters=filters)


# noinspection PyUnusedLocal
@router.get("/autopayments/subscribers", response_model=SubscribersCount)
@limiter.limit(RATE_LIMIT_STATS)
def count_subscribers(
        request: Request,
        db: DBSession,
        context: OrgContext,
) -> SubscribersCount:
    """Number of distinct subscriptions (supporters), not charges."""
    return AutopaymentService.count_subscribers(db, context)
