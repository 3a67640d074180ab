"""API routes for sponsors and donor leaderboards."""

from typing import Annotated

from fastapi import APIRouter, Query, Request

from donor_rank_api.dependencies import DBSession, OrgContext
from donor_rank_api.rate_limit import RATE_LIMIT_COMMAND, RATE_LIMIT_DEFAULT, RATE_LIMIT_STATS, limiter
from donor_rank_api.schemas.common import Page
from donor_rank_api.schemas.leaderboard import (
    LeaderboardKind,
    LeaderboardPeriod,
    RecomputeResult,
    SponsorRow,
    SponsorSort,
    TopDonorRow,
    TopRecurringRow,
)
from donor_rank_api.services.leaderboard import LeaderboardService, SponsorService

router = APIRouter(prefix="/organizations/{organization_id}", tags=["leaderboards"])


# noinspection PyUnusedLocal
@router.get("/sponsors", response_model=Page[SponsorRow])
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_sponsors(
        request: Request,
        db: DBSession,
        context: OrgContext,
        sort: Annotated[SponsorSort, Query(description="top (by total) or recent (by latest donation)")] = SponsorSort.TOP,
        page: Annotated[int, Query(description="Page number, clamped to at least 1")] = 1,
        per_page: Annotated[int, Query(description="Items per page, clamped to 1-50")] = 20,
        period: Annotated[LeaderboardPeriod, Query(description="week, month or all")] = LeaderboardPeriod.ALL,
) -> Page[SponsorRow]:
    """List everyone who paid the organization, grouped by sponsor identity.

    Anonymous donations count towards totals but never reveal a name.
    """
    return SponsorService.list_sponsors(db, context, sort=sort, page=page, per_page=per_page, period=period)


# noinspection PyUnusedLocal
@router.get("/leaderboards/one-time", response_model=list[TopDonorRow])
@limiter.limit(RATE_LIMIT_STATS)
def get_one_time_leaderboard(
        request: Request,
        db: DBSession,
        context: OrgContext,
        limit: Annotated[int, Query(description="Number of donors to return, clamped to 1-50")] = 20,
        period: Annotated[LeaderboardPeriod, Query(description="week, month or all")] = LeaderboardPeriod.ALL,
) -> list[TopDonorRow]:
    """Top donors by total contributed."""
    return LeaderboardService.get_one_time_leaderboard(db, context, limit, period=period)


# noinspection PyUnusedLocal
@router.get("/leaderboards/recurring", response_model=Page[TopRecurringRow])
@limiter.limit(RATE_LIMIT_STATS)
def get_recurring_leaderboard(
        request: Request,
        db: DBSession,
        context: OrgContext,
        page: Annotated[int, Query(description="Page number, clamped to at least 1")] = 1,
        per_page: Annotated[int, Query(description="Items per page, clamped to 1-50")] = 20,
        period: Annotated[LeaderboardPeriod, Query(description="week, month or all")] = LeaderboardPeriod.ALL,
) -> Page[TopRecurringRow]:
    """Recurring supporters ranked by total charged."""
    return LeaderboardService.get_recurring_leaderboard(db, context, page=page, per_page=per_page, period=period)


# noinspection PyUnusedLocal
@router.post("/leaderboards/recompute", response_model=RecomputeResult)
@limiter.limit(RATE_LIMIT_COMMAND)
def recompute_leaderboards(
        request: Request,
        db: DBSession,
        context: OrgContext,
        kind: Annotated[LeaderboardKind, Query(description="Which snapshot to rebuild")] = LeaderboardKind.ALL,
) -> RecomputeResult:
    """Rebuild the organization's leaderboard snapshots."""
    result = RecomputeResult(organization_id=context.organization_id)
    if kind in (LeaderboardKind.ONE_TIME, LeaderboardKind.ALL):
        result.one_time_rows = LeaderboardService.compute_one_time_leaderboard(db, context)
    if kind in (LeaderboardKind.RECURRING, LeaderboardKind.ALL):
        result.recurring_rows = LeaderboardService.compute_recurring_leaderboard(db, context)
    return result
