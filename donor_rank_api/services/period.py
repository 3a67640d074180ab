"""Reporting windows for the live leaderboards.

A payment falls into a window by its payment time, or by its creation time
when it was never marked paid. Timestamps are naive UTC, as stored.
"""

import calendar
from datetime import UTC, datetime, timedelta

from sqlalchemy import ColumnElement, func

from donor_rank_api.models.payment import PaymentTransaction
from donor_rank_api.schemas.leaderboard import LeaderboardPeriod


def utc_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def subtract_month(moment: datetime) -> datetime:
    """Same day of the previous month, clamped to that month's last day."""
    year, month = (moment.year - 1, 12) if moment.month == 1 else (moment.year, moment.month - 1)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def period_start(period: str, now: datetime | None = None) -> datetime | None:
    """Lower bound of the window, or ``None`` when the whole history counts."""
    now = now or utc_now()
    if period == LeaderboardPeriod.WEEK:
        return now - timedelta(weeks=1)
    if period == LeaderboardPeriod.MONTH:
        return subtract_month(now)
    return None


def activity_column() -> ColumnElement[datetime]:
    """SQL twin of ``aggregation.activity_at``."""
    return func.coalesce(PaymentTransaction.paid_at, PaymentTransaction.created_at)
