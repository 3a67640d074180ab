"""Pydantic schemas for sponsor and donor leaderboards."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SponsorSort(StrEnum):
    TOP = "top"
    RECENT = "recent"


class LeaderboardPeriod(StrEnum):
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class LeaderboardKind(StrEnum):
    ONE_TIME = "one-time"
    RECURRING = "recurring"
    ALL = "all"


class SponsorRow(BaseModel):
    """One payer in the live sponsor listing."""

    sponsor_key: str = Field(description="Grouping identity (user:, email:, phone:, name: or donation:)")
    display_name: str = Field(description="Name shown for the sponsor")
    total_amount: int = Field(description="Total contributed, minor units")
    total_amount_formatted: str = Field(description="Total contributed, display string")
    donations_count: int = Field(description="Number of completed donations")
    latest_donation_at: datetime | None = Field(description="Most recent donation timestamp")

    model_config = ConfigDict(from_attributes=True)


class TopDonorRow(BaseModel):
    """Row of the one-time donor leaderboard."""

    id: str = Field(description="Stable row identifier derived from the label")
    rank: int = Field(description="1-based position on the leaderboard")
    donor_label: str = Field(description="Normalized donor label")
    total_amount: int = Field(description="Total contributed, minor units")
    total_amount_formatted: str = Field(description="Total contributed, display string")
    donations_count: int = Field(description="Number of completed donations")
    latest_donation_at: datetime | None = Field(default=None, description="Most recent donation timestamp")


class TopRecurringRow(BaseModel):
    """Row of the recurring supporters leaderboard."""

    id: str = Field(description="Stable row identifier derived from the label")
    rank: int = Field(description="1-based position on the leaderboard")
    donor_label: str = Field(description="Normalized donor label")
    total_amount: int = Field(description="Total charged across merged subscriptions, minor units")
    total_amount_formatted: str = Field(description="Total charged, display string")
    payments_count: int = Field(description="Number of completed recurring charges")
    subscribers_count: int = Field(description="Distinct subscriptions merged into this row")
    first_payment_at: datetime | None = Field(default=None, description="Earliest charge of the merged subscriptions")
    duration_label: str = Field(description="How long the supporter has been giving, display string")


class RecomputeResult(BaseModel):
    """Outcome of a snapshot recompute for one organization."""

    organization_id: int
    one_time_rows: int | None = Field(default=None, description="Rows written to the one-time snapshot")
    recurring_rows: int | None = Field(default=None, description="Rows written to the recurring snapshot")
