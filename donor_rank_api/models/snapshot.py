"""Precomputed leaderboard rows, fully replaced per organization on recompute."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from donor_rank_api.models.base import Base, TimestampMixin


class TopOneTimeSnapshot(TimestampMixin, Base):
    __tablename__ = "organization_top_one_time_snapshots"
    __table_args__ = (
        UniqueConstraint("organization_id", "donor_label", name="uq_top_one_time_org_label"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    donor_label: Mapped[str] = mapped_column(String(255), nullable=False)
    sponsor_key: Mapped[str | None] = mapped_column(String(255))
    total_amount: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    donations_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    latest_donation_at: Mapped[datetime | None] = mapped_column(DateTime)


class TopRecurringSnapshot(TimestampMixin, Base):
    __tablename__ = "organization_top_recurring_snapshots"
    __table_args__ = (
        UniqueConstraint("organization_id", "donor_label", name="uq_top_recurring_org_label"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    donor_label: Mapped[str] = mapped_column(String(255), nullable=False)
    total_amount: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    payments_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    subscribers_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    first_payment_at: Mapped[datetime | None] = mapped_column(DateTime)
