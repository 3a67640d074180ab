"""Autopayments carried over from the legacy system for migrated organizations."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from donor_rank_api.models.base import Base


class LegacyAutopayment(Base):
    """Subscription known to the legacy system.

    Rows exist even when the subscription produced no payment in the current
    system; listings must still surface them.
    """

    __tablename__ = "organization_autopayments"
    __table_args__ = (
        UniqueConstraint("organization_id", "subscription_key", name="uq_org_autopayments_org_key"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subscription_key: Mapped[str] = mapped_column(String(191), nullable=False, index=True)
    title: Mapped[str | None] = mapped_column(String(255))
    phone_number: Mapped[str | None] = mapped_column(String(32))
    amount: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    recurring_period: Mapped[str | None] = mapped_column(String(20), index=True)
    payment_method_slug: Mapped[str | None] = mapped_column(String(50))
    first_payment_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())

    def __repr__(self) -> str:
        return f"<LegacyAutopayment(org={self.organization_id}, key={self.subscription_key!r})>"
