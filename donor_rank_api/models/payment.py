"""Payment transactions produced by the upstream payment subsystem."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, ForeignKey, Index, String, event, func
from sqlalchemy.orm import Mapped, mapped_column

from donor_rank_api.models.base import Base
from donor_rank_api.schemas.payment import RecurringMetadata
from donor_rank_api.services.subscription import derive_subscription_columns, subscription_columns


class PaymentStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"
    REFUNDED = "refunded"


def _inserted_columns(context) -> tuple[str | None, str | None]:
    raw = context.get_current_parameters().get("recurring_metadata")
    return subscription_columns(RecurringMetadata.from_raw(raw))


def _default_subscription_key(context) -> str | None:
    return _inserted_columns(context)[0]


def _default_recurring_period(context) -> str | None:
    return _inserted_columns(context)[1]


class PaymentTransaction(Base):
    """A single charge attempt.

    ``subscription_key`` and ``recurring_period`` are derived from
    ``recurring_metadata`` alone, never from the status, so recurring grouping
    can run in SQL without engine-specific JSON extraction. Inserts fill them
    through column defaults (Core and ORM alike); ORM updates re-derive them in
    the mapper hooks below.
    """

    __tablename__ = "payment_transactions"
    __table_args__ = (
        Index("ix_payment_transactions_org_status", "organization_id", "status"),
        Index("ix_payment_transactions_org_subscription", "organization_id", "subscription_key"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.PENDING.value, nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)  # minor units
    currency: Mapped[str] = mapped_column(String(3), default="RUB", nullable=False)

    donor_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
    donor_name: Mapped[str | None] = mapped_column(String(255))
    donor_email: Mapped[str | None] = mapped_column(String(255))
    donor_phone: Mapped[str | None] = mapped_column(String(32))
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    payment_method_slug: Mapped[str | None] = mapped_column(String(50))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), default=func.now(), nullable=False
    )

    # dict from the gateways, occasionally raw JSON text from imports
    recurring_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    subscription_key: Mapped[str | None] = mapped_column(String(191), default=_default_subscription_key)
    recurring_period: Mapped[str | None] = mapped_column(String(20), default=_default_recurring_period)

    def __repr__(self) -> str:
        return f"<PaymentTransaction(id={self.id}, status={self.status}, amount={self.amount})>"


@event.listens_for(PaymentTransaction, "before_insert")
@event.listens_for(PaymentTransaction, "before_update")
def _sync_subscription_columns(_mapper, _connection, target: PaymentTransaction) -> None:
    target.subscription_key, target.recurring_period = derive_subscription_columns(target)
