"""Organization and linked user account models."""

from enum import StrEnum

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from donor_rank_api.models.base import Base, TimestampMixin


class LabelMode(StrEnum):
    """How leaderboard rows are labelled for an organization."""

    DONOR = "donor"
    COHORT = "cohort"


class Organization(TimestampMixin, Base):
    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_legacy_migrated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    leaderboard_label_mode: Mapped[str] = mapped_column(
        String(20), default=LabelMode.DONOR.value, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, migrated={self.is_legacy_migrated})>"


class User(TimestampMixin, Base):
    """Registered account a donation can be linked to via ``donor_id``."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(32))
