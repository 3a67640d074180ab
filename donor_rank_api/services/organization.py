"""Organization lookups resolved once per request or batch job."""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from donor_rank_api.models.organization import LabelMode, Organization


@dataclass(frozen=True)
class OrganizationContext:
    """What the aggregation paths need to know about an organization."""

    organization_id: int
    is_migrated: bool = False
    label_mode: str = LabelMode.DONOR.value


def resolve_organization_context(db: Session, organization_id: int) -> OrganizationContext | None:
    """Load the organization's flags, or ``None`` if it does not exist."""
    organization = db.execute(
        select(Organization).where(Organization.id == organization_id)
    ).scalar_one_or_none()
    if organization is None:
        return None
    return OrganizationContext(
        organization_id=organization.id,
        is_migrated=organization.is_legacy_migrated,
        label_mode=organization.leaderboard_label_mode,
    )


def is_migrated_organization(db: Session, organization_id: int) -> bool:
    migrated = db.execute(
        select(Organization.is_legacy_migrated).where(Organization.id == organization_id)
    ).scalar_one_or_none()
    return bool(migrated)
