"""Batch command rebuilding leaderboard snapshots.

Usage:
    donor-rank-recompute --organization-id 42 --kind recurring
    donor-rank-recompute --all-organizations

Each organization is recomputed in its own session and transaction, so one
failing organization leaves the others (and its own previous snapshot) intact.
"""

import argparse
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from donor_rank_api.config import get_settings
from donor_rank_api.dependencies import close_db, init_db, session_scope
from donor_rank_api.logging_config import configure_logging
from donor_rank_api.models.organization import Organization
from donor_rank_api.schemas.leaderboard import LeaderboardKind, RecomputeResult
from donor_rank_api.services.leaderboard import LeaderboardService
from donor_rank_api.services.organization import resolve_organization_context

logger = logging.getLogger(__name__)


def recompute_organization(db: Session, organization_id: int, kind: str = LeaderboardKind.ALL) -> RecomputeResult | None:
    """Rebuild the requested snapshots; ``None`` if the organization does not exist."""
    context = resolve_organization_context(db, organization_id)
    if context is None:
        return None

    result = RecomputeResult(organization_id=organization_id)
    if kind in (LeaderboardKind.ONE_TIME, LeaderboardKind.ALL):
        result.one_time_rows = LeaderboardService.compute_one_time_leaderboard(db, context)
    if kind in (LeaderboardKind.RECURRING, LeaderboardKind.ALL):
        result.recurring_rows = LeaderboardService.compute_recurring_leaderboard(db, context)
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Recompute donor leaderboard snapshots")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--organization-id", type=int, help="Recompute a single organization")
    target.add_argument("--all-organizations", action="store_true", help="Recompute every organization")
    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in LeaderboardKind],
        default=LeaderboardKind.ALL.value,
        help="Which snapshot to rebuild (default: all)",
    )
    return parser


def _organization_ids(all_organizations: bool, organization_id: int | None) -> list[int]:
    if not all_organizations:
        return [organization_id]
    with session_scope() as db:
        return list(db.execute(select(Organization.id).order_by(Organization.id)).scalars().all())


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    configure_logging(settings)
    init_db(settings)

    failures = 0
    try:
        for organization_id in _organization_ids(args.all_organizations, args.organization_id):
            logger.info("Recomputing %s snapshot(s) for organization %s", args.kind, organization_id)
            try:
                with session_scope() as db:
                    result = recompute_organization(db, organization_id, args.kind)
            except Exception:
                failures += 1
                logger.exception("Recompute failed for organization %s", organization_id)
                continue

            if result is None:
                failures += 1
                logger.error("Organization %s not found", organization_id)
                continue
            logger.info(
                "Organization %s done: one-time rows=%s, recurring rows=%s",
                organization_id,
                result.one_time_rows,
                result.recurring_rows,
            )
    finally:
        close_db()

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
