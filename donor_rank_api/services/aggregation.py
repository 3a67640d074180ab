"""Grouping and ranking of payment records into donor aggregates.

All three aggregations share one shape: group records, derive a label for
each group, merge groups that end up with the same label, then sort. Amounts
stay integer minor units throughout; formatting happens only when rows are
rendered.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from donor_rank_api.models.legacy_autopayment import LegacyAutopayment
from donor_rank_api.models.payment import PaymentTransaction
from donor_rank_api.schemas.autopayment import AutopaymentPayment, AutopaymentRow
from donor_rank_api.services.formatting import (
    format_currency,
    mask_email,
    mask_phone,
    mask_subscription_key,
    payment_method_label,
    recurring_period_label,
)
from donor_rank_api.services.identity import resolve_identity
from donor_rank_api.services.labels import LabelNormalizer, is_placeholder, normalize_donor_label
from donor_rank_api.services.subscription import (
    COMPLETED_STATUS,
    extract_subscription_key,
    parse_recurring_metadata,
)

DEFAULT_LEGACY_PERIOD = "monthly"


@dataclass
class DonorAggregate:
    """One leaderboard row before presentation."""

    donor_label: str
    total_amount: int = 0
    count: int = 0  # donations (one-time) or charges (recurring)
    subscribers_count: int = 0
    latest_activity_at: datetime | None = None
    first_activity_at: datetime | None = None
    sponsor_key: str | None = None


@dataclass
class SubscriptionGroup:
    """All completed charges sharing one saved payment method.

    ``payments`` is kept in creation order, oldest first.
    """

    subscription_key: str
    payments: list[PaymentTransaction] = field(default_factory=list)
    legacy: LegacyAutopayment | None = None

    @property
    def representative(self) -> PaymentTransaction | None:
        return self.payments[0] if self.payments else None

    @property
    def newest_first(self) -> list[PaymentTransaction]:
        return sorted(self.payments, key=lambda p: (activity_at(p), p.id or 0), reverse=True)

    @property
    def total_amount(self) -> int:
        if self.payments:
            return sum(p.amount for p in self.payments)
        return self.legacy.amount if self.legacy is not None else 0

    @property
    def first_activity_at(self) -> datetime | None:
        """Earliest charge, or the legacy start date when that is earlier."""
        first = min((activity_at(p) for p in self.payments), default=None)
        return _earliest(first, self.legacy.first_payment_at if self.legacy is not None else None)


def activity_at(payment: PaymentTransaction) -> datetime:
    return payment.paid_at or payment.created_at


def _creation_order(payment: PaymentTransaction) -> tuple[datetime, int]:
    return payment.created_at, payment.id or 0


def _latest(current: datetime | None, candidate: datetime | None) -> datetime | None:
    if current is None:
        return candidate
    if candidate is None:
        return current
    return max(current, candidate)


def _earliest(current: datetime | None, candidate: datetime | None) -> datetime | None:
    if current is None:
        return candidate
    if candidate is None:
        return current
    return min(current, candidate)


def sort_aggregates(aggregates: Iterable[DonorAggregate]) -> list[DonorAggregate]:
    """Total descending, label ascending as the deterministic tie-break."""
    return sorted(aggregates, key=lambda a: (-a.total_amount, a.donor_label))


# One-time sponsors


def sponsor_display_name(
        display_name: str | None,
        donor_phone: str | None,
        donor_email: str | None,
) -> str | None:
    """Best available name for a sponsor, falling back to masked contacts."""
    if display_name:
        return display_name
    if donor_phone:
        return mask_phone(donor_phone)
    if donor_email:
        return mask_email(donor_email)
    return None


def _group_display_name(
        members: Sequence[PaymentTransaction],
        account_names: Mapping[int, str | None],
) -> str | None:
    # Mirrors the SQL used by the live sponsor listing: MAX over visible records.
    names: list[str] = []
    phones: list[str] = []
    emails: list[str] = []
    for record in members:
        if record.is_anonymous:
            continue
        account_name = account_names.get(record.donor_id) if record.donor_id is not None else None
        name = account_name or record.donor_name
        if name:
            names.append(name)
        if record.donor_phone:
            phones.append(record.donor_phone)
        if record.donor_email:
            emails.append(record.donor_email)
    return sponsor_display_name(
        max(names) if names else None,
        max(phones) if phones else None,
        max(emails) if emails else None,
    )


def build_one_time_leaderboard(
        records: Iterable[PaymentTransaction],
        account_names: Mapping[int, str | None] | None = None,
        normalizer: LabelNormalizer = normalize_donor_label,
) -> list[DonorAggregate]:
    """Group completed records by sponsor identity and rank them by total.

    Identities with a non-positive total are dropped. Identities that resolve
    to the same label (all anonymous donations, for instance) merge into one
    row; the row keeps the identity of its largest contributor.
    """
    account_names = account_names or {}
    groups: dict[str, list[PaymentTransaction]] = defaultdict(list)
    for record in records:
        if record.status == COMPLETED_STATUS:
            groups[resolve_identity(record)].append(record)

    merged: dict[str, DonorAggregate] = {}
    best_member: dict[str, tuple[int, str]] = {}
    for sponsor_key in sorted(groups):
        members = groups[sponsor_key]
        total = sum(record.amount for record in members)
        if total <= 0:
            continue
        label = normalizer(_group_display_name(members, account_names))
        if label is None:
            continue

        aggregate = merged.setdefault(label, DonorAggregate(donor_label=label))
        aggregate.total_amount += total
        aggregate.count += len(members)
        aggregate.subscribers_count += 1
        aggregate.latest_activity_at = _latest(
            aggregate.latest_activity_at, max(record.created_at for record in members)
        )
        if label not in best_member or total > best_member[label][0]:
            best_member[label] = (total, sponsor_key)
            aggregate.sponsor_key = sponsor_key

    return sort_aggregates(merged.values())


# Recurring subscriptions


def group_subscriptions(
        payments: Iterable[PaymentTransaction],
        legacy_index: Mapping[str, LegacyAutopayment] | None = None,
        keys: Sequence[str] | None = None,
) -> list[SubscriptionGroup]:
    """Bucket eligible payments by subscription key.

    ``keys`` fixes which groups are returned and in what order; by default every
    key seen in the payments or the legacy index is returned, sorted. A legacy
    key without any payment still yields a group.
    """
    legacy_index = legacy_index or {}
    buckets: dict[str, list[PaymentTransaction]] = defaultdict(list)
    for payment in payments:
        key = extract_subscription_key(payment)
        if key is not None:
            buckets[key].append(payment)

    if keys is None:
        keys = sorted(set(buckets) | set(legacy_index))

    groups = []
    for key in keys:
        legacy = legacy_index.get(key)
        if key not in buckets and legacy is None:
            continue
        groups.append(
            SubscriptionGroup(
                subscription_key=key,
                payments=sorted(buckets.get(key, []), key=_creation_order),
                legacy=legacy,
            )
        )
    return groups


def subscription_donor_name(group: SubscriptionGroup) -> str | None:
    """Raw donor name for a subscription; the legacy title/phone take priority."""
    legacy = group.legacy
    if legacy is not None:
        title = (legacy.title or "").strip()
        if not is_placeholder(title):
            return title
        if legacy.phone_number:
            return mask_phone(legacy.phone_number)

    for payment in group.newest_first:
        if not payment.is_anonymous and payment.donor_name:
            return payment.donor_name
    return None


def build_recurring_leaderboard(
        groups: Iterable[SubscriptionGroup],
        normalizer: LabelNormalizer = normalize_donor_label,
) -> list[DonorAggregate]:
    """Rank recurring supporters by total charged.

    Subscriptions whose donor labels normalize identically merge into one row;
    ``subscribers_count`` counts the merged subscriptions, not the charges.
    """
    merged: dict[str, DonorAggregate] = {}
    for group in groups:
        label = normalizer(subscription_donor_name(group))
        if label is None:
            continue
        aggregate = merged.setdefault(label, DonorAggregate(donor_label=label))
        aggregate.total_amount += group.total_amount
        aggregate.count += len(group.payments)
        aggregate.subscribers_count += 1
        if group.payments:
            aggregate.latest_activity_at = _latest(
                aggregate.latest_activity_at, max(activity_at(p) for p in group.payments)
            )
        aggregate.first_activity_at = _earliest(aggregate.first_activity_at, group.first_activity_at)
    return sort_aggregates(merged.values())


def build_autopayment_row(group: SubscriptionGroup, preview_count: int) -> AutopaymentRow:
    """Render one subscription for the autopayment listing."""
    representative = group.representative
    legacy = group.legacy

    if representative is not None:
        metadata = parse_recurring_metadata(representative)
        amount = representative.amount
        period = metadata.period.value if metadata.period else None
        if period is None and legacy is not None:
            period = legacy.recurring_period
        method_slug = representative.payment_method_slug
        first_payment_at = activity_at(representative)
        if legacy is not None and legacy.first_payment_at is not None:
            first_payment_at = min(first_payment_at, legacy.first_payment_at)
    elif legacy is not None:
        amount = legacy.amount
        period = legacy.recurring_period or DEFAULT_LEGACY_PERIOD
        method_slug = legacy.payment_method_slug
        first_payment_at = legacy.first_payment_at
    else:
        raise ValueError(f"Subscription {group.subscription_key!r} has neither payments nor a legacy record")

    preview = [
        AutopaymentPayment(date=activity_at(payment), label=format_currency(payment.amount))
        for payment in group.newest_first[:preview_count]
    ]

    return AutopaymentRow(
        title=normalize_donor_label(subscription_donor_name(group)),
        amount=amount,
        amount_formatted=format_currency(amount),
        recurring_period=period,
        recurring_period_label=recurring_period_label(period),
        payment_method_slug=method_slug,
        payment_method_label=payment_method_label(method_slug),
        payments=preview,
        payments_count=len(group.payments),
        first_payment_at=first_payment_at,
        subscription_key_masked=mask_subscription_key(group.subscription_key),
    )
