"""Subscription key extraction for recurring payments."""

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from donor_rank_api.schemas.payment import RecurringMetadata

if TYPE_CHECKING:
    from donor_rank_api.models.payment import PaymentTransaction

logger = logging.getLogger(__name__)

COMPLETED_STATUS = "completed"


def parse_recurring_metadata(record: "PaymentTransaction") -> RecurringMetadata:
    """Parse the record's metadata bag; malformed bags come back non-recurring."""
    try:
        return RecurringMetadata.from_raw(record.recurring_metadata, strict=True)
    except ValueError:
        logger.debug("Ignoring malformed recurring metadata on payment %s", record.id)
        return RecurringMetadata()


def is_recurring_eligible(record: "PaymentTransaction", metadata: RecurringMetadata | None = None) -> bool:
    """A completed, recurring charge made with a saved payment method."""
    if record.status != COMPLETED_STATUS:
        return False
    metadata = metadata or parse_recurring_metadata(record)
    return metadata.is_recurring and metadata.saved_payment_method_id is not None


def extract_subscription_key(record: "PaymentTransaction") -> str | None:
    """Return the saved payment method id that identifies the record's subscription.

    The saved method is the only handle that is stable across charge attempts;
    the recurring flag and period alone do not tell subscriptions apart.
    """
    metadata = parse_recurring_metadata(record)
    if not is_recurring_eligible(record, metadata):
        return None
    return metadata.saved_payment_method_id


def subscription_columns(metadata: RecurringMetadata) -> tuple[str | None, str | None]:
    """Values for the denormalized ``subscription_key`` / ``recurring_period`` columns.

    Only the metadata decides them. The status changes after the row is
    written, so every query reading these columns filters on it separately.
    """
    key = metadata.saved_payment_method_id if metadata.is_recurring else None
    period = metadata.period.value if metadata.period else None
    return key, period


def derive_subscription_columns(record: "PaymentTransaction") -> tuple[str | None, str | None]:
    return subscription_columns(parse_recurring_metadata(record))


def count_distinct_subscribers(records: Iterable["PaymentTransaction"]) -> int:
    """Count supporters by distinct subscription key, not by number of charges."""
    keys = {extract_subscription_key(record) for record in records}
    keys.discard(None)
    return len(keys)
