"""Presentation helpers: currency, masking and human-readable labels.

Everything here produces display strings only. Nothing formatted here is
parsed back or fed into aggregation.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from donor_rank_api.config import get_settings
from donor_rank_api.schemas.payment import RecurringPeriod

REDACTION_SHORT = "****"
REDACTION_LONG = "***"
SHORT_KEY_LENGTH = 8

RECURRING_PERIOD_LABELS = {
    RecurringPeriod.DAILY: "Daily",
    RecurringPeriod.WEEKLY: "Weekly",
    RecurringPeriod.MONTHLY: "Monthly",
}

PAYMENT_METHOD_LABELS = {
    "sbp": "SBP",
    "bankcard": "Online",
    "bank_card": "Online",
    "card": "Online",
    "sberbank": "SberPay",
    "sberpay": "SberPay",
    "tinkoff_bank": "T-Pay",
    "tpay": "T-Pay",
}


def format_currency(amount_minor: int, currency_symbol: str | None = None) -> str:
    """Format minor units as whole major units, e.g. ``123456789`` -> ``"1 234 568 ₽"``."""
    if currency_symbol is None:
        currency_symbol = get_settings().currency_symbol
    major = (Decimal(int(amount_minor)) / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{int(major):,}".replace(",", " ") + f" {currency_symbol}"


def mask_subscription_key(key: str) -> str:
    """Hide a subscription key, revealing at most its first and last four characters."""
    if len(key) <= SHORT_KEY_LENGTH:
        return REDACTION_SHORT + key[-4:]
    return key[:4] + REDACTION_LONG + key[-4:]


def mask_phone(phone: str) -> str:
    if len(phone) < 7:
        return phone
    return f"{phone[:3]} *** ** {phone[-2:]}"


def mask_email(email: str) -> str:
    name, sep, domain = email.partition("@")
    if not sep or "@" in domain:
        return email
    if len(name) <= 2:
        return email
    return f"{name[:2]}***@{domain}"


def recurring_period_label(period: str | None) -> str:
    try:
        return RECURRING_PERIOD_LABELS[RecurringPeriod(period)]
    except ValueError:
        return "—"


def payment_method_label(slug: str | None) -> str:
    if not slug:
        return "—"
    return PAYMENT_METHOD_LABELS.get(slug, slug[:1].upper() + slug[1:])


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def full_months_between(start: datetime, end: datetime) -> int:
    months = (end.year - start.year) * 12 + end.month - start.month
    if (end.day, end.time()) < (start.day, start.time()):
        months -= 1
    return max(months, 0)


def format_duration_label(first_payment_at: datetime | None, now: datetime) -> str:
    """How long a supporter has been giving, e.g. ``"In total for 1 year 2 months"``."""
    if first_payment_at is None:
        return "In total"

    years, months = divmod(full_months_between(first_payment_at, now), 12)
    parts = []
    if years:
        parts.append(_plural(years, "year"))
    if months:
        parts.append(_plural(months, "month"))
    if not parts:
        return "In total for less than a month"
    return "In total for " + " ".join(parts)
