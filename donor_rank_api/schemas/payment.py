"""Pydantic schemas for payment-side inputs."""

import json
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

TRUTHY_RECURRING_STRINGS = ("true", "1")


class RecurringPeriod(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class RecurringMetadata(BaseModel):
    """Strict view of the loosely-typed recurring metadata bag on a payment.

    Built once at the boundary by ``from_raw`` so nothing downstream has to
    know about the different spellings the payment gateways store.
    """

    model_config = ConfigDict(frozen=True)

    is_recurring: bool = Field(default=False, description="Charge belongs to a subscription")
    period: RecurringPeriod | None = Field(default=None, description="Billing period, if known")
    saved_payment_method_id: str | None = Field(
        default=None, description="Gateway handle of the saved payment method"
    )

    @field_validator("saved_payment_method_id", mode="before")
    @classmethod
    def blank_method_id_to_none(cls, v: Any) -> str | None:
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("period", mode="before")
    @classmethod
    def unknown_period_to_none(cls, v: Any) -> RecurringPeriod | None:
        try:
            return RecurringPeriod(v)
        except (ValueError, TypeError):
            return None

    @classmethod
    def from_raw(cls, raw: Any, strict: bool = False) -> "RecurringMetadata":
        """Parse a raw bag (dict or JSON text). Anything unparsable is non-recurring.

        With ``strict`` an unparsable bag raises ``ValueError`` instead, so
        callers can tell a malformed bag from one that is simply not recurring.
        A missing bag (``None``, blank text or JSON ``null``) is never malformed.
        """
        try:
            if isinstance(raw, (str, bytes)):
                raw = json.loads(raw) if raw.strip() else None
            if raw is None:
                return cls()
            if not isinstance(raw, dict):
                raise ValueError(f"expected an object, got {type(raw).__name__}")
            return cls(
                is_recurring=_is_truthy_flag(raw.get("is_recurring"))
                or raw.get("recurring_period") is not None,
                period=raw.get("recurring_period"),
                saved_payment_method_id=raw.get("saved_payment_method_id"),
            )
        except ValueError:
            if strict:
                raise
            return cls()


def _is_truthy_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    return isinstance(value, str) and value in TRUTHY_RECURRING_STRINGS
