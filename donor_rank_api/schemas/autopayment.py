"""Pydantic schemas for the autopayment listing."""

from datetime import datetime

from pydantic import BaseModel, Field

from donor_rank_api.schemas.payment import RecurringPeriod


class AutopaymentFilters(BaseModel):
    """Query parameters for filtering autopayments."""

    recurring_period: RecurringPeriod | None = Field(default=None, description="Filter by billing period")


class AutopaymentPayment(BaseModel):
    date: datetime | None = Field(description="When the charge was paid (or created)")
    label: str = Field(description="Formatted charge amount")


class AutopaymentRow(BaseModel):
    """One subscription, shown on its own row even when a donor holds several."""

    title: str = Field(description="Donor label for the subscription")
    amount: int = Field(description="Subscription amount, minor units")
    amount_formatted: str = Field(description="Subscription amount, display string")
    recurring_period: str | None = Field(description="Billing period")
    recurring_period_label: str = Field(description="Billing period, display string")
    payment_method_slug: str | None = Field(description="Payment method used for the charges")
    payment_method_label: str = Field(description="Payment method, display string")
    payments: list[AutopaymentPayment] = Field(description="Latest charges, newest first (preview)")
    payments_count: int = Field(description="Total number of charges, beyond the preview")
    first_payment_at: datetime | None = Field(description="First charge of the subscription")
    subscription_key_masked: str = Field(description="Masked subscription key")


class SubscribersCount(BaseModel):
    organization_id: int
    subscribers_count: int = Field(description="Distinct recurring subscriptions")
