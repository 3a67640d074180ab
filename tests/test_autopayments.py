from datetime import datetime

from conftest import recurring

from donor_rank_api.schemas.autopayment import AutopaymentFilters
from donor_rank_api.schemas.payment import RecurringPeriod
from donor_rank_api.services.autopayment import AutopaymentService
from donor_rank_api.services.organization import resolve_organization_context


def _context(db, organization):  # type: ignore[no-untyped-def]
    return resolve_organization_context(db, organization.id)


def test_legacy_subscription_without_payments_is_listed(db, make_org, make_legacy) -> None:
    organization = make_org(is_legacy_migrated=True)
    make_legacy(organization, "legacy_42", 750, title="Old Friend", first_payment_at=datetime(2019, 5, 1))

    page = AutopaymentService.list_autopayments(db, _context(db, organization))

    assert page.meta.total == 1
    row = page.data[0]
    assert row.title == "Old Friend"
    assert row.amount == 750
    assert row.amount_formatted == "8 ₽"
    assert row.payments == []
    assert row.payments_count == 0
    assert row.recurring_period == "monthly"
    assert row.first_payment_at == datetime(2019, 5, 1)
    assert row.subscription_key_masked == "lega***y_42"


def test_legacy_rows_are_ignored_for_current_organizations(db, make_org, make_legacy) -> None:
    organization = make_org(is_legacy_migrated=False)
    make_legacy(organization, "legacy_42", 750)

    page = AutopaymentService.list_autopayments(db, _context(db, organization))

    assert page.data == []
    assert page.meta.total == 0
    assert page.meta.last_page == 1


def test_history_is_capped_but_counted(db, make_org, make_payment) -> None:
    organization = make_org()
    payments = [
        make_payment(organization, 50000 + i, donor_name="Ann", payment_method_slug="sbp",
                     recurring_metadata=recurring("pm_ann_card_0001"))
        for i in range(12)
    ]

    row = AutopaymentService.list_autopayments(db, _context(db, organization)).data[0]

    assert row.payments_count == 12
    assert len(row.payments) == 10
    assert row.payments[0].date == payments[-1].created_at
    assert row.first_payment_at == payments[0].created_at
    assert row.amount == 50000
    assert row.payment_method_label == "SBP"
    assert row.recurring_period_label == "Monthly"


def test_rows_are_ordered_by_key_and_never_merged(db, make_org, make_payment) -> None:
    organization = make_org()
    for key in ("pm_c", "pm_a", "pm_b"):
        make_payment(organization, 1000, donor_name="Ann", recurring_metadata=recurring(key))

    context = _context(db, organization)
    first = AutopaymentService.list_autopayments(db, context, page=1, per_page=2)
    second = AutopaymentService.list_autopayments(db, context, page=2, per_page=2)

    assert [row.subscription_key_masked for row in first.data + second.data] == ["****pm_a", "****pm_b", "****pm_c"]
    assert {row.title for row in first.data + second.data} == {"Ann"}
    assert (first.meta.total, first.meta.last_page) == (3, 2)


def test_filter_by_period(db, make_org, make_payment, make_legacy) -> None:
    organization = make_org(is_legacy_migrated=True)
    make_payment(organization, 1000, recurring_metadata=recurring("pm_weekly", period="weekly"))
    make_payment(organization, 1000, recurring_metadata=recurring("pm_monthly", period="monthly"))
    make_legacy(organization, "legacy_weekly", 300, recurring_period="weekly")

    page = AutopaymentService.list_autopayments(
        db, _context(db, organization), filters=AutopaymentFilters(recurring_period=RecurringPeriod.WEEKLY)
    )

    assert page.meta.total == 2
    assert {row.recurring_period for row in page.data} == {"weekly"}


def test_legacy_without_period_is_filtered_as_monthly(db, make_org, make_payment, make_legacy) -> None:
    organization = make_org(is_legacy_migrated=True)
    make_legacy(organization, "legacy_42", 750)
    make_legacy(organization, "legacy_weekly", 300, recurring_period="weekly")
    make_payment(organization, 1000, recurring_metadata=recurring("pm_monthly", period="monthly"))
    context = _context(db, organization)

    monthly = AutopaymentService.list_autopayments(
        db, context, filters=AutopaymentFilters(recurring_period=RecurringPeriod.MONTHLY)
    )
    weekly = AutopaymentService.list_autopayments(
        db, context, filters=AutopaymentFilters(recurring_period=RecurringPeriod.WEEKLY)
    )

    assert monthly.meta.total == 2
    assert {row.subscription_key_masked for row in monthly.data} == {"lega***y_42", "pm_m***thly"}
    assert {row.recurring_period for row in monthly.data} == {"monthly"}
    assert [row.subscription_key_masked for row in weekly.data] == ["lega***ekly"]


def test_legacy_record_and_payments_share_one_row(db, make_org, make_payment, make_legacy) -> None:
    organization = make_org(is_legacy_migrated=True)
    make_legacy(organization, "pm_shared", 1000, title="Иван Петров", first_payment_at=datetime(2020, 1, 1))
    make_payment(organization, 1000, donor_name="Card Holder", recurring_metadata=recurring("pm_shared"))

    page = AutopaymentService.list_autopayments(db, _context(db, organization))

    assert page.meta.total == 1
    assert page.data[0].title == "Иван Петров"
    assert page.data[0].payments_count == 1
    assert page.data[0].first_payment_at == datetime(2020, 1, 1)


def test_per_page_is_clamped_to_hundred(db, make_org) -> None:
    organization = make_org()
    page = AutopaymentService.list_autopayments(db, _context(db, organization), page=0, per_page=1000)
    assert (page.meta.current_page, page.meta.per_page) == (1, 100)


def test_subscribers_are_distinct_keys(db, make_org, make_payment) -> None:
    organization = make_org()
    make_payment(organization, 1000, recurring_metadata=recurring("pm_123"))
    make_payment(organization, 1000, recurring_metadata=recurring("pm_123"))
    make_payment(organization, 2000, recurring_metadata=recurring("pm_999"))
    make_payment(organization, 2000, status="failed", recurring_metadata=recurring("pm_failed"))

    result = AutopaymentService.count_subscribers(db, _context(db, organization))

    assert result.subscribers_count == 2
