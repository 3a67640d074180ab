import hashlib
from datetime import timedelta

from conftest import recurring
from sqlalchemy import insert, update

from donor_rank_api.models import PaymentTransaction
from donor_rank_api.services.autopayment import AutopaymentService
from donor_rank_api.services.leaderboard import LeaderboardService, SponsorService
from donor_rank_api.services.organization import is_migrated_organization, resolve_organization_context
from donor_rank_api.services.period import utc_now

ANONYMOUS = "Anonymous donation"


def _context(db, organization):  # type: ignore[no-untyped-def]
    return resolve_organization_context(db, organization.id)


def test_context_carries_flags(db, make_org) -> None:
    organization = make_org(is_legacy_migrated=True, leaderboard_label_mode="cohort")

    context = _context(db, organization)

    assert context.is_migrated is True
    assert context.label_mode == "cohort"
    assert is_migrated_organization(db, organization.id) is True
    assert resolve_organization_context(db, 9999) is None
    assert is_migrated_organization(db, 9999) is False


def test_compute_and_read_one_time_leaderboard(db, make_org, make_payment) -> None:
    organization = make_org()
    make_payment(organization, 50000, donor_email="a@x.com")
    make_payment(organization, 30000, donor_email="A@X.com")
    make_payment(organization, 10000, donor_name="")
    context = _context(db, organization)

    assert LeaderboardService.compute_one_time_leaderboard(db, context) == 2
    rows = LeaderboardService.get_one_time_leaderboard(db, context, limit=10)

    assert [(row.rank, row.donor_label, row.total_amount) for row in rows] == [
        (1, "a@x.com", 80000),
        (2, ANONYMOUS, 10000),
    ]
    assert rows[0].total_amount_formatted == "800 ₽"
    assert rows[0].donations_count == 2
    assert rows[0].id == "one-time:" + hashlib.md5(b"a@x.com").hexdigest()


def test_one_time_limit_is_clamped(db, make_org, make_payment) -> None:
    organization = make_org()
    for i in range(60):
        make_payment(organization, 100 + i, donor_name=f"Donor {i:02d}")
    context = _context(db, organization)

    assert len(LeaderboardService.get_one_time_leaderboard(db, context, limit=0)) == 1
    assert len(LeaderboardService.get_one_time_leaderboard(db, context, limit=500)) == 50


def test_current_organization_falls_back_to_live_when_snapshot_is_empty(db, make_org, make_payment) -> None:
    organization = make_org()
    make_payment(organization, 1000, donor_name="Ann")

    rows = LeaderboardService.get_one_time_leaderboard(db, _context(db, organization), limit=10)

    assert [row.donor_label for row in rows] == ["Ann"]


def test_migrated_organization_reads_snapshot_only(db, make_org, make_payment) -> None:
    organization = make_org(is_legacy_migrated=True)
    make_payment(organization, 1000, donor_name="Ann", recurring_metadata=recurring("pm_1"))
    context = _context(db, organization)

    assert LeaderboardService.get_one_time_leaderboard(db, context, limit=10) == []
    assert LeaderboardService.get_recurring_leaderboard(db, context).data == []

    LeaderboardService.compute_recurring_leaderboard(db, context)
    assert [row.donor_label for row in LeaderboardService.get_recurring_leaderboard(db, context).data] == ["Ann"]


def test_recurring_leaderboard_blends_legacy_subscriptions(db, make_org, make_payment, make_legacy) -> None:
    organization = make_org(is_legacy_migrated=True)
    make_payment(organization, 1000, donor_name="Ann", recurring_metadata=recurring("pm_123"))
    make_payment(organization, 1000, donor_name="Ann", recurring_metadata=recurring("pm_123"))
    make_payment(organization, 2000, donor_name="Bob", recurring_metadata=recurring("pm_999"))
    make_legacy(organization, "legacy_42", 750, title="Old Friend")
    context = _context(db, organization)

    assert LeaderboardService.compute_recurring_leaderboard(db, context) == 3
    page = LeaderboardService.get_recurring_leaderboard(db, context, page=1, per_page=20)

    assert [(row.rank, row.donor_label, row.total_amount, row.subscribers_count) for row in page.data] == [
        (1, "Ann", 2000, 1),
        (2, "Bob", 2000, 1),
        (3, "Old Friend", 750, 1),
    ]
    assert page.data[0].payments_count == 2
    assert page.data[0].id.startswith("recurring:")


def test_recurring_ranks_continue_across_pages(db, make_org, make_payment) -> None:
    organization = make_org()
    for i in range(5):
        make_payment(organization, 1000 * (i + 1), donor_name=f"Donor {i}", recurring_metadata=recurring(f"pm_{i}"))
    context = _context(db, organization)
    LeaderboardService.compute_recurring_leaderboard(db, context)

    second = LeaderboardService.get_recurring_leaderboard(db, context, page=2, per_page=2)

    assert [row.rank for row in second.data] == [3, 4]
    assert [row.donor_label for row in second.data] == ["Donor 2", "Donor 1"]
    assert (second.meta.total, second.meta.last_page) == (5, 3)


def test_cohort_organization_leaderboard(db, make_org, make_payment) -> None:
    organization = make_org(leaderboard_label_mode="cohort")
    make_payment(organization, 1000, donor_name="Выпуск 2003 г.")
    make_payment(organization, 500, donor_name="Class of 2003")
    make_payment(organization, 9000, donor_name="Ann")

    rows = LeaderboardService.get_one_time_leaderboard(db, _context(db, organization), limit=10)

    assert [(row.donor_label, row.total_amount) for row in rows] == [("Class of 2003", 1500)]


def test_sponsors_are_grouped_in_sql(db, make_org, make_user, make_payment) -> None:
    organization = make_org()
    account = make_user("Current Name")
    make_payment(organization, 50000, donor_email="a@x.com")
    make_payment(organization, 30000, donor_email="A@X.com")
    make_payment(organization, 10000, donor_name="")
    make_payment(organization, 20000, donor_id=account.id, donor_name="Old Name")
    make_payment(organization, 99999, donor_name="Pending", status="pending")
    make_payment(organization, 40000, donor_name="Hidden", is_anonymous=True)

    page = SponsorService.list_sponsors(db, _context(db, organization), sort="top")

    assert [(row.sponsor_key, row.display_name, row.total_amount) for row in page.data] == [
        ("email:a@x.com", "a@x.com", 80000),
        ("name:Hidden", ANONYMOUS, 40000),
        (f"user:{account.id}", "Current Name", 20000),
        ("donation:3", ANONYMOUS, 10000),
    ]
    assert page.meta.total == 4
    assert page.data[0].donations_count == 2
    assert page.data[0].total_amount_formatted == "800 ₽"


def test_sponsors_recent_sort_and_pagination(db, make_org, make_payment) -> None:
    organization = make_org()
    make_payment(organization, 900, donor_name="Early Big")
    make_payment(organization, 100, donor_name="Late Small")
    make_payment(organization, 500, donor_name="Latest")
    context = _context(db, organization)

    recent = SponsorService.list_sponsors(db, context, sort="recent", page=1, per_page=2)
    rest = SponsorService.list_sponsors(db, context, sort="recent", page=2, per_page=2)

    assert [row.display_name for row in recent.data + rest.data] == ["Latest", "Late Small", "Early Big"]
    assert recent.meta.last_page == 2


def test_sponsors_with_masked_contacts(db, make_org, make_payment) -> None:
    organization = make_org()
    make_payment(organization, 300, donor_phone="+79991234567")

    page = SponsorService.list_sponsors(db, _context(db, organization))

    assert page.data[0].display_name == "+79 *** ** 67"


def test_no_payments_is_an_empty_page(db, make_org) -> None:
    context = _context(db, make_org())

    sponsors = SponsorService.list_sponsors(db, context)
    recurring_page = LeaderboardService.get_recurring_leaderboard(db, context)

    for page in (sponsors, recurring_page):
        assert page.data == []
        assert (page.meta.total, page.meta.last_page) == (0, 1)


def test_status_change_outside_the_orm_reaches_recurring_views(db, make_org, make_payment) -> None:
    organization = make_org()
    payment = make_payment(organization, 1000, status="pending", donor_name="Ann", recurring_metadata=recurring("pm_1"))
    context = _context(db, organization)
    assert LeaderboardService.recurring_aggregates(db, context) == []

    db.execute(update(PaymentTransaction).where(PaymentTransaction.id == payment.id).values(status="completed"))
    db.commit()

    rows = LeaderboardService.recurring_aggregates(db, context)
    assert [(row.donor_label, row.total_amount) for row in rows] == [("Ann", 1000)]
    assert AutopaymentService.list_autopayments(db, context).meta.total == 1
    assert AutopaymentService.count_subscribers(db, context).subscribers_count == 1


def test_core_inserted_payment_reaches_recurring_views(db, make_org) -> None:
    organization = make_org()
    db.execute(
        insert(PaymentTransaction.__table__).values(
            organization_id=organization.id,
            amount=2500,
            status="completed",
            donor_name="Bob",
            recurring_metadata=recurring("pm_bob", period="weekly"),
        )
    )
    db.commit()
    context = _context(db, organization)

    rows = LeaderboardService.recurring_aggregates(db, context)

    assert [(row.donor_label, row.total_amount) for row in rows] == [("Bob", 2500)]
    assert AutopaymentService.list_autopayments(db, context).data[0].recurring_period == "weekly"


def test_sponsors_and_one_time_leaderboard_by_period(db, make_org, make_payment) -> None:
    organization = make_org(is_legacy_migrated=True)
    now = utc_now()
    make_payment(organization, 100, donor_name="This Week", created_at=now - timedelta(days=2))
    make_payment(organization, 200, donor_name="This Month", created_at=now - timedelta(days=40),
                 paid_at=now - timedelta(days=20))
    make_payment(organization, 400, donor_name="Long Ago", created_at=now - timedelta(days=90))
    context = _context(db, organization)

    def sponsors(period: str) -> list[str]:
        return [row.display_name for row in SponsorService.list_sponsors(db, context, period=period).data]

    assert sponsors("week") == ["This Week"]
    assert sponsors("month") == ["This Month", "This Week"]
    assert sponsors("all") == ["Long Ago", "This Month", "This Week"]

    # windows are computed live even where the snapshot is authoritative
    assert LeaderboardService.get_one_time_leaderboard(db, context, limit=10) == []
    rows = LeaderboardService.get_one_time_leaderboard(db, context, limit=10, period="month")
    assert [row.donor_label for row in rows] == ["This Month", "This Week"]


def test_recurring_leaderboard_by_period_and_duration(db, make_org, make_payment, make_legacy) -> None:
    organization = make_org(is_legacy_migrated=True)
    now = utc_now()
    started = now - timedelta(days=400)
    make_payment(organization, 1000, donor_name="Ann", recurring_metadata=recurring("pm_ann"), created_at=started)
    make_payment(organization, 1000, donor_name="Ann", recurring_metadata=recurring("pm_ann"),
                 created_at=now - timedelta(days=3))
    make_payment(organization, 5000, donor_name="Bob", recurring_metadata=recurring("pm_bob"),
                 created_at=now - timedelta(days=60))
    make_legacy(organization, "legacy_42", 750, title="Old Friend")
    context = _context(db, organization)

    week = LeaderboardService.get_recurring_leaderboard(db, context, period="week")
    assert [(row.donor_label, row.total_amount, row.payments_count) for row in week.data] == [("Ann", 1000, 1)]
    assert week.data[0].duration_label == "In total for less than a month"

    LeaderboardService.compute_recurring_leaderboard(db, context)
    everything = LeaderboardService.get_recurring_leaderboard(db, context)

    assert [row.donor_label for row in everything.data] == ["Bob", "Ann", "Old Friend"]
    assert everything.data[1].first_payment_at == started
    assert everything.data[1].duration_label.startswith("In total for 1 year")
    assert everything.data[2].duration_label == "In total"


def test_sponsor_ties_follow_the_shown_name(db, make_org, make_payment) -> None:
    organization = make_org()
    make_payment(organization, 500, donor_name="Zed")
    make_payment(organization, 500, donor_name="")
    make_payment(organization, 500, donor_phone="+79991234567")
    make_payment(organization, 500, donor_name="Ann")

    page = SponsorService.list_sponsors(db, _context(db, organization))

    assert [row.display_name for row in page.data] == ["+79 *** ** 67", "Ann", ANONYMOUS, "Zed"]
