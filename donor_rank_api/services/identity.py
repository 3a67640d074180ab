"""Sponsor identity resolution for payers without (or with) a linked account."""

from sqlalchemy import String, and_, case, cast, func, literal
from sqlalchemy.sql.elements import ColumnElement

from donor_rank_api.models.payment import PaymentTransaction


def resolve_identity(record: PaymentTransaction) -> str:
    """Return the grouping key for a payment record.

    First match wins: linked account, email (lowercased), phone (as stored),
    donor name, and finally the record id so every record lands in some group.
    """
    if record.donor_id is not None:
        return f"user:{record.donor_id}"
    if record.donor_email:
        return f"email:{record.donor_email.lower()}"
    if record.donor_phone:
        return f"phone:{record.donor_phone}"
    if record.donor_name:
        return f"name:{record.donor_name}"
    return f"donation:{record.id}"


def _present(column: ColumnElement[str | None]) -> ColumnElement[bool]:
    return and_(column.is_not(None), column != "")


def sponsor_key_expression() -> ColumnElement[str]:
    """Portable SQL rendition of ``resolve_identity`` for grouping in the database."""
    pt = PaymentTransaction
    return case(
        (pt.donor_id.is_not(None), literal("user:", String) + cast(pt.donor_id, String)),
        (_present(pt.donor_email), literal("email:", String) + func.lower(pt.donor_email)),
        (_present(pt.donor_phone), literal("phone:", String) + pt.donor_phone),
        (_present(pt.donor_name), literal("name:", String) + pt.donor_name),
        else_=literal("donation:", String) + cast(pt.id, String),
    )
