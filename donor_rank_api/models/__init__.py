from donor_rank_api.models.base import Base
from donor_rank_api.models.legacy_autopayment import LegacyAutopayment
from donor_rank_api.models.organization import LabelMode, Organization, User
from donor_rank_api.models.payment import PaymentStatus, PaymentTransaction
from donor_rank_api.models.snapshot import TopOneTimeSnapshot, TopRecurringSnapshot

__all__ = [
    "Base",
    "LabelMode",
    "LegacyAutopayment",
    "Organization",
    "PaymentStatus",
    "PaymentTransaction",
    "TopOneTimeSnapshot",
    "TopRecurringSnapshot",
    "User",
]
