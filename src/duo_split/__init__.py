"""duo-split - Shared expense tracking and settlement for two-person households."""

__version__ = "0.1.0"

from .config import Settings, load_settings
from .db import Database
from .models import (
    Expense,
    MemberProfile,
    Partner,
    Profiles,
    RecurringTemplate,
    SettlementResult,
    SplitType,
)
from .recurring import materialize_due
from .service import LedgerService
from .settlement import compute_settlement
from .splits import resolve_share

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "Expense",
    "MemberProfile",
    "Partner",
    "Profiles",
    "RecurringTemplate",
    "SettlementResult",
    "SplitType",
    "materialize_due",
    "LedgerService",
    "compute_settlement",
    "resolve_share",
]
