"""Settlement engine: fold the split rules over a ledger into a net balance."""

import logging
from collections.abc import Iterable
from decimal import Decimal

from .models import (
    Expense,
    Partner,
    PartnerContribution,
    Profiles,
    SettlementResult,
)
from .splits import resolve_shares

logger = logging.getLogger(__name__)

SETTLED_TEXT = "All settled up!"


def is_settled(balance: Decimal, tolerance: Decimal = Decimal("0")) -> bool:
    """A balance is settled when it is zero or strictly closer to zero than the tolerance."""
    return balance == 0 or abs(balance) < tolerance


def owed_text(balance: Decimal, profiles: Profiles, tolerance: Decimal = Decimal("0")) -> str:
    """
    Describe who owes whom from the sign of the balance.

    Args:
        balance: Signed balance (positive = B owes A)
        profiles: Member profiles, for display names
        tolerance: Balances strictly below this distance from zero count as settled

    Returns:
        Human-readable owing statement
    """
    if is_settled(balance, tolerance):
        return SETTLED_TEXT
    if balance > 0:
        return f"{profiles.b.name} owes {profiles.a.name}"
    return f"{profiles.a.name} owes {profiles.b.name}"


def compute_settlement(
    expenses: Iterable[Expense],
    profiles: Profiles,
    tolerance: Decimal = Decimal("0"),
) -> SettlementResult:
    """
    Compute the net balance between the partners.

    Every expense is visited once. When A pays, B's share is added to the
    balance; when B pays, A's share is subtracted. The per-partner paid/owed
    totals are accumulated in the same pass as a separate view.

    Args:
        expenses: All expenses in the ledger, in any order
        profiles: Member profiles
        tolerance: Absolute balances strictly below this value are reported
            as settled (use 0.01 to absorb sub-cent noise in display contexts)

    Returns:
        Settlement result with balance, owing statement and contributions
    """
    balance = Decimal("0")
    total = Decimal("0")
    paid = {Partner.A: Decimal("0"), Partner.B: Decimal("0")}
    owed = {Partner.A: Decimal("0"), Partner.B: Decimal("0")}
    count = 0

    for expense in expenses:
        share_a, share_b = resolve_shares(expense, profiles)

        if expense.paid_by is Partner.A:
            balance += share_b  # B owes A their share
        else:
            balance -= share_a  # A owes B their share

        paid[expense.paid_by] += expense.amount
        owed[Partner.A] += share_a
        owed[Partner.B] += share_b
        total += expense.amount
        count += 1

    settled = is_settled(balance, tolerance)
    result = SettlementResult(
        balance=balance,
        owed_text=owed_text(balance, profiles, tolerance),
        owed_amount=Decimal("0") if settled else abs(balance),
        contributions={
            partner: PartnerContribution(paid=paid[partner], owed=owed[partner])
            for partner in Partner
        },
        total_expenses=total,
    )

    logger.debug(f"Settled {count} expenses: balance {balance}")
    return result
