"""Split rules: how much of an expense each partner is responsible for."""

from decimal import Decimal
from typing import assert_never

from .models import Expense, Profiles, SplitType

EVEN_RATIO = Decimal("0.5")
# Income shares are kept to a fixed sub-cent precision so B's share
# (amount - share_a) never needs rounding.
SHARE_QUANTUM = Decimal("1e-10")
DEFAULT_CUSTOM_SPLIT_A = 50


def income_ratio_a(profiles: Profiles) -> Decimal:
    """
    Partner A's fraction of the combined income.

    Falls back to an even split when neither partner has any income, since
    the ratio is undefined.
    """
    total = profiles.total_income
    if total == 0:
        return EVEN_RATIO
    return profiles.a.income / total


def resolve_share(expense: Expense, profiles: Profiles) -> Decimal:
    """
    Compute partner A's share of an expense under its split rule.

    B's share is always ``expense.amount - share_a`` so the two shares add
    up to the amount exactly.

    Args:
        expense: The expense to split
        profiles: Member profiles (incomes are used by the income rule)

    Returns:
        Partner A's share as a Decimal
    """
    amount = expense.amount
    split_type = expense.split_type

    if split_type is SplitType.EVEN:
        return amount * EVEN_RATIO
    elif split_type is SplitType.INCOME:
        return (amount * income_ratio_a(profiles)).quantize(SHARE_QUANTUM)
    elif split_type is SplitType.CUSTOM:
        # Validated expenses always carry a percentage; this covers
        # records built without validation.
        percentage_a = (
            expense.custom_split_a
            if expense.custom_split_a is not None
            else DEFAULT_CUSTOM_SPLIT_A
        )
        return amount * percentage_a / 100
    else:
        assert_never(split_type)


def resolve_shares(expense: Expense, profiles: Profiles) -> tuple[Decimal, Decimal]:
    """Return ``(share_a, share_b)`` for an expense."""
    share_a = resolve_share(expense, profiles)
    return share_a, expense.amount - share_a
