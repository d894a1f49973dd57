"""Tests for split rule resolution."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from duo_split.models import Category, Expense, MemberProfile, Partner, Profiles, SplitType
from duo_split.splits import income_ratio_a, resolve_share, resolve_shares


def make_expense(
    amount: str = "100.00",
    split_type: SplitType = SplitType.EVEN,
    custom_split_a: int | None = None,
    paid_by: Partner = Partner.A,
) -> Expense:
    """Create an expense for testing."""
    return Expense(
        description="Test expense",
        amount=Decimal(amount),
        paid_by=paid_by,
        split_type=split_type,
        custom_split_a=custom_split_a,
        category=Category.GROCERIES,
        date=datetime(2026, 1, 15, tzinfo=UTC),
    )


class TestEvenSplit:
    """Tests for the 50/50 rule."""

    def test_half_each(self, even_profiles):
        """A 50/50 expense splits down the middle."""
        share_a, share_b = resolve_shares(make_expense("100.00"), even_profiles)

        assert share_a == Decimal("50")
        assert share_b == Decimal("50")

    def test_ignores_incomes(self, income_profiles):
        """Incomes play no part in an even split."""
        assert resolve_share(make_expense("80.00"), income_profiles) == Decimal("40")

    def test_odd_cent(self, even_profiles):
        """An odd cent is split exactly, not rounded away."""
        share_a, share_b = resolve_shares(make_expense("0.01"), even_profiles)

        assert share_a == Decimal("0.005")
        assert share_a + share_b == Decimal("0.01")


class TestIncomeSplit:
    """Tests for the income-ratio rule."""

    def test_proportional_to_income(self, income_profiles):
        """A earning 60% of household income carries 60% of the expense."""
        expense = make_expense("100.00", SplitType.INCOME)

        share_a, share_b = resolve_shares(expense, income_profiles)

        assert share_a == Decimal("60")
        assert share_b == Decimal("40")

    def test_zero_income_falls_back_to_even(self, zero_income_profiles):
        """With no income on record the income rule behaves like 50/50."""
        income = resolve_share(make_expense("100.00", SplitType.INCOME), zero_income_profiles)
        even = resolve_share(make_expense("100.00", SplitType.EVEN), zero_income_profiles)

        assert income == even == Decimal("50")

    def test_one_partner_without_income(self):
        """If only B earns, A's share is zero."""
        profiles = Profiles(
            a=MemberProfile(name="Sam", income=Decimal("0")),
            b=MemberProfile(name="Alex", income=Decimal("3000")),
        )

        share_a, share_b = resolve_shares(make_expense("45.00", SplitType.INCOME), profiles)

        assert share_a == 0
        assert share_b == Decimal("45.00")

    def test_income_ratio(self, income_profiles, zero_income_profiles):
        """The ratio helper reports A's fraction, 0.5 when undefined."""
        assert income_ratio_a(income_profiles) == Decimal("0.6")
        assert income_ratio_a(zero_income_profiles) == Decimal("0.5")


class TestCustomSplit:
    """Tests for the custom-percentage rule."""

    @pytest.mark.parametrize(
        "percentage,expected_a",
        [(70, "70"), (0, "0"), (100, "100"), (33, "33")],
    )
    def test_percentage_of_amount(self, even_profiles, percentage, expected_a):
        """A's share is their percentage of the amount."""
        expense = make_expense("100.00", SplitType.CUSTOM, custom_split_a=percentage)

        assert resolve_share(expense, even_profiles) == Decimal(expected_a)

    def test_missing_percentage_defaults_to_half(self, even_profiles):
        """A record built without validation and no percentage splits 50/50."""
        expense = Expense.model_construct(
            id="raw",
            description="Imported",
            amount=Decimal("100.00"),
            paid_by=Partner.A,
            split_type=SplitType.CUSTOM,
            custom_split_a=None,
            category=Category.OTHER,
            date=datetime(2026, 1, 15, tzinfo=UTC),
        )

        assert resolve_share(expense, even_profiles) == Decimal("50")


class TestShareConservation:
    """The two shares always add up to the amount exactly."""

    @pytest.mark.parametrize("amount", ["0.01", "19.99", "33.33", "100.00", "1234567.89"])
    @pytest.mark.parametrize(
        "split_type,custom_split_a",
        [(SplitType.EVEN, None), (SplitType.INCOME, None), (SplitType.CUSTOM, 37)],
    )
    def test_shares_sum_to_amount(self, amount, split_type, custom_split_a):
        """Holds for every rule, including incomes with a repeating ratio."""
        profiles = Profiles(
            a=MemberProfile(name="Sam", income=Decimal("1000")),
            b=MemberProfile(name="Alex", income=Decimal("2000")),
        )
        expense = make_expense(amount, split_type, custom_split_a)

        share_a, share_b = resolve_shares(expense, profiles)

        assert share_a + share_b == expense.amount

    def test_every_split_type_is_handled(self, income_profiles):
        """Each split rule resolves without falling through."""
        for split_type in SplitType:
            custom = 50 if split_type is SplitType.CUSTOM else None
            share = resolve_share(make_expense("10.00", split_type, custom), income_profiles)
            assert Decimal("0") <= share <= Decimal("10.00")
