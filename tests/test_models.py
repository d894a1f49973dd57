"""Tests for domain model validation."""

from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from duo_split.models import (
    MAX_AMOUNT,
    Budget,
    Category,
    Expense,
    MemberProfile,
    Partner,
    Profiles,
    RecurringTemplate,
    SplitType,
)


class TestExpenseValidation:
    """Expenses enforce their invariants at construction."""

    def test_accepts_string_amount(self):
        """Amounts may arrive as decimal strings."""
        expense = Expense(description="Lunch", amount="12.50", paid_by=Partner.A)

        assert expense.amount == Decimal("12.50")
        assert expense.split_type is SplitType.EVEN
        assert expense.date.tzinfo is not None

    def test_amount_rounded_to_cents(self):
        """Sub-cent input is rounded half-up to cents."""
        expense = Expense(description="Fuel", amount=Decimal("12.345"), paid_by=Partner.B)

        assert expense.amount == Decimal("12.35")

    @pytest.mark.parametrize("amount", ["0", "-5.00", "0.004"])
    def test_rejects_non_positive_amount(self, amount):
        """Zero, negative and amounts rounding to zero are rejected."""
        with pytest.raises(ValidationError):
            Expense(description="Nothing", amount=amount, paid_by=Partner.A)

    @pytest.mark.parametrize("amount", ["100000000.00", "1e20", "1e30"])
    def test_rejects_amount_above_maximum(self, amount):
        """Amounts beyond ten digits are rejected as invalid input."""
        with pytest.raises(ValidationError):
            Expense(description="Mansion", amount=amount, paid_by=Partner.A)

    def test_accepts_maximum_amount(self):
        """The largest storable amount is accepted unchanged."""
        expense = Expense(description="Mansion", amount="99999999.99", paid_by=Partner.A)

        assert expense.amount == MAX_AMOUNT

    def test_rejects_blank_description(self):
        """A description of only whitespace is rejected."""
        with pytest.raises(ValidationError):
            Expense(description="   ", amount="1.00", paid_by=Partner.A)

    def test_custom_split_requires_percentage(self):
        """A custom split must say how much A takes."""
        with pytest.raises(ValidationError, match="required for a custom split"):
            Expense(
                description="Trip",
                amount="300",
                paid_by=Partner.A,
                split_type=SplitType.CUSTOM,
            )

    def test_percentage_only_for_custom_split(self):
        """Other rules may not carry a percentage."""
        with pytest.raises(ValidationError, match="only allowed for a custom split"):
            Expense(
                description="Trip",
                amount="300",
                paid_by=Partner.A,
                split_type=SplitType.INCOME,
                custom_split_a=40,
            )

    @pytest.mark.parametrize("percentage", [-1, 101])
    def test_percentage_range(self, percentage):
        """Percentages must lie within 0-100."""
        with pytest.raises(ValidationError):
            Expense(
                description="Trip",
                amount="300",
                paid_by=Partner.A,
                split_type=SplitType.CUSTOM,
                custom_split_a=percentage,
            )

    def test_rejects_unknown_split_type(self):
        """Only the three known split rules are accepted."""
        with pytest.raises(ValidationError):
            Expense(description="Trip", amount="10", paid_by=Partner.A, split_type="thirds")

    def test_naive_date_is_utc(self):
        """A naive date is taken as UTC."""
        expense = Expense(
            description="Movie", amount="20", paid_by=Partner.A, date=datetime(2026, 1, 1, 20)
        )

        assert expense.date == datetime(2026, 1, 1, 20, tzinfo=UTC)

    def test_offset_date_normalized_to_utc(self):
        """Dates with another offset are converted to UTC."""
        plus_two = timezone(timedelta(hours=2))
        expense = Expense(
            description="Movie",
            amount="20",
            paid_by=Partner.A,
            date=datetime(2026, 1, 1, 20, tzinfo=plus_two),
        )

        assert expense.date.utcoffset() == timedelta(0)
        assert expense.date.hour == 18

    def test_persisted_shape(self):
        """Expenses load from their stored field names and values."""
        expense = Expense.model_validate(
            {
                "id": "e1",
                "description": "Vet",
                "amount": "89.90",
                "paid_by": "B",
                "split_type": "custom",
                "custom_split_a": 25,
                "category": "Pet",
                "date": "2026-02-03T10:00:00+00:00",
            }
        )

        assert expense.paid_by is Partner.B
        assert expense.category is Category.PET
        assert expense.custom_split_a == 25


class TestOtherModels:
    """Tests for profiles, templates and budgets."""

    def test_profile_rejects_negative_income(self):
        """Income cannot be negative."""
        with pytest.raises(ValidationError):
            MemberProfile(name="Sam", income=Decimal("-1"))

    def test_default_profiles(self):
        """Unset profiles are named after their slot with no income."""
        profiles = Profiles()

        assert profiles[Partner.A].name == "Partner A"
        assert profiles[Partner.B].name == "Partner B"
        assert profiles.total_income == 0

    def test_template_defaults(self):
        """Templates are active, monthly and due immediately by default."""
        before = datetime.now(UTC)
        template = RecurringTemplate(description="Rent", amount="1800", paid_by=Partner.B)

        assert template.is_active
        assert template.next_due_date >= before
        assert template.is_due(datetime.now(UTC) + timedelta(seconds=1))

    def test_template_rejects_zero_amount(self):
        """Templates share the positive-amount rule."""
        with pytest.raises(ValidationError):
            RecurringTemplate(description="Rent", amount="0", paid_by=Partner.B)

    def test_money_fields_are_bounded(self):
        """Templates, budgets and incomes share the amount ceiling."""
        with pytest.raises(ValidationError):
            RecurringTemplate(description="Rent", amount="1e30", paid_by=Partner.B)
        with pytest.raises(ValidationError):
            Budget(category=Category.FUN, amount="1e30")
        with pytest.raises(ValidationError):
            MemberProfile(name="Sam", income=Decimal("1e30"))

    def test_budget_allows_zero(self):
        """A zero budget is valid, a negative one is not."""
        assert Budget(category=Category.FUN, amount="0").amount == 0
        with pytest.raises(ValidationError):
            Budget(category=Category.FUN, amount="-10")

    def test_partner_other(self):
        """Each partner knows the other slot."""
        assert Partner.A.other is Partner.B
        assert Partner.B.other is Partner.A
