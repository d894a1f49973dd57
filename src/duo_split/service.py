"""Service layer that composes the ledger repository and the settlement core.

The settlement engine and the recurring materializer are pure functions; this
module loads their inputs from the database, runs them, and writes results
back. Every mutation goes through one ``Database`` connection and commits in
a single transaction.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from .config import Settings
from .db import Database
from .exceptions import ExpenseNotFoundError, RecurringTemplateNotFoundError
from .models import (
    Budget,
    BudgetStatus,
    Category,
    Expense,
    Frequency,
    MaterializationResult,
    MemberProfile,
    Partner,
    Profiles,
    RecurringTemplate,
    SettlementResult,
    SplitType,
    as_aware,
    utcnow,
)
from .recurring import materialize_due
from .reports import budget_report, filter_expenses
from .settlement import compute_settlement

logger = logging.getLogger(__name__)


class LedgerService:
    """Service for managing a household ledger and settling it."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the ledger service."""
        self.settings = settings
        self.db = database

    def get_profiles(self) -> Profiles:
        """Get both member profiles."""
        return self.db.get_profiles()

    def update_profile(
        self,
        partner: Partner,
        name: str | None = None,
        avatar: str | None = None,
        income: Decimal | str | None = None,
    ) -> Profiles:
        """
        Update fields of one partner's profile.

        Args:
            partner: Slot to update
            name: New display name
            avatar: New avatar reference
            income: New monthly income

        Returns:
            Both profiles after the update
        """
        profiles = self.db.get_profiles()
        changes: dict[str, Any] = {
            key: value
            for key, value in {"name": name, "avatar": avatar, "income": income}.items()
            if value is not None
        }
        updated = MemberProfile.model_validate(
            {**profiles[partner].model_dump(), **changes}
        )
        self.db.save_profile(partner, updated)

        logger.info(f"Updated profile {partner.value}: {', '.join(changes) or 'no changes'}")

        return self.db.get_profiles()

    def add_expense(
        self,
        description: str,
        amount: Decimal | str | float,
        paid_by: Partner,
        split_type: SplitType = SplitType.EVEN,
        category: Category = Category.OTHER,
        custom_split_a: int | None = None,
        date: datetime | None = None,
    ) -> Expense:
        """
        Create and store a new expense.

        A custom split without a percentage uses the configured default.

        Returns:
            The stored expense
        """
        if split_type is SplitType.CUSTOM and custom_split_a is None:
            custom_split_a = self.settings.default_custom_split_a

        expense = Expense(
            description=description,
            amount=amount,
            paid_by=paid_by,
            split_type=split_type,
            custom_split_a=custom_split_a,
            category=category,
            date=date or utcnow(),
        )
        self.db.save_expense(expense)

        logger.info(f"Added expense {expense.id}: {expense.description} ({expense.amount})")

        return expense

    def get_expense(self, expense_id: str) -> Expense:
        """Get an expense, raising if it does not exist."""
        expense = self.db.get_expense(expense_id)
        if expense is None:
            raise ExpenseNotFoundError(expense_id)
        return expense

    def update_expense(self, expense_id: str, **changes: Any) -> Expense:
        """
        Replace mutable fields of an expense.

        The merged record is validated again as a whole. Switching away from
        a custom split drops the percentage; switching to one without a
        percentage uses the configured default.

        Args:
            expense_id: Expense to update
            **changes: Field values to replace (``None`` values are ignored)

        Returns:
            The updated expense

        Raises:
            ExpenseNotFoundError: If the expense does not exist
            pydantic.ValidationError: If the result violates expense invariants
        """
        current = self.get_expense(expense_id)
        changes = {k: v for k, v in changes.items() if v is not None}
        changes.pop("id", None)

        data = {**current.model_dump(), **changes}
        split_type = SplitType(data["split_type"])
        if split_type is not SplitType.CUSTOM:
            data["custom_split_a"] = None
        elif data.get("custom_split_a") is None:
            data["custom_split_a"] = self.settings.default_custom_split_a

        updated = Expense.model_validate(data)
        self.db.save_expense(updated)

        logger.info(f"Updated expense {expense_id}: {', '.join(changes) or 'no changes'}")

        return updated

    def delete_expense(self, expense_id: str) -> Expense:
        """
        Delete an expense.

        Returns:
            The deleted expense, so the caller can offer an undo
        """
        expense = self.get_expense(expense_id)
        self.db.delete_expense(expense_id)

        logger.info(f"Deleted expense {expense_id}")

        return expense

    def restore_expense(self, expense: Expense) -> Expense:
        """Put back a previously deleted expense (undo)."""
        self.db.save_expense(expense)
        logger.info(f"Restored expense {expense.id}")
        return expense

    def list_expenses(
        self,
        query: str | None = None,
        category: Category | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Expense]:
        """List expenses newest first, optionally filtered."""
        return filter_expenses(
            self.db.list_expenses(), query=query, category=category, start=start, end=end
        )

    def get_settlement(self) -> SettlementResult:
        """Compute the current settlement from the stored ledger."""
        ledger = self.db.load_ledger()
        result = compute_settlement(
            ledger.expenses,
            ledger.profiles,
            tolerance=self.settings.settled_tolerance,
        )

        logger.info(
            f"Settlement over {len(ledger.expenses)} expenses: "
            f"{result.owed_text} {result.owed_amount}"
        )

        return result

    def add_recurring_template(
        self,
        description: str,
        amount: Decimal | str | float,
        paid_by: Partner = Partner.A,
        split_type: SplitType = SplitType.EVEN,
        category: Category = Category.RENT,
        frequency: Frequency = Frequency.MONTHLY,
        next_due_date: datetime | None = None,
    ) -> RecurringTemplate:
        """
        Create a recurring template.

        Without an explicit due date the template is due immediately and
        materializes on the next run.
        """
        template = RecurringTemplate(
            description=description,
            amount=amount,
            paid_by=paid_by,
            split_type=split_type,
            category=category,
            frequency=frequency,
            next_due_date=next_due_date or utcnow(),
        )
        self.db.save_recurring_template(template)

        logger.info(
            f"Set up recurring expense {template.id}: {template.description} "
            f"({template.frequency.value})"
        )

        return template

    def get_recurring_template(self, template_id: str) -> RecurringTemplate:
        """Get a recurring template, raising if it does not exist."""
        template = self.db.get_recurring_template(template_id)
        if template is None:
            raise RecurringTemplateNotFoundError(template_id)
        return template

    def update_recurring_template(self, template_id: str, **changes: Any) -> RecurringTemplate:
        """Replace mutable fields of a recurring template (``None`` values are ignored)."""
        current = self.get_recurring_template(template_id)
        changes = {k: v for k, v in changes.items() if v is not None}
        changes.pop("id", None)

        updated = RecurringTemplate.model_validate({**current.model_dump(), **changes})
        self.db.save_recurring_template(updated)

        logger.info(f"Updated recurring expense {template_id}")

        return updated

    def delete_recurring_template(self, template_id: str) -> RecurringTemplate:
        """Delete a recurring template and return it."""
        template = self.get_recurring_template(template_id)
        self.db.delete_recurring_template(template_id)

        logger.info(f"Removed recurring expense {template_id}")

        return template

    def list_recurring_templates(self) -> list[RecurringTemplate]:
        """List recurring templates, soonest due first."""
        return self.db.list_recurring_templates()

    def get_last_recurring_run(self) -> datetime | None:
        """When recurring templates were last checked, if ever."""
        return self.db.get_last_recurring_run()

    def run_recurring(self, now: datetime | None = None) -> MaterializationResult:
        """
        Materialize every due recurring template and store the results.

        Safe to call repeatedly: a template is only materialized while its
        stored due date has passed, and the advance is written in the same
        transaction as the new expenses.

        Args:
            now: Materialization time (defaults to the current UTC time)

        Returns:
            The new expenses and advanced templates
        """
        now = as_aware(now) if now is not None else utcnow()
        result = materialize_due(
            self.db.list_recurring_templates(),
            now=now,
            catch_up=self.settings.recurring_catch_up,
        )

        if result.count:
            self.db.apply_materialization(result)
        self.db.set_last_recurring_run(now)

        return result

    def set_budget(self, category: Category, amount: Decimal | str | float) -> Budget:
        """Set the monthly budget for a category."""
        budget = Budget(category=category, amount=amount)
        self.db.set_budget(budget)
        logger.info(f"Set {category.value} budget to {budget.amount}")
        return budget

    def get_budget_report(self, month: date | None = None) -> list[BudgetStatus]:
        """Compare spending with budgets for a month (defaults to the current one)."""
        month = month or utcnow().date()
        return budget_report(self.db.list_expenses(), self.db.get_budgets(), month)
