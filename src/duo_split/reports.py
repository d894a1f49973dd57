"""Read-only views over the expense list: search, category totals, budgets."""

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal

from .models import Budget, BudgetStatus, Category, Expense, as_aware


def matches_query(expense: Expense, query: str) -> bool:
    """Case-insensitive match against description, category or amount."""
    query = query.strip().lower()
    if not query:
        return True
    return (
        query in expense.description.lower()
        or query in expense.category.value.lower()
        or query in str(expense.amount)
    )


def filter_expenses(
    expenses: Iterable[Expense],
    query: str | None = None,
    category: Category | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Expense]:
    """
    Filter expenses by search text, category and an inclusive date range.

    Args:
        expenses: Expenses to filter
        query: Free-text search (description, category or amount)
        category: Only keep this category
        start: Earliest expense date to keep
        end: Latest expense date to keep

    Returns:
        Matching expenses, in their original order
    """
    start = as_aware(start) if start is not None else None
    end = as_aware(end) if end is not None else None

    result = []
    for expense in expenses:
        if query and not matches_query(expense, query):
            continue
        if category is not None and expense.category is not category:
            continue
        if start is not None and expense.date < start:
            continue
        if end is not None and expense.date > end:
            continue
        result.append(expense)
    return result


def totals_by_category(expenses: Iterable[Expense]) -> dict[Category, Decimal]:
    """Sum expense amounts per category (every category present)."""
    totals = {category: Decimal("0") for category in Category}
    for expense in expenses:
        totals[expense.category] += expense.amount
    return totals


def in_month(expense: Expense, month: date) -> bool:
    return expense.date.year == month.year and expense.date.month == month.month


def budget_report(
    expenses: Iterable[Expense], budgets: Iterable[Budget], month: date
) -> list[BudgetStatus]:
    """
    Compare monthly spending with each category budget.

    Args:
        expenses: All expenses in the ledger
        budgets: Category budgets
        month: Any date within the month to report on

    Returns:
        One status per budgeted category, in category order
    """
    spent = totals_by_category(e for e in expenses if in_month(e, month))
    by_category = {budget.category: budget for budget in budgets}
    return [
        BudgetStatus(
            category=category,
            budget=by_category[category].amount,
            spent=spent[category],
        )
        for category in Category
        if category in by_category
    ]
