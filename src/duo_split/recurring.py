"""Recurring expense materialization.

Each invocation turns every due recurring template into a concrete expense
and moves the template's due date forward by its frequency.

By default a template advances by exactly one period per invocation, however
far in the past its due date is. A template that is still overdue after the
advance is picked up again on the next invocation. With ``catch_up=True`` the
template instead emits one expense per missed period until its due date is in
the future.
"""

import calendar
import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from .models import (
    Expense,
    Frequency,
    MaterializationResult,
    RecurringTemplate,
    SplitType,
    as_aware,
    new_id,
    utcnow,
)
from .splits import DEFAULT_CUSTOM_SPLIT_A

logger = logging.getLogger(__name__)

WEEK = timedelta(days=7)


def add_months(value: datetime, months: int = 1) -> datetime:
    """
    Add calendar months to a datetime.

    The day of month is clamped to the last day of the target month, so
    Jan 31 + 1 month is Feb 28 (or 29). Successive calls start from the
    clamped date, so the shorter day carries forward.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_due_after(due: datetime, frequency: Frequency) -> datetime:
    """Return the due date one period after ``due``."""
    if frequency is Frequency.MONTHLY:
        return add_months(due, 1)
    return due + WEEK


def expense_from_template(
    template: RecurringTemplate, when: datetime, expense_id: str
) -> Expense:
    """Build the concrete expense a template produces at ``when``."""
    custom_split_a = (
        DEFAULT_CUSTOM_SPLIT_A if template.split_type is SplitType.CUSTOM else None
    )
    return Expense(
        id=expense_id,
        description=template.description,
        amount=template.amount,
        paid_by=template.paid_by,
        split_type=template.split_type,
        custom_split_a=custom_split_a,
        category=template.category,
        date=when,
    )


def materialize_due(
    templates: Iterable[RecurringTemplate],
    now: datetime | None = None,
    catch_up: bool = False,
    id_factory: Callable[[], str] = new_id,
) -> MaterializationResult:
    """
    Materialize every due recurring template.

    Templates are not mutated; advanced copies are returned instead.

    Args:
        templates: All recurring templates of the workspace
        now: Materialization time (defaults to the current UTC time)
        catch_up: Emit one expense per missed period instead of one per call
        id_factory: Generates identifiers for new expenses

    Returns:
        New expenses in template order, plus every template (in input order)
        with due dates advanced where they were materialized
    """
    now = as_aware(now) if now is not None else utcnow()

    new_expenses: list[Expense] = []
    updated: list[RecurringTemplate] = []

    for template in templates:
        if not template.is_due(now):
            updated.append(template)
            continue

        due = template.next_due_date
        emitted = 0
        while True:
            new_expenses.append(expense_from_template(template, now, id_factory()))
            due = next_due_after(due, template.frequency)
            emitted += 1
            if not catch_up or due > now:
                break

        logger.debug(
            f"Materialized '{template.description}' x{emitted}, next due {due.isoformat()}"
        )
        updated.append(template.model_copy(update={"next_due_date": due}))

    result = MaterializationResult(new_expenses=new_expenses, updated_templates=updated)
    if result.count:
        logger.info(result.summary)

    return result
