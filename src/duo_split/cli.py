"""CLI for duo-split using Typer."""

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import load_settings
from .db import Database
from .models import Category, Frequency, Partner, SettlementResult, SplitType
from .service import LedgerService
from .splits import income_ratio_a

app = typer.Typer(
    name="duo-split",
    help="Track shared expenses between two partners and settle up",
)
recurring_app = typer.Typer(help="Recurring expenses")
budget_app = typer.Typer(help="Monthly category budgets")
app.add_typer(recurring_app, name="recurring")
app.add_typer(budget_app, name="budget")

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def ledger_service(verbose: bool = False) -> Iterator[LedgerService]:
    """Open the configured database and yield a service; report errors and exit."""
    setup_logging(verbose)
    db = None
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        yield LedgerService(settings, db)
    except ValidationError as e:
        console.print(f"\n[bold yellow]⚠️  Invalid input:[/bold yellow] {escape(str(e))}")
        if verbose:
            raise
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {escape(str(e))}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


def format_money(amount: Decimal, use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: (85.02)
    Positive amounts have spaces:      85.02
    """
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            return f"([red]{abs_amount:,.2f}[/red])"
        return f"({abs_amount:,.2f})"
    if use_color:
        return f" [green]{abs_amount:,.2f}[/green] "
    return f" {abs_amount:,.2f} "


def display_settlement(result: SettlementResult, names: dict[Partner, str]):
    """Display the settlement and per-partner contributions."""
    if result.is_settled:
        console.print(f"\n[bold green]✓ {result.owed_text}[/bold green]")
    else:
        console.print(
            f"\n[bold]{result.owed_text}[/bold] [cyan]{result.owed_amount:,.2f}[/cyan]"
        )
    console.print(f"  Total expenses: {result.total_expenses:,.2f}\n")

    table = Table(title="Contributions", show_header=True, header_style="bold magenta")
    table.add_column("Partner", style="cyan")
    table.add_column("Paid", justify="right")
    table.add_column("Share", justify="right")
    table.add_column("Net", justify="right")

    for partner, contribution in result.contributions.items():
        table.add_row(
            f"{partner.value} · {names[partner]}",
            format_money(contribution.paid, use_color=False),
            format_money(contribution.owed, use_color=False),
            format_money(contribution.net),
        )

    console.print(table)


@app.command()
def settle(verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")):
    """Show who owes whom and how much."""
    with ledger_service(verbose) as service:
        profiles = service.get_profiles()
        result = service.get_settlement()
        display_settlement(result, {p: profiles[p].name for p in Partner})


@app.command()
def add(
    description: str = typer.Argument(..., help="What the expense was for"),
    amount: str = typer.Argument(..., help="Amount, e.g. 42.50"),
    paid_by: Partner = typer.Option(Partner.A, "--paid-by", "-p", help="Who paid"),
    split: SplitType = typer.Option(SplitType.EVEN, "--split", "-s", help="Split rule"),
    custom_split_a: int | None = typer.Option(
        None, "--custom-a", help="Partner A's percentage for a custom split"
    ),
    category: Category = typer.Option(Category.OTHER, "--category", "-c"),
    on: datetime | None = typer.Option(
        None, "--date", "-d", formats=["%Y-%m-%d"], help="Expense date (default: now)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Log a new shared expense."""
    with ledger_service(verbose) as service:
        expense = service.add_expense(
            description=description,
            amount=amount,
            paid_by=paid_by,
            split_type=split,
            category=category,
            custom_split_a=custom_split_a,
            date=on,
        )
        console.print(
            f"[green]✓ Added {expense.description} ({expense.amount:,.2f}) "
            f"[dim]{expense.id}[/dim][/green]"
        )


@app.command()
def edit(
    expense_id: str = typer.Argument(..., help="Expense id"),
    description: str | None = typer.Option(None, "--description"),
    amount: str | None = typer.Option(None, "--amount"),
    paid_by: Partner | None = typer.Option(None, "--paid-by", "-p"),
    split: SplitType | None = typer.Option(None, "--split", "-s"),
    custom_split_a: int | None = typer.Option(None, "--custom-a"),
    category: Category | None = typer.Option(None, "--category", "-c"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Change fields of an existing expense."""
    with ledger_service(verbose) as service:
        expense = service.update_expense(
            expense_id,
            description=description,
            amount=amount,
            paid_by=paid_by,
            split_type=split,
            custom_split_a=custom_split_a,
            category=category,
        )
        console.print(f"[green]✓ Updated {expense.description}[/green]")


@app.command()
def delete(
    expense_id: str = typer.Argument(..., help="Expense id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete an expense."""
    with ledger_service(verbose) as service:
        expense = service.delete_expense(expense_id)
        console.print(f"[green]✓ Deleted {expense.description}[/green]")


@app.command("list")
def list_expenses(
    query: str | None = typer.Option(None, "--search", "-q", help="Search text"),
    category: Category | None = typer.Option(None, "--category", "-c"),
    start: datetime | None = typer.Option(None, "--from", formats=["%Y-%m-%d"]),
    end: datetime | None = typer.Option(None, "--to", formats=["%Y-%m-%d"]),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List expenses, newest first."""
    with ledger_service(verbose) as service:
        if end is not None:
            end = end.replace(hour=23, minute=59, second=59)
        expenses = service.list_expenses(query=query, category=category, start=start, end=end)
        if not expenses:
            console.print("[yellow]No expenses found.[/yellow]")
            return

        table = Table(title="Expenses", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", width=10)
        table.add_column("Date")
        table.add_column("Description", style="cyan", width=40)
        table.add_column("Category", style="yellow")
        table.add_column("Paid by", justify="center")
        table.add_column("Split")
        table.add_column("Amount", justify="right", width=12)

        for expense in expenses:
            split = expense.split_type.value
            if expense.split_type is SplitType.CUSTOM:
                split = f"{expense.custom_split_a}/{100 - expense.custom_split_a}"
            desc = expense.description
            table.add_row(
                expense.id[:8],
                expense.date.date().isoformat(),
                desc[:40] + "..." if len(desc) > 40 else desc,
                expense.category.value,
                expense.paid_by.value,
                split,
                format_money(expense.amount, use_color=False),
            )

        console.print(table)


@app.command()
def profile(
    partner: Partner | None = typer.Argument(None, help="Partner slot to update"),
    name: str | None = typer.Option(None, "--name"),
    avatar: str | None = typer.Option(None, "--avatar"),
    income: str | None = typer.Option(None, "--income", help="Monthly income"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show member profiles, or update one."""
    with ledger_service(verbose) as service:
        if partner is not None:
            profiles = service.update_profile(
                partner,
                name=name,
                avatar=avatar,
                income=income,
            )
        else:
            profiles = service.get_profiles()

        ratio_a = income_ratio_a(profiles)
        table = Table(title="Members", show_header=True, header_style="bold magenta")
        table.add_column("Partner", justify="center")
        table.add_column("Name", style="cyan")
        table.add_column("Income", justify="right")
        table.add_column("Income split", justify="right")
        for slot, ratio in ((Partner.A, ratio_a), (Partner.B, 1 - ratio_a)):
            member = profiles[slot]
            table.add_row(
                slot.value,
                member.name,
                format_money(member.income, use_color=False),
                f"{ratio:.0%}",
            )
        console.print(table)


@budget_app.command("set")
def budget_set(
    category: Category = typer.Argument(...),
    amount: str = typer.Argument(..., help="Monthly limit"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Set a monthly budget for a category."""
    with ledger_service(verbose) as service:
        budget = service.set_budget(category, amount)
        console.print(f"[green]✓ {category.value} budget: {budget.amount:,.2f}[/green]")


@budget_app.command("show")
def budget_show(
    month: datetime | None = typer.Option(
        None, "--month", "-m", formats=["%Y-%m"], help="Month (default: current)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Compare this month's spending with the category budgets."""
    with ledger_service(verbose) as service:
        report = service.get_budget_report(month.date() if month else None)
        if not report:
            console.print("[yellow]No budgets set.[/yellow]")
            return

        table = Table(title="Budgets", show_header=True, header_style="bold magenta")
        table.add_column("Category", style="yellow")
        table.add_column("Budget", justify="right")
        table.add_column("Spent", justify="right")
        table.add_column("Remaining", justify="right")
        for status in report:
            label = f"⚠️  {status.category.value}" if status.over_budget else status.category.value
            table.add_row(
                label,
                format_money(status.budget, use_color=False),
                format_money(status.spent, use_color=False),
                format_money(status.remaining),
            )
        console.print(table)


@recurring_app.command("add")
def recurring_add(
    description: str = typer.Argument(...),
    amount: str = typer.Argument(...),
    frequency: Frequency = typer.Option(Frequency.MONTHLY, "--frequency", "-f"),
    paid_by: Partner = typer.Option(Partner.A, "--paid-by", "-p"),
    split: SplitType = typer.Option(SplitType.EVEN, "--split", "-s"),
    category: Category = typer.Option(Category.RENT, "--category", "-c"),
    due: datetime | None = typer.Option(
        None, "--due", formats=["%Y-%m-%d"], help="First due date (default: now)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Set up a recurring expense."""
    with ledger_service(verbose) as service:
        template = service.add_recurring_template(
            description=description,
            amount=amount,
            paid_by=paid_by,
            split_type=split,
            category=category,
            frequency=frequency,
            next_due_date=due,
        )
        console.print(
            f"[green]✓ {template.frequency.value} {template.description} "
            f"({template.amount:,.2f}) [dim]{template.id}[/dim][/green]"
        )


@recurring_app.command("list")
def recurring_list(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List recurring expenses."""
    with ledger_service(verbose) as service:
        templates = service.list_recurring_templates()
        if not templates:
            console.print("[yellow]No recurring expenses.[/yellow]")
            return

        table = Table(title="Recurring", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", width=10)
        table.add_column("Description", style="cyan")
        table.add_column("Frequency")
        table.add_column("Next due")
        table.add_column("Amount", justify="right")
        for template in templates:
            next_due = template.next_due_date.date().isoformat()
            if not template.is_active:
                next_due = f"[dim]{next_due} (paused)[/dim]"
            table.add_row(
                template.id[:8],
                template.description,
                template.frequency.value,
                next_due,
                format_money(template.amount, use_color=False),
            )
        console.print(table)

        last_run = service.get_last_recurring_run()
        if last_run is not None:
            console.print(f"[dim]Last checked: {last_run:%Y-%m-%d %H:%M} UTC[/dim]")
        else:
            console.print("[dim]Not checked yet. Run: duo-split recurring run[/dim]")


@recurring_app.command("remove")
def recurring_remove(
    template_id: str = typer.Argument(...),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Remove a recurring expense."""
    with ledger_service(verbose) as service:
        template = service.delete_recurring_template(template_id)
        console.print(f"[green]✓ Removed {template.description}[/green]")


@recurring_app.command("run")
def recurring_run(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add expenses for every recurring template that is due."""
    with ledger_service(verbose) as service:
        result = service.run_recurring()
        style = "green" if result.count else "dim"
        console.print(f"[{style}]{result.summary}[/{style}]")


@recurring_app.command("watch")
def recurring_watch(
    max_runs: int = typer.Option(0, "--max-runs", help="Stop after N checks (0 = forever)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Check for due recurring expenses on a fixed interval."""
    with ledger_service(verbose) as service:
        interval = service.settings.recurring_poll_interval
        console.print(f"[bold blue]Checking recurring expenses every {interval:g}s[/bold blue]")
        runs = 0
        try:
            while True:
                result = service.run_recurring()
                if result.count:
                    console.print(f"[green]{result.summary}[/green]")
                runs += 1
                if max_runs and runs >= max_runs:
                    break
                time.sleep(interval)
        except KeyboardInterrupt:
            console.print("[yellow]Stopped.[/yellow]")


if __name__ == "__main__":
    app()
