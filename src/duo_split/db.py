"""SQLite database operations for duo-split."""

import sqlite3
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from .models import (
    Budget,
    Category,
    Expense,
    Frequency,
    Ledger,
    MaterializationResult,
    MemberProfile,
    Partner,
    Profiles,
    RecurringTemplate,
    SplitType,
)


class Database:
    """SQLite-backed ledger repository."""

    def __init__(self, db_path: Path | str):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        # Member profiles, one row per partner slot
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS profiles (
                partner TEXT PRIMARY KEY CHECK (partner IN ('A', 'B')),
                name TEXT NOT NULL,
                avatar TEXT NOT NULL DEFAULT '',
                income TEXT NOT NULL DEFAULT '0'
            )
        """
        )

        # Expenses table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id TEXT PRIMARY KEY,
                description TEXT NOT NULL,
                amount TEXT NOT NULL,
                paid_by TEXT NOT NULL,
                split_type TEXT NOT NULL,
                custom_split_a INTEGER,
                category TEXT NOT NULL,
                date TIMESTAMP NOT NULL
            )
        """
        )
        cursor.execute("CREATE INDEX IF NOT EXISTS expenses_date_idx ON expenses (date)")

        # Recurring templates table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS recurring_templates (
                id TEXT PRIMARY KEY,
                description TEXT NOT NULL,
                amount TEXT NOT NULL,
                paid_by TEXT NOT NULL,
                split_type TEXT NOT NULL,
                category TEXT NOT NULL,
                frequency TEXT NOT NULL,
                next_due_date TIMESTAMP NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1
            )
        """
        )

        # Category budgets table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS budgets (
                category TEXT PRIMARY KEY,
                amount TEXT NOT NULL
            )
        """
        )

        # Config table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    def load_ledger(self) -> Ledger:
        """Load a snapshot of everything stored."""
        return Ledger(
            profiles=self.get_profiles(),
            expenses=self.list_expenses(),
            recurring_templates=self.list_recurring_templates(),
            budgets=self.get_budgets(),
        )

    def save_ledger(self, ledger: Ledger):
        """Replace all stored data with the given ledger in one transaction."""
        with self.conn:
            cursor = self.conn.cursor()
            for table in ("profiles", "expenses", "recurring_templates", "budgets"):
                cursor.execute(f"DELETE FROM {table}")
            for partner in Partner:
                self._upsert_profile(cursor, partner, ledger.profiles[partner])
            for expense in ledger.expenses:
                self._upsert_expense(cursor, expense)
            for template in ledger.recurring_templates:
                self._upsert_recurring_template(cursor, template)
            for budget in ledger.budgets:
                self._upsert_budget(cursor, budget)

    def apply_materialization(self, result: MaterializationResult):
        """Store new recurring expenses and advanced templates atomically."""
        with self.conn:
            cursor = self.conn.cursor()
            for expense in result.new_expenses:
                self._upsert_expense(cursor, expense)
            for template in result.updated_templates:
                self._upsert_recurring_template(cursor, template)

    def get_config(self, key: str) -> str | None:
        """Get a config value by key."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM config WHERE key = ?", (key,))
        row = cursor.fetchone()
        return str(row["value"]) if row else None

    def set_config(self, key: str, value: str):
        """Set a config value."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO config (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, value, datetime.now().isoformat()),
        )
        self.conn.commit()

    def get_last_recurring_run(self) -> datetime | None:
        """Get the time of the last recurring materialization run."""
        value = self.get_config("last_recurring_run")
        return datetime.fromisoformat(value) if value else None

    def set_last_recurring_run(self, when: datetime):
        """Set the time of the last recurring materialization run."""
        self.set_config("last_recurring_run", when.isoformat())

    def get_profiles(self) -> Profiles:
        """Get both member profiles, with defaults for unset slots."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT partner, name, avatar, income FROM profiles")
        stored = {
            Partner(row["partner"]): MemberProfile(
                name=row["name"],
                avatar=row["avatar"],
                income=Decimal(row["income"]),
            )
            for row in cursor.fetchall()
        }
        defaults = Profiles()
        return Profiles(
            a=stored.get(Partner.A, defaults.a),
            b=stored.get(Partner.B, defaults.b),
        )

    def save_profile(self, partner: Partner, profile: MemberProfile):
        """Replace the profile in a partner slot."""
        with self.conn:
            self._upsert_profile(self.conn.cursor(), partner, profile)

    def _upsert_profile(self, cursor, partner: Partner, profile: MemberProfile):
        cursor.execute(
            """
            INSERT INTO profiles (partner, name, avatar, income)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(partner) DO UPDATE SET
                name = excluded.name,
                avatar = excluded.avatar,
                income = excluded.income
            """,
            (partner.value, profile.name, profile.avatar, str(profile.income)),
        )

    def list_expenses(self) -> list[Expense]:
        """Get all expenses, newest first."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, description, amount, paid_by, split_type,
                   custom_split_a, category, date
            FROM expenses
            ORDER BY date DESC
            """
        )
        return [self._row_to_expense(row) for row in cursor.fetchall()]

    def get_expense(self, expense_id: str) -> Expense | None:
        """Get an expense by id."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, description, amount, paid_by, split_type,
                   custom_split_a, category, date
            FROM expenses
            WHERE id = ?
            """,
            (expense_id,),
        )
        row = cursor.fetchone()
        return self._row_to_expense(row) if row else None

    def save_expense(self, expense: Expense):
        """Insert or fully replace an expense."""
        with self.conn:
            self._upsert_expense(self.conn.cursor(), expense)

    def delete_expense(self, expense_id: str) -> bool:
        """Delete an expense. Returns False if it did not exist."""
        with self.conn:
            cursor = self.conn.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
        return cursor.rowcount > 0

    def _upsert_expense(self, cursor, expense: Expense):
        cursor.execute(
            """
            INSERT INTO expenses (
                id, description, amount, paid_by, split_type,
                custom_split_a, category, date
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                description = excluded.description,
                amount = excluded.amount,
                paid_by = excluded.paid_by,
                split_type = excluded.split_type,
                custom_split_a = excluded.custom_split_a,
                category = excluded.category,
                date = excluded.date
            """,
            (
                expense.id,
                expense.description,
                str(expense.amount),
                expense.paid_by.value,
                expense.split_type.value,
                expense.custom_split_a,
                expense.category.value,
                expense.date.isoformat(),
            ),
        )

    @staticmethod
    def _row_to_expense(row: sqlite3.Row) -> Expense:
        return Expense(
            id=row["id"],
            description=row["description"],
            amount=Decimal(row["amount"]),
            paid_by=Partner(row["paid_by"]),
            split_type=SplitType(row["split_type"]),
            custom_split_a=row["custom_split_a"],
            category=Category(row["category"]),
            date=datetime.fromisoformat(row["date"]),
        )

    def list_recurring_templates(self) -> list[RecurringTemplate]:
        """Get all recurring templates, soonest due first."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, description, amount, paid_by, split_type, category,
                   frequency, next_due_date, is_active
            FROM recurring_templates
            ORDER BY next_due_date ASC
            """
        )
        return [self._row_to_template(row) for row in cursor.fetchall()]

    def get_recurring_template(self, template_id: str) -> RecurringTemplate | None:
        """Get a recurring template by id."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, description, amount, paid_by, split_type, category,
                   frequency, next_due_date, is_active
            FROM recurring_templates
            WHERE id = ?
            """,
            (template_id,),
        )
        row = cursor.fetchone()
        return self._row_to_template(row) if row else None

    def save_recurring_template(self, template: RecurringTemplate):
        """Insert or fully replace a recurring template."""
        with self.conn:
            self._upsert_recurring_template(self.conn.cursor(), template)

    def delete_recurring_template(self, template_id: str) -> bool:
        """Delete a recurring template. Returns False if it did not exist."""
        with self.conn:
            cursor = self.conn.execute(
                "DELETE FROM recurring_templates WHERE id = ?", (template_id,)
            )
        return cursor.rowcount > 0

    def _upsert_recurring_template(self, cursor, template: RecurringTemplate):
        cursor.execute(
            """
            INSERT INTO recurring_templates (
                id, description, amount, paid_by, split_type, category,
                frequency, next_due_date, is_active
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                description = excluded.description,
                amount = excluded.amount,
                paid_by = excluded.paid_by,
                split_type = excluded.split_type,
                category = excluded.category,
                frequency = excluded.frequency,
                next_due_date = excluded.next_due_date,
                is_active = excluded.is_active
            """,
            (
                template.id,
                template.description,
                str(template.amount),
                template.paid_by.value,
                template.split_type.value,
                template.category.value,
                template.frequency.value,
                template.next_due_date.isoformat(),
                int(template.is_active),
            ),
        )

    @staticmethod
    def _row_to_template(row: sqlite3.Row) -> RecurringTemplate:
        return RecurringTemplate(
            id=row["id"],
            description=row["description"],
            amount=Decimal(row["amount"]),
            paid_by=Partner(row["paid_by"]),
            split_type=SplitType(row["split_type"]),
            category=Category(row["category"]),
            frequency=Frequency(row["frequency"]),
            next_due_date=datetime.fromisoformat(row["next_due_date"]),
            is_active=bool(row["is_active"]),
        )

    def get_budgets(self) -> list[Budget]:
        """Get all category budgets."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT category, amount FROM budgets")
        return [
            Budget(category=Category(row["category"]), amount=Decimal(row["amount"]))
            for row in cursor.fetchall()
        ]

    def set_budget(self, budget: Budget):
        """Insert or update a category budget."""
        with self.conn:
            self._upsert_budget(self.conn.cursor(), budget)

    def _upsert_budget(self, cursor, budget: Budget):
        cursor.execute(
            """
            INSERT INTO budgets (category, amount) VALUES (?, ?)
            ON CONFLICT(category) DO UPDATE SET amount = excluded.amount
            """,
            (budget.category.value, str(budget.amount)),
        )
