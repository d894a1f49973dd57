"""Custom exceptions for duo-split."""


class DuoSplitError(Exception):
    """Base exception for all duo-split errors."""

    pass


class ConfigurationError(DuoSplitError):
    """Raised when configuration is invalid or missing."""

    pass


class NotFoundError(DuoSplitError):
    """Base class for lookups of records that do not exist."""

    kind = "Record"

    def __init__(self, record_id: str, message: str | None = None):
        self.record_id = record_id
        super().__init__(message or f"{self.kind} {record_id} not found")


class ExpenseNotFoundError(NotFoundError):
    """Raised when an expense id does not exist in the ledger."""

    kind = "Expense"


class RecurringTemplateNotFoundError(NotFoundError):
    """Raised when a recurring template id does not exist in the ledger."""

    kind = "Recurring expense"
