"""Pydantic domain models for duo-split."""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

CENTS = Decimal("0.01")
# Largest money value stored (ten digits, two of them after the point)
MAX_AMOUNT = Decimal("99999999.99")


def new_id() -> str:
    """Generate a fresh record identifier."""
    return uuid4().hex


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def to_cents(amount: Decimal) -> Decimal:
    """Quantize a Decimal amount to cents using ROUND_HALF_UP."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def as_aware(value: datetime) -> datetime:
    """Normalize to aware UTC; naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# ============================================================================
# Enums
# ============================================================================


class Partner(str, Enum):
    """The two fixed member slots of a workspace."""

    A = "A"
    B = "B"

    @property
    def other(self) -> "Partner":
        return Partner.B if self is Partner.A else Partner.A


class SplitType(str, Enum):
    """How an expense is divided between the partners."""

    EVEN = "50/50"
    INCOME = "income"
    CUSTOM = "custom"


class Category(str, Enum):
    """Expense category (opaque to the settlement engine)."""

    GROCERIES = "Groceries"
    RENT = "Rent"
    UTILITIES = "Utilities"
    FUN = "Fun"
    GAS = "Gas"
    PET = "Pet"
    HEALTH = "Health"
    OTHER = "Other"


class Frequency(str, Enum):
    """How often a recurring template comes due."""

    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


# ============================================================================
# Member Models
# ============================================================================


class MemberProfile(BaseModel):
    """A partner's profile within the workspace."""

    name: str = Field(min_length=1, max_length=255)
    avatar: str = ""  # opaque reference, never interpreted here
    income: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_AMOUNT)  # monthly


class Profiles(BaseModel):
    """The pair of member profiles, one per partner slot."""

    a: MemberProfile = Field(default_factory=lambda: MemberProfile(name="Partner A"))
    b: MemberProfile = Field(default_factory=lambda: MemberProfile(name="Partner B"))

    def __getitem__(self, partner: Partner) -> MemberProfile:
        return self.a if partner is Partner.A else self.b

    @property
    def total_income(self) -> Decimal:
        return self.a.income + self.b.income


# ============================================================================
# Expense Models
# ============================================================================


class _SplitRecord(BaseModel):
    """Fields shared by expenses and recurring templates."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_id)
    description: str = Field(min_length=1, max_length=500)
    amount: Decimal = Field(gt=0, le=MAX_AMOUNT)
    paid_by: Partner
    split_type: SplitType = SplitType.EVEN
    category: Category = Category.OTHER

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Description must not be blank")
        return v

    @field_validator("amount")
    @classmethod
    def quantize_amount(cls, v: Decimal) -> Decimal:
        """Store amounts in cents; reject amounts that round to zero."""
        v = to_cents(v)
        if v <= 0:
            raise ValueError("Amount must be at least 0.01")
        return v


class Expense(_SplitRecord):
    """A concrete shared expense.

    ``custom_split_a`` is A's percentage of the amount. It is present if and
    only if ``split_type`` is ``custom``.
    """

    custom_split_a: int | None = Field(default=None, ge=0, le=100)
    date: datetime = Field(default_factory=utcnow)

    @field_validator("date")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        return as_aware(v)

    @model_validator(mode="after")
    def check_custom_split(self) -> "Expense":
        if self.split_type is SplitType.CUSTOM and self.custom_split_a is None:
            raise ValueError("custom_split_a is required for a custom split")
        if self.split_type is not SplitType.CUSTOM and self.custom_split_a is not None:
            raise ValueError("custom_split_a is only allowed for a custom split")
        return self


class RecurringTemplate(_SplitRecord):
    """Blueprint for an expense that repeats weekly or monthly."""

    frequency: Frequency = Frequency.MONTHLY
    next_due_date: datetime = Field(default_factory=utcnow)
    is_active: bool = True

    @field_validator("next_due_date")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        return as_aware(v)

    def is_due(self, now: datetime) -> bool:
        return self.is_active and self.next_due_date <= now


class Budget(BaseModel):
    """Monthly spending limit for one category."""

    category: Category
    amount: Decimal = Field(ge=0, le=MAX_AMOUNT)

    @field_validator("amount")
    @classmethod
    def quantize_amount(cls, v: Decimal) -> Decimal:
        return to_cents(v)


# ============================================================================
# Derived Models
# ============================================================================


class PartnerContribution(BaseModel):
    """What one partner paid, what they are responsible for, and the difference."""

    paid: Decimal = Decimal("0")
    owed: Decimal = Decimal("0")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def net(self) -> Decimal:
        return self.paid - self.owed


class SettlementResult(BaseModel):
    """Net debt between the partners.

    Sign convention: a positive ``balance`` means B owes A, a negative one means
    A owes B. ``contributions`` is an independent per-partner view computed in
    the same pass; it is reported alongside the balance, never derived from it.
    """

    balance: Decimal
    owed_text: str
    owed_amount: Decimal
    contributions: dict[Partner, PartnerContribution]
    total_expenses: Decimal = Decimal("0")

    @property
    def is_settled(self) -> bool:
        return self.owed_amount == 0

    @property
    def debtor(self) -> Partner | None:
        if self.is_settled:
            return None
        return Partner.B if self.balance > 0 else Partner.A

    @property
    def creditor(self) -> Partner | None:
        debtor = self.debtor
        return debtor.other if debtor else None


class MaterializationResult(BaseModel):
    """Output of one recurring-materializer invocation."""

    new_expenses: list[Expense] = Field(default_factory=list)
    updated_templates: list[RecurringTemplate] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.new_expenses)

    @property
    def summary(self) -> str:
        return f"Added {self.count} recurring expense(s)"


class BudgetStatus(BaseModel):
    """Spending against a category budget for one month."""

    category: Category
    budget: Decimal
    spent: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.budget - self.spent

    @property
    def over_budget(self) -> bool:
        return self.spent > self.budget


class Ledger(BaseModel):
    """Everything stored for one workspace."""

    profiles: Profiles = Field(default_factory=Profiles)
    expenses: list[Expense] = Field(default_factory=list)
    recurring_templates: list[RecurringTemplate] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)
