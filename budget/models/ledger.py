"""
Core Data Models for Budget Tracker

These models define the schemas of the two stored record kinds
(accounts and transactions), the category catalog, and the rate table.
They are designed to:
1. Reject invalid input before it reaches storage
2. Tolerate legacy records where the data is recoverable
3. Serialize to the same camelCase shape the stored records have always used

DESIGN DECISION: Records are Pydantic v2 models. Stored dicts are
produced with `to_record()` and read back with `model_validate()`.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


# Annotation alias for fields that are themselves named "date".
CalendarDate = date


def new_id() -> str:
    """Generate a fresh record identifier."""
    return uuid4().hex


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """Kinds of account a user can hold."""
    CASH = "cash"
    BANK = "bank"
    SAVINGS = "savings"
    CRYPTO = "crypto"


class Currency(str, Enum):
    """Supported account currencies."""
    EUR = "EUR"
    USD = "USD"
    MUR = "MUR"


CURRENCY_SYMBOLS: dict[str, str] = {
    Currency.MUR.value: "Rs",
    Currency.EUR.value: "€",
    Currency.USD.value: "$",
}


class TransactionType(str, Enum):
    """Direction of a transaction. The amount itself is always positive."""
    INCOME = "income"
    EXPENSE = "expense"


class Recurrence(str, Enum):
    """
    Recurrence rule of a transaction.

    Materialized occurrences always carry NONE; only templates recur.
    """
    NONE = "none"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# =============================================================================
# CATEGORY CATALOG
# =============================================================================

class Category(BaseModel):
    """A transaction category with its display metadata."""
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    emoji: str
    color: str
    type: TransactionType


EXPENSE_CATEGORIES: tuple[Category, ...] = tuple(
    Category(id=cid, label=label, emoji=emoji, color=color, type=TransactionType.EXPENSE)
    for cid, label, emoji, color in [
        ("food", "Food", "🍕", "#f97316"),
        ("transport", "Transport", "🚗", "#3b82f6"),
        ("housing", "Housing", "🏠", "#8b5cf6"),
        ("health", "Health", "💊", "#ef4444"),
        ("entertainment", "Entertainment", "🎮", "#ec4899"),
        ("shopping", "Shopping", "🛍️", "#f59e0b"),
        ("utilities", "Utilities", "💡", "#6366f1"),
        ("education", "Education", "📚", "#14b8a6"),
        ("subscriptions", "Subscriptions", "📱", "#a855f7"),
        ("other", "Other", "📌", "#6b7280"),
    ]
)

INCOME_CATEGORIES: tuple[Category, ...] = tuple(
    Category(id=cid, label=label, emoji=emoji, color=color, type=TransactionType.INCOME)
    for cid, label, emoji, color in [
        ("salary", "Salary", "💰", "#10b981"),
        ("freelance", "Freelance", "💻", "#06b6d4"),
        ("investment", "Investment", "📈", "#8b5cf6"),
        ("gift", "Gift", "🎁", "#f43f5e"),
        ("refund", "Refund", "↩️", "#64748b"),
        ("other_income", "Other", "📌", "#6b7280"),
    ]
)

OTHER_EXPENSE_CATEGORY = "other"
OTHER_INCOME_CATEGORY = "other_income"


def categories_for(transaction_type: TransactionType) -> tuple[Category, ...]:
    """Catalog for one transaction type."""
    if transaction_type == TransactionType.INCOME:
        return INCOME_CATEGORIES
    return EXPENSE_CATEGORIES


def default_category_id(transaction_type: TransactionType) -> str:
    """The catch-all category id for a transaction type."""
    if transaction_type == TransactionType.INCOME:
        return OTHER_INCOME_CATEGORY
    return OTHER_EXPENSE_CATEGORY


def resolve_category(
    transaction_type: TransactionType,
    category_id: Optional[str],
) -> Category:
    """
    Look up a category, falling back to the type's "other" bucket.

    Unknown ids come from legacy or hand-edited records and are
    grouped rather than rejected.
    """
    catalog = categories_for(transaction_type)
    for category in catalog:
        if category.id == category_id:
            return category
    fallback = default_category_id(transaction_type)
    return next(c for c in catalog if c.id == fallback)


# =============================================================================
# STORED RECORDS
# =============================================================================

class _Record(BaseModel):
    """Shared configuration for stored records."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator('created_at', mode='after', check_fields=False)
    @classmethod
    def naive_utc(cls, v: datetime) -> datetime:
        """Stored timestamps may carry a 'Z' suffix; keep everything naive UTC."""
        if v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    def to_record(self) -> dict:
        """Serialize to the JSON-compatible dict kept in storage."""
        return self.model_dump(mode="json", by_alias=True)


class Account(_Record):
    """
    A place money is kept.

    The balance is never stored; it is derived from the initial
    balance and the transactions referencing the account.
    """

    id: str = Field(
        default_factory=new_id,
        description="Stable unique account ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    type: AccountType = Field(
        default=AccountType.BANK,
        description="Kind of account"
    )
    currency: Currency = Field(
        default=Currency.EUR,
        description="Currency the account is held in"
    )
    initial_balance: Decimal = Field(
        default=Decimal("0"),
        description="Signed opening balance"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the account was created"
    )

    @field_validator('initial_balance', mode='before')
    @classmethod
    def coerce_initial_balance(cls, v) -> Decimal:
        """A missing or unparseable opening balance counts as zero."""
        if v is None or isinstance(v, bool):
            return Decimal("0")
        try:
            value = Decimal(str(v).strip())
        except (InvalidOperation, ValueError):
            return Decimal("0")
        if not value.is_finite():
            return Decimal("0")
        return value


class Transaction(_Record):
    """
    One income or expense entry.

    CRITICAL: amount is always strictly positive. The sign is implied
    by `type`, so a non-positive amount never reaches storage.
    """

    id: str = Field(
        default_factory=new_id,
        description="Unique transaction ID"
    )
    type: TransactionType = Field(
        ...,
        description="Income or expense"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive magnitude in the account's currency"
    )
    category: str = Field(
        default="",
        max_length=50,
        description="Category id from the type's catalog"
    )
    account_id: Optional[str] = Field(
        default=None,
        description="Owning account (may dangle after an external edit)"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Free-text note"
    )
    date: CalendarDate = Field(
        default_factory=date.today,
        description="Calendar date of the transaction"
    )
    recurring: Recurrence = Field(
        default=Recurrence.NONE,
        description="Recurrence rule"
    )
    recurring_parent: Optional[str] = Field(
        default=None,
        description="Template ID, set only on materialized occurrences"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Creation time, used to order same-day entries"
    )

    @field_validator('recurring', mode='before')
    @classmethod
    def default_recurring(cls, v):
        return v or Recurrence.NONE

    @model_validator(mode='after')
    def default_category(self) -> 'Transaction':
        """Blank category falls into the type's catch-all bucket."""
        if not self.category:
            self.category = default_category_id(self.type)
        return self

    @property
    def signed_amount(self) -> Decimal:
        """Amount with income positive and expense negative."""
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount

    @property
    def is_template(self) -> bool:
        return self.recurring != Recurrence.NONE


# =============================================================================
# RATE TABLE
# =============================================================================

class RateTable(BaseModel):
    """
    Price of each currency in units of the reference currency.

    With base EUR, {"USD": 1.08} means 1 EUR buys 1.08 USD, so
    converting USD to EUR divides by 1.08.
    """
    model_config = ConfigDict(frozen=True)

    base: str = Field(
        default=Currency.EUR.value,
        description="Reference currency"
    )
    rates: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Currency code -> rate against the base"
    )
    source: str = Field(
        default="default",
        description="Where the rates came from (default or provider name)"
    )
    fetched_at: Optional[datetime] = None

    @field_validator('rates')
    @classmethod
    def rates_must_be_positive(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        for code, rate in v.items():
            if rate <= 0:
                raise ValueError(f"Rate for {code} must be positive, got {rate}")
        return v

    @model_validator(mode='after')
    def base_rate_is_one(self) -> 'RateTable':
        if self.rates.get(self.base) != Decimal("1"):
            rates = dict(self.rates)
            rates[self.base] = Decimal("1")
            object.__setattr__(self, "rates", rates)
        return self

    def rate_for(self, currency: str) -> Decimal:
        """Rate for a currency; unknown currencies are treated as the base."""
        return self.rates.get(currency, Decimal("1"))
