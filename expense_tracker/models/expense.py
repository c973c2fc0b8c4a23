"""
Core Data Models for Expense Tracker

These models define the schemas for everything that crosses the storage
boundary or the HTTP boundary.

DESIGN DECISION: Money is always Decimal, quantized to cents.
JSON output renders it as a string ("50.00") so no client ever sees a
binary float. Field names are snake_case in Python and in the database,
camelCase on the wire.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel


CENTS = Decimal("0.01")


def _to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS)


def utc_now() -> dt.datetime:
    """Timezone-aware current time, used for every stored timestamp."""
    return dt.datetime.now(dt.timezone.utc)


# DECIMAL(10, 2) in the database
Money = Annotated[
    Decimal,
    Field(max_digits=10, decimal_places=2),
    AfterValidator(_to_cents),
]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class PaymentMethod(str, Enum):
    """Supported payment methods."""
    CASH = "cash"
    CREDIT_CARD = "credit-card"
    DEBIT_CARD = "debit-card"
    INSTANT_TRANSFER = "instant-transfer"
    BANK_TRANSFER = "bank-transfer"


class ApiModel(BaseModel):
    """Shared config: camelCase aliases, snake_case accepted too."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


# =============================================================================
# EXPENSE MODELS
# =============================================================================

class ExpenseCreate(ApiModel):
    """
    Draft of a new expense.

    Category is free text: the UI offers a fixed list but storage does
    not enforce it.
    """

    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Expense category"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="What the money was spent on"
    )
    value: Money = Field(
        ...,
        ge=0,
        description="Amount, exact to the cent"
    )
    date: dt.date = Field(
        ...,
        description="Date of the expense (or due date when unpaid)"
    )
    payment_method: PaymentMethod = Field(
        ...,
        description="How the expense is (or will be) paid"
    )
    is_paid: bool = Field(
        default=True,
        description="False for upcoming expenses"
    )


class ExpenseUpdate(ApiModel):
    """
    Partial update of an expense.

    Only fields that were actually sent are applied. Sending an explicit
    null for a field is rejected rather than clearing it.
    """

    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    value: Optional[Money] = Field(default=None, ge=0)
    date: Optional[dt.date] = None
    payment_method: Optional[PaymentMethod] = None
    is_paid: Optional[bool] = None

    @model_validator(mode='after')
    def reject_explicit_nulls(self) -> 'ExpenseUpdate':
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields the caller supplied, keyed by their snake_case name."""
        return self.model_dump(exclude_unset=True)


class Expense(ExpenseCreate):
    """A stored expense."""

    id: int = Field(..., ge=1, description="Storage-assigned identifier")
    created_at: dt.datetime = Field(
        default_factory=utc_now,
        description="Set once at creation"
    )


# =============================================================================
# ACCOUNT BALANCE
# =============================================================================

BALANCE_ID = 1


class AccountBalanceUpdate(ApiModel):
    """New value for the manually maintained balance."""

    current_balance: Money = Field(
        ...,
        description="Balance available to pay upcoming expenses"
    )


class AccountBalance(AccountBalanceUpdate):
    """
    The balance record.

    There is only ever one of these (id = 1); updating it replaces it.
    """

    id: int = Field(default=BALANCE_ID)
    updated_at: dt.datetime = Field(default_factory=utc_now)


# =============================================================================
# USER MIRROR
# =============================================================================

class UpsertUser(ApiModel):
    """Identity record as handed over by the external auth provider."""

    id: str = Field(..., min_length=1)
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


class User(UpsertUser):
    """Stored identity mirror. Not used for authorization decisions."""

    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
