"""
Derived views over stored expenses.

None of these are persisted: they are recomputed from storage results
on every request.
"""

from decimal import Decimal

from pydantic import Field

from expense_tracker.models.expense import ApiModel, Expense


class ExpensePage(ApiModel):
    """One page of an expense listing."""

    items: list[Expense] = Field(default_factory=list)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0, description="Items across all pages")
    total_pages: int = Field(..., ge=0)


class BalanceProjection(ApiModel):
    """
    How far the current balance goes against unpaid expenses.

    needed_amount is never negative; remaining_after_payments can be.
    """

    current_balance: Decimal
    total_unpaid: Decimal
    unpaid_count: int = Field(..., ge=0)
    needed_amount: Decimal
    remaining_after_payments: Decimal


class CategoryTotal(ApiModel):
    category: str
    total: Decimal


class MonthlySummary(ApiModel):
    """Totals for a calendar month, split by paid status and category."""

    year: int
    month: int = Field(..., ge=1, le=12)
    count: int = Field(..., ge=0)
    total: Decimal
    paid: Decimal
    unpaid: Decimal
    categories: list[CategoryTotal] = Field(default_factory=list)
