"""
Derived Figures

DESIGN DECISION: Totals are computed from storage results, never stored.
Every figure is exact Decimal arithmetic so "needed amount" and the
monthly totals never drift by a cent.

The balance projection answers one question: how much money is still
missing to pay every unpaid expense with the current balance?
"""

from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from expense_tracker.models import (
    AccountBalance,
    BalanceProjection,
    CategoryTotal,
    Expense,
    MonthlySummary,
)


ZERO = Decimal("0.00")


def _sum_values(expenses: Iterable[Expense]) -> Decimal:
    return sum((e.value for e in expenses), ZERO)


def project_balance(
    balance: Optional[AccountBalance],
    unpaid: Iterable[Expense],
) -> BalanceProjection:
    """
    Project the balance against unpaid expenses.

    A balance that was never set counts as zero. Paid expenses in
    ``unpaid`` are ignored.

    Returns:
        needed_amount = max(0, total_unpaid - current_balance)
        remaining_after_payments = current_balance - total_unpaid
    """
    current = balance.current_balance if balance else ZERO
    pending = [e for e in unpaid if not e.is_paid]
    total_unpaid = _sum_values(pending)

    return BalanceProjection(
        current_balance=current,
        total_unpaid=total_unpaid,
        unpaid_count=len(pending),
        needed_amount=max(ZERO, total_unpaid - current),
        remaining_after_payments=current - total_unpaid,
    )


def category_totals(expenses: Iterable[Expense]) -> list[CategoryTotal]:
    """Per-category totals, largest first, zero totals left out."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        totals[expense.category] += expense.value

    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [
        CategoryTotal(category=category, total=total)
        for category, total in ranked
        if total > 0
    ]


def monthly_summary(
    expenses: Iterable[Expense],
    year: int,
    month: int,
) -> MonthlySummary:
    """Totals for expenses dated in the given calendar month."""
    in_month = [
        e for e in expenses
        if e.date.year == year and e.date.month == month
    ]

    return MonthlySummary(
        year=year,
        month=month,
        count=len(in_month),
        total=_sum_values(in_month),
        paid=_sum_values(e for e in in_month if e.is_paid),
        unpaid=_sum_values(e for e in in_month if not e.is_paid),
        categories=category_totals(in_month),
    )
