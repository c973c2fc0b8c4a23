"""
Page slicing for expense listings.

Pages are 1-based. Asking for a page past the end returns an empty
page with the real totals, so clients can still render navigation.
"""

import math
from collections.abc import Sequence

from expense_tracker.models import Expense, ExpensePage


def paginate(expenses: Sequence[Expense], page: int, limit: int) -> ExpensePage:
    """
    Slice an already-ordered list of expenses.

    Args:
        expenses: Expenses in display order
        page: 1-based page number
        limit: Page size

    Returns:
        The requested page plus totals across all pages
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    if limit < 1:
        raise ValueError("limit must be >= 1")

    start = (page - 1) * limit
    return ExpensePage(
        items=list(expenses[start:start + limit]),
        page=page,
        limit=limit,
        total=len(expenses),
        total_pages=math.ceil(len(expenses) / limit),
    )
