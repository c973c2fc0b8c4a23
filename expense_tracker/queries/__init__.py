"""Derived figures and pagination over storage results."""

from expense_tracker.queries.pagination import paginate
from expense_tracker.queries.summary import (
    category_totals,
    monthly_summary,
    project_balance,
)

__all__ = [
    "category_totals",
    "monthly_summary",
    "paginate",
    "project_balance",
]
