"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing through storage and the HTTP API must conform to these schemas.
"""

from expense_tracker.models.expense import (
    BALANCE_ID,
    AccountBalance,
    AccountBalanceUpdate,
    Expense,
    ExpenseCreate,
    ExpenseUpdate,
    PaymentMethod,
    UpsertUser,
    User,
    utc_now,
)
from expense_tracker.models.reports import (
    BalanceProjection,
    CategoryTotal,
    ExpensePage,
    MonthlySummary,
)

__all__ = [
    # Expense models
    "BALANCE_ID",
    "AccountBalance",
    "AccountBalanceUpdate",
    "Expense",
    "ExpenseCreate",
    "ExpenseUpdate",
    "PaymentMethod",
    "UpsertUser",
    "User",
    "utc_now",
    # Derived views
    "BalanceProjection",
    "CategoryTotal",
    "ExpensePage",
    "MonthlySummary",
]
