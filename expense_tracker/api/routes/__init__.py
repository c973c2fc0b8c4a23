"""HTTP route modules, one APIRouter each."""

from expense_tracker.api.routes import admin, auth, balance, expenses, health

__all__ = ["admin", "auth", "balance", "expenses", "health"]
