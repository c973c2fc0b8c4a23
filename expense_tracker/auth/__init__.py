"""Authorization package."""

from expense_tracker.auth.allow_list import EmailAllowList, normalize_email

__all__ = ["EmailAllowList", "normalize_email"]
