"""HTTP API package."""

from expense_tracker.api.app import create_app

__all__ = ["create_app"]
