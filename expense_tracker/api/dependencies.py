"""
Request-scoped accessors for application-owned objects.

Everything here reads from app.state, which create_app() populates.
Nothing is looked up from module globals.
"""

from fastapi import Request

from expense_tracker.auth import EmailAllowList
from expense_tracker.config import AppSettings
from expense_tracker.services.storage import ExpenseStorageInterface, StorageHandle


def get_storage_handle(request: Request) -> StorageHandle:
    return request.app.state.storage_handle


def get_storage(request: Request) -> ExpenseStorageInterface:
    """The currently active storage backend."""
    return request.app.state.storage_handle.backend


def get_allow_list(request: Request) -> EmailAllowList:
    return request.app.state.allow_list


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.app_settings
