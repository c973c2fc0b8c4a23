"""
Storage Services Package

Provides the abstract storage interface, three interchangeable
implementations (memory, PostgreSQL, Supabase REST) and the initializer
that picks one at startup.
"""

from expense_tracker.services.storage.interface import (
    BackendUnavailableError,
    ExpenseStorageInterface,
    NotFoundError,
    StorageError,
)
from expense_tracker.services.storage.memory import MemoryStorage
from expense_tracker.services.storage.postgres import PostgresStorage, check_connectivity
from expense_tracker.services.storage.supabase_rest import SupabaseRestStorage
from expense_tracker.services.storage.initializer import (
    BackendKind,
    InitializerState,
    StorageHandle,
    StorageInitializer,
)

__all__ = [
    # Interface
    "ExpenseStorageInterface",
    # Exceptions
    "BackendUnavailableError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "MemoryStorage",
    "PostgresStorage",
    "SupabaseRestStorage",
    "check_connectivity",
    # Selection
    "BackendKind",
    "InitializerState",
    "StorageHandle",
    "StorageInitializer",
]
