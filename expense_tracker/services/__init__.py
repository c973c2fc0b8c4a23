"""Services package."""

from expense_tracker.services.storage import (
    BackendKind,
    BackendUnavailableError,
    ExpenseStorageInterface,
    InitializerState,
    MemoryStorage,
    NotFoundError,
    PostgresStorage,
    StorageError,
    StorageHandle,
    StorageInitializer,
    SupabaseRestStorage,
)

__all__ = [
    "BackendKind",
    "BackendUnavailableError",
    "ExpenseStorageInterface",
    "InitializerState",
    "MemoryStorage",
    "NotFoundError",
    "PostgresStorage",
    "StorageError",
    "StorageHandle",
    "StorageInitializer",
    "SupabaseRestStorage",
]
