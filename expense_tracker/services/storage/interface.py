"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Pick PostgreSQL, the Supabase REST API or memory at startup
2. Use in-memory storage for testing
3. Keep route handlers decoupled from storage implementation

Callers must not be able to tell which backend is active except by
latency and availability.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Optional, Union

from expense_tracker.models import (
    AccountBalance,
    AccountBalanceUpdate,
    Expense,
    ExpenseCreate,
    ExpenseUpdate,
    UpsertUser,
    User,
)


ExpenseDraft = Union[ExpenseCreate, Mapping]
ExpensePatch = Union[ExpenseUpdate, Mapping]
BalanceDraft = Union[AccountBalanceUpdate, Mapping]
UserDraft = Union[UpsertUser, Mapping]


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense, balance and user storage.

    Any storage implementation (memory, PostgreSQL, REST, ...)
    must implement these methods.
    """

    # -------------------------------------------------------------------------
    # User mirror
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        """Get a mirrored identity record, None if unknown."""
        pass

    @abstractmethod
    async def upsert_user(self, user: UserDraft) -> User:
        """Insert or replace a mirrored identity record."""
        pass

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_all_expenses(self) -> list[Expense]:
        """
        List every expense.

        Returns:
            Expenses ordered by date, newest first
        """
        pass

    @abstractmethod
    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        """
        Store a new expense.

        Args:
            draft: The expense to create. is_paid defaults to True.

        Returns:
            The stored expense with id and created_at assigned

        Raises:
            pydantic.ValidationError: If required fields are missing
            StorageError: If the backend fails
        """
        pass

    @abstractmethod
    async def update_expense(
        self,
        expense_id: int,
        partial: ExpensePatch,
    ) -> Optional[Expense]:
        """
        Merge the supplied fields onto an existing expense.

        Args:
            expense_id: The expense to update
            partial: Only the fields to change

        Returns:
            The updated expense, or None if the id is unknown
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: int) -> bool:
        """
        Delete an expense.

        Returns:
            True if a record existed and was removed
        """
        pass

    @abstractmethod
    async def get_expenses_by_category(self, category: str) -> list[Expense]:
        """List expenses in one category, newest first."""
        pass

    @abstractmethod
    async def get_unpaid_expenses(self) -> list[Expense]:
        """
        List unpaid expenses.

        Returns:
            Unpaid expenses ordered by date, oldest (soonest due) first
        """
        pass

    @abstractmethod
    async def mark_expense_as_paid(self, expense_id: int) -> bool:
        """
        Set is_paid on an expense. Idempotent.

        Returns:
            False if the id is unknown
        """
        pass

    # -------------------------------------------------------------------------
    # Account balance
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_account_balance(self) -> Optional[AccountBalance]:
        """Get the balance record, None if it was never set."""
        pass

    @abstractmethod
    async def update_account_balance(self, draft: BalanceDraft) -> AccountBalance:
        """Replace the balance record and refresh updated_at."""
        pass

    async def close(self) -> None:
        """Release connections held by the backend."""
        return None


def as_expense_create(draft: ExpenseDraft) -> ExpenseCreate:
    if isinstance(draft, ExpenseCreate):
        return draft
    return ExpenseCreate.model_validate(draft)


def as_expense_update(partial: ExpensePatch) -> ExpenseUpdate:
    if isinstance(partial, ExpenseUpdate):
        return partial
    return ExpenseUpdate.model_validate(partial)


def as_balance_update(draft: BalanceDraft) -> AccountBalanceUpdate:
    if isinstance(draft, AccountBalanceUpdate):
        return draft
    return AccountBalanceUpdate.model_validate(draft)


def as_upsert_user(user: UserDraft) -> UpsertUser:
    if isinstance(user, UpsertUser):
        return user
    return UpsertUser.model_validate(user)


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class BackendUnavailableError(StorageError):
    """Could not reach the storage backend."""
    pass
