"""
In-Memory Storage Implementation

The correctness baseline and the guaranteed fallback when no database
is reachable. Everything lives in process memory and is lost on restart.

No locks: the service runs on a single event loop and none of these
methods await, so two requests can never interleave inside one call.
"""

from typing import Optional

from expense_tracker.models import (
    BALANCE_ID,
    AccountBalance,
    Expense,
    User,
    utc_now,
)
from expense_tracker.services.storage.interface import (
    BalanceDraft,
    ExpenseDraft,
    ExpensePatch,
    ExpenseStorageInterface,
    UserDraft,
    as_balance_update,
    as_expense_create,
    as_expense_update,
    as_upsert_user,
)


def _newest_first(expenses: list[Expense]) -> list[Expense]:
    return sorted(expenses, key=lambda e: (e.date, e.id), reverse=True)


def _oldest_first(expenses: list[Expense]) -> list[Expense]:
    return sorted(expenses, key=lambda e: (e.date, e.id))


class MemoryStorage(ExpenseStorageInterface):
    """
    Dict-backed storage.

    Records are copied on the way in and out so callers can never
    mutate what is stored.
    """

    def __init__(self):
        self._users: dict[str, User] = {}
        self._expenses: dict[int, Expense] = {}
        self._next_expense_id = 1
        self._balance: Optional[AccountBalance] = None

    async def get_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def upsert_user(self, user: UserDraft) -> User:
        data = as_upsert_user(user)
        now = utc_now()
        existing = self._users.get(data.id)
        stored = User(
            **data.model_dump(),
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self._users[data.id] = stored
        return stored.model_copy()

    async def get_all_expenses(self) -> list[Expense]:
        return [e.model_copy() for e in _newest_first(list(self._expenses.values()))]

    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        data = as_expense_create(draft)
        expense = Expense(
            **data.model_dump(),
            id=self._next_expense_id,
            created_at=utc_now(),
        )
        self._next_expense_id += 1
        self._expenses[expense.id] = expense
        return expense.model_copy()

    async def update_expense(
        self,
        expense_id: int,
        partial: ExpensePatch,
    ) -> Optional[Expense]:
        changes = as_expense_update(partial).changes()
        expense = self._expenses.get(expense_id)
        if expense is None:
            return None

        updated = expense.model_copy(update=changes)
        self._expenses[expense_id] = updated
        return updated.model_copy()

    async def delete_expense(self, expense_id: int) -> bool:
        return self._expenses.pop(expense_id, None) is not None

    async def get_expenses_by_category(self, category: str) -> list[Expense]:
        matching = [e for e in self._expenses.values() if e.category == category]
        return [e.model_copy() for e in _newest_first(matching)]

    async def get_unpaid_expenses(self) -> list[Expense]:
        unpaid = [e for e in self._expenses.values() if not e.is_paid]
        return [e.model_copy() for e in _oldest_first(unpaid)]

    async def mark_expense_as_paid(self, expense_id: int) -> bool:
        expense = self._expenses.get(expense_id)
        if expense is None:
            return False
        self._expenses[expense_id] = expense.model_copy(update={"is_paid": True})
        return True

    async def get_account_balance(self) -> Optional[AccountBalance]:
        return self._balance.model_copy() if self._balance else None

    async def update_account_balance(self, draft: BalanceDraft) -> AccountBalance:
        data = as_balance_update(draft)
        self._balance = AccountBalance(
            id=BALANCE_ID,
            current_balance=data.current_balance,
            updated_at=utc_now(),
        )
        return self._balance.model_copy()
