"""
PostgreSQL Storage Implementation

Talks to the database directly through asyncpg. Used when the REST
surface is unreachable but a raw connection works.

Tables are created idempotently the first time the pool is opened, so
an empty database is usable straight away.
"""

import asyncio
from collections.abc import Mapping
from typing import Any, Optional

import asyncpg
import structlog

from expense_tracker.models import (
    BALANCE_ID,
    AccountBalance,
    Expense,
    User,
)
from expense_tracker.services.storage.interface import (
    BackendUnavailableError,
    BalanceDraft,
    ExpenseDraft,
    ExpensePatch,
    ExpenseStorageInterface,
    StorageError,
    UserDraft,
    as_balance_update,
    as_expense_create,
    as_expense_update,
    as_upsert_user,
)


logger = structlog.get_logger(__name__)

DRIVER_ERRORS = (OSError, asyncpg.PostgresError, asyncpg.InterfaceError)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id VARCHAR PRIMARY KEY,
    email VARCHAR UNIQUE,
    first_name VARCHAR,
    last_name VARCHAR,
    profile_image_url VARCHAR,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS expenses (
    id SERIAL PRIMARY KEY,
    category TEXT NOT NULL,
    description TEXT NOT NULL,
    value DECIMAL(10, 2) NOT NULL CHECK (value >= 0),
    date DATE NOT NULL,
    payment_method TEXT NOT NULL,
    is_paid BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS account_balance (
    id INTEGER PRIMARY KEY,
    current_balance DECIMAL(10, 2) NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);
CREATE INDEX IF NOT EXISTS idx_expenses_category ON expenses(category);
"""

EXPENSE_COLUMNS = (
    "category",
    "description",
    "value",
    "date",
    "payment_method",
    "is_paid",
)

SELECT_EXPENSES = (
    "SELECT id, category, description, value, date, payment_method, "
    "is_paid, created_at FROM expenses"
)


def build_update(expense_id: int, changes: Mapping[str, Any]) -> tuple[str, list]:
    """
    Build a parameterized UPDATE for the supplied columns.

    Column names come from a fixed whitelist; values are always bound.
    """
    columns = [c for c in EXPENSE_COLUMNS if c in changes]
    if not columns:
        raise ValueError("No columns to update")

    assignments = ", ".join(
        f"{column} = ${index}" for index, column in enumerate(columns, start=1)
    )
    query = (
        f"UPDATE expenses SET {assignments} "
        f"WHERE id = ${len(columns) + 1} "
        "RETURNING id, category, description, value, date, payment_method, "
        "is_paid, created_at"
    )
    return query, [changes[c] for c in columns] + [expense_id]


def _row_to_expense(row: Mapping) -> Expense:
    return Expense.model_validate(dict(row))


async def check_connectivity(dsn: str, ssl: Any = "require", timeout: float = 5.0) -> bool:
    """
    Open a throwaway connection and run SELECT 1.

    Returns False instead of raising so callers can use it as a probe.
    """
    conn = None
    try:
        conn = await asyncpg.connect(dsn, ssl=ssl, timeout=timeout)
        await conn.fetchval("SELECT 1")
        return True
    except (*DRIVER_ERRORS, ValueError, asyncio.TimeoutError) as e:
        logger.warning("postgres_connectivity_failed", error=str(e))
        return False
    finally:
        if conn is not None:
            await conn.close()


class PostgresStorage(ExpenseStorageInterface):
    """
    asyncpg implementation of expense storage.

    The pool is opened lazily on first use; close() releases it.
    """

    def __init__(
        self,
        dsn: str,
        ssl: Any = "require",
        min_size: int = 1,
        max_size: int = 5,
    ):
        self._dsn = dsn
        self._ssl = ssl
        self._min_size = min_size
        self._max_size = max_size
        self._pool: Optional[asyncpg.Pool] = None

    async def _get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            try:
                pool = await asyncpg.create_pool(
                    self._dsn,
                    ssl=self._ssl,
                    min_size=self._min_size,
                    max_size=self._max_size,
                )
            except DRIVER_ERRORS as e:
                raise BackendUnavailableError(f"Failed to connect to PostgreSQL: {e}")

            try:
                async with pool.acquire() as conn:
                    await conn.execute(SCHEMA_SQL)
            except DRIVER_ERRORS as e:
                await pool.close()
                raise StorageError(f"Failed to create tables: {e}")

            self._pool = pool
            logger.info("postgres_schema_ready")
        return self._pool

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def _fetch(self, query: str, *args) -> list:
        pool = await self._get_pool()
        try:
            return await pool.fetch(query, *args)
        except DRIVER_ERRORS as e:
            raise StorageError(f"Query failed: {e}")

    async def _fetchrow(self, query: str, *args):
        pool = await self._get_pool()
        try:
            return await pool.fetchrow(query, *args)
        except DRIVER_ERRORS as e:
            raise StorageError(f"Query failed: {e}")

    async def get_user(self, user_id: str) -> Optional[User]:
        row = await self._fetchrow("SELECT * FROM users WHERE id = $1", user_id)
        return User.model_validate(dict(row)) if row else None

    async def upsert_user(self, user: UserDraft) -> User:
        data = as_upsert_user(user)
        row = await self._fetchrow(
            """
            INSERT INTO users (id, email, first_name, last_name, profile_image_url)
            VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (id) DO UPDATE SET
                email = EXCLUDED.email,
                first_name = EXCLUDED.first_name,
                last_name = EXCLUDED.last_name,
                profile_image_url = EXCLUDED.profile_image_url,
                updated_at = NOW()
            RETURNING *
            """,
            data.id,
            data.email,
            data.first_name,
            data.last_name,
            data.profile_image_url,
        )
        return User.model_validate(dict(row))

    async def get_all_expenses(self) -> list[Expense]:
        rows = await self._fetch(f"{SELECT_EXPENSES} ORDER BY date DESC, id DESC")
        return [_row_to_expense(row) for row in rows]

    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        data = as_expense_create(draft)
        row = await self._fetchrow(
            """
            INSERT INTO expenses
                (category, description, value, date, payment_method, is_paid)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING id, category, description, value, date, payment_method,
                      is_paid, created_at
            """,
            data.category,
            data.description,
            data.value,
            data.date,
            data.payment_method,
            data.is_paid,
        )
        return _row_to_expense(row)

    async def update_expense(
        self,
        expense_id: int,
        partial: ExpensePatch,
    ) -> Optional[Expense]:
        changes = as_expense_update(partial).changes()
        if not changes:
            row = await self._fetchrow(f"{SELECT_EXPENSES} WHERE id = $1", expense_id)
        else:
            query, args = build_update(expense_id, changes)
            row = await self._fetchrow(query, *args)
        return _row_to_expense(row) if row else None

    async def delete_expense(self, expense_id: int) -> bool:
        row = await self._fetchrow(
            "DELETE FROM expenses WHERE id = $1 RETURNING id",
            expense_id,
        )
        return row is not None

    async def get_expenses_by_category(self, category: str) -> list[Expense]:
        rows = await self._fetch(
            f"{SELECT_EXPENSES} WHERE category = $1 ORDER BY date DESC, id DESC",
            category,
        )
        return [_row_to_expense(row) for row in rows]

    async def get_unpaid_expenses(self) -> list[Expense]:
        rows = await self._fetch(
            f"{SELECT_EXPENSES} WHERE is_paid = FALSE ORDER BY date ASC, id ASC"
        )
        return [_row_to_expense(row) for row in rows]

    async def mark_expense_as_paid(self, expense_id: int) -> bool:
        row = await self._fetchrow(
            "UPDATE expenses SET is_paid = TRUE WHERE id = $1 RETURNING id",
            expense_id,
        )
        return row is not None

    async def get_account_balance(self) -> Optional[AccountBalance]:
        row = await self._fetchrow(
            "SELECT id, current_balance, updated_at FROM account_balance WHERE id = $1",
            BALANCE_ID,
        )
        return AccountBalance.model_validate(dict(row)) if row else None

    async def update_account_balance(self, draft: BalanceDraft) -> AccountBalance:
        data = as_balance_update(draft)
        row = await self._fetchrow(
            """
            INSERT INTO account_balance (id, current_balance, updated_at)
            VALUES ($1, $2, NOW())
            ON CONFLICT (id) DO UPDATE SET
                current_balance = EXCLUDED.current_balance,
                updated_at = NOW()
            RETURNING id, current_balance, updated_at
            """,
            BALANCE_ID,
            data.current_balance,
        )
        return AccountBalance.model_validate(dict(row))
