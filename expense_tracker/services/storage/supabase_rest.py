"""
Supabase REST Storage Implementation

DESIGN DECISION: Some hosting environments cannot resolve or reach the
database host directly, but can reach the project's HTTPS endpoint.
This backend performs the same operations through PostgREST
(/rest/v1/<table>) instead of a raw SQL connection.

TRADEOFFS:
- One HTTP round trip per operation
- No multi-statement transactions (none are needed)

Numbers in responses are decoded as Decimal so money never passes
through a float.
"""

from decimal import Decimal
from typing import Any, Optional

import httpx
import structlog

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
    StorageError,
    UserDraft,
    as_balance_update,
    as_expense_create,
    as_expense_update,
    as_upsert_user,
)


logger = structlog.get_logger(__name__)

RETURN_REPRESENTATION = {"Prefer": "return=representation"}
UPSERT = {"Prefer": "resolution=merge-duplicates,return=representation"}

NEWEST_FIRST = "date.desc,id.desc"
OLDEST_FIRST = "date.asc,id.asc"


class SupabaseRestStorage(ExpenseStorageInterface):
    """
    PostgREST implementation of expense storage.

    Table and column names match the PostgreSQL backend, so both can
    point at the same database.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the REST client.

        Args:
            base_url: Project URL, e.g. https://<ref>.supabase.co
            api_key: Project API key
            timeout: Per-call HTTP timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict] = None,
        json: Any = None,
        headers: Optional[dict] = None,
    ) -> list[dict]:
        """Issue one PostgREST call and return the decoded rows."""
        try:
            response = await self._client.request(
                method,
                f"/{table}",
                params=params,
                json=json,
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StorageError(
                f"{method} {table} failed with {e.response.status_code}: {e.response.text}"
            )
        except httpx.HTTPError as e:
            raise StorageError(f"{method} {table} failed: {e}")

        if not response.content:
            return []
        return response.json(parse_float=Decimal)

    async def _select_expenses(self, order: str, **filters: str) -> list[Expense]:
        rows = await self._request(
            "GET",
            "expenses",
            params={"select": "*", "order": order, **filters},
        )
        return [Expense.model_validate(row) for row in rows]

    async def get_user(self, user_id: str) -> Optional[User]:
        rows = await self._request(
            "GET",
            "users",
            params={"select": "*", "id": f"eq.{user_id}"},
        )
        return User.model_validate(rows[0]) if rows else None

    async def upsert_user(self, user: UserDraft) -> User:
        data = as_upsert_user(user)
        payload = data.model_dump(mode="json")
        payload["updated_at"] = utc_now().isoformat()
        rows = await self._request("POST", "users", json=payload, headers=UPSERT)
        return User.model_validate(rows[0])

    async def get_all_expenses(self) -> list[Expense]:
        return await self._select_expenses(NEWEST_FIRST)

    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        data = as_expense_create(draft)
        rows = await self._request(
            "POST",
            "expenses",
            json=data.model_dump(mode="json"),
            headers=RETURN_REPRESENTATION,
        )
        return Expense.model_validate(rows[0])

    async def update_expense(
        self,
        expense_id: int,
        partial: ExpensePatch,
    ) -> Optional[Expense]:
        changes = as_expense_update(partial).model_dump(mode="json", exclude_unset=True)
        if not changes:
            rows = await self._request(
                "GET",
                "expenses",
                params={"select": "*", "id": f"eq.{expense_id}"},
            )
        else:
            rows = await self._request(
                "PATCH",
                "expenses",
                params={"id": f"eq.{expense_id}"},
                json=changes,
                headers=RETURN_REPRESENTATION,
            )
        return Expense.model_validate(rows[0]) if rows else None

    async def delete_expense(self, expense_id: int) -> bool:
        rows = await self._request(
            "DELETE",
            "expenses",
            params={"id": f"eq.{expense_id}"},
            headers=RETURN_REPRESENTATION,
        )
        return len(rows) > 0

    async def get_expenses_by_category(self, category: str) -> list[Expense]:
        return await self._select_expenses(NEWEST_FIRST, category=f"eq.{category}")

    async def get_unpaid_expenses(self) -> list[Expense]:
        return await self._select_expenses(OLDEST_FIRST, is_paid="is.false")

    async def mark_expense_as_paid(self, expense_id: int) -> bool:
        rows = await self._request(
            "PATCH",
            "expenses",
            params={"id": f"eq.{expense_id}"},
            json={"is_paid": True},
            headers=RETURN_REPRESENTATION,
        )
        return len(rows) > 0

    async def get_account_balance(self) -> Optional[AccountBalance]:
        rows = await self._request(
            "GET",
            "account_balance",
            params={"select": "*", "id": f"eq.{BALANCE_ID}"},
        )
        return AccountBalance.model_validate(rows[0]) if rows else None

    async def update_account_balance(self, draft: BalanceDraft) -> AccountBalance:
        data = as_balance_update(draft)
        rows = await self._request(
            "POST",
            "account_balance",
            json={
                "id": BALANCE_ID,
                "current_balance": str(data.current_balance),
                "updated_at": utc_now().isoformat(),
            },
            headers=UPSERT,
        )
        return AccountBalance.model_validate(rows[0])
