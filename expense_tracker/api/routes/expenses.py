"""
Expense routes.

Each handler makes exactly one storage call and maps the outcome to a
status code: 201 on create, 404 when the target id does not exist.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from expense_tracker.api.dependencies import get_app_settings, get_storage
from expense_tracker.config import AppSettings
from expense_tracker.models import (
    Expense,
    ExpenseCreate,
    ExpensePage,
    ExpenseUpdate,
    MonthlySummary,
    utc_now,
)
from expense_tracker.queries import monthly_summary, paginate
from expense_tracker.services.storage import ExpenseStorageInterface, NotFoundError


router = APIRouter(prefix="/api/expenses", tags=["expenses"])

# SERIAL column range; larger ids are rejected before reaching storage
MAX_EXPENSE_ID = 2_147_483_647


def _page_size(limit: Optional[int], default: int, settings: AppSettings) -> int:
    if limit is None:
        return default
    return min(limit, settings.max_page_size)


@router.get("", response_model=ExpensePage)
async def list_expenses(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    storage: ExpenseStorageInterface = Depends(get_storage),
    settings: AppSettings = Depends(get_app_settings),
):
    expenses = await storage.get_all_expenses()
    return paginate(expenses, page, _page_size(limit, settings.default_page_size, settings))


@router.get("/unpaid", response_model=ExpensePage)
async def list_unpaid_expenses(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    storage: ExpenseStorageInterface = Depends(get_storage),
    settings: AppSettings = Depends(get_app_settings),
):
    expenses = await storage.get_unpaid_expenses()
    return paginate(
        expenses,
        page,
        _page_size(limit, settings.default_unpaid_page_size, settings),
    )


@router.get("/summary", response_model=MonthlySummary)
async def get_monthly_summary(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    storage: ExpenseStorageInterface = Depends(get_storage),
):
    today = utc_now().date()
    expenses = await storage.get_all_expenses()
    return monthly_summary(expenses, year or today.year, month or today.month)


@router.get("/category/{category}", response_model=list[Expense])
async def list_expenses_by_category(
    category: str,
    storage: ExpenseStorageInterface = Depends(get_storage),
):
    return await storage.get_expenses_by_category(category)


@router.post("", response_model=Expense, status_code=201)
async def create_expense(
    body: ExpenseCreate,
    storage: ExpenseStorageInterface = Depends(get_storage),
):
    return await storage.create_expense(body)


@router.put("/{expense_id}", response_model=Expense)
async def update_expense(
    body: ExpenseUpdate,
    expense_id: int = Path(..., ge=1, le=MAX_EXPENSE_ID),
    storage: ExpenseStorageInterface = Depends(get_storage),
):
    expense = await storage.update_expense(expense_id, body)
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int = Path(..., ge=1, le=MAX_EXPENSE_ID),
    storage: ExpenseStorageInterface = Depends(get_storage),
) -> dict:
    if not await storage.delete_expense(expense_id):
        raise NotFoundError("Expense not found")
    return {"message": "Expense deleted"}


@router.patch("/{expense_id}/paid")
async def mark_expense_paid(
    expense_id: int = Path(..., ge=1, le=MAX_EXPENSE_ID),
    storage: ExpenseStorageInterface = Depends(get_storage),
) -> dict:
    if not await storage.mark_expense_as_paid(expense_id):
        raise NotFoundError("Expense not found")
    return {"message": "Expense marked as paid"}
