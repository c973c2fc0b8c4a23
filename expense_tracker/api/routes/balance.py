from typing import Optional

from fastapi import APIRouter, Depends

from expense_tracker.api.dependencies import get_storage
from expense_tracker.models import AccountBalance, AccountBalanceUpdate, BalanceProjection
from expense_tracker.queries import project_balance
from expense_tracker.services.storage import ExpenseStorageInterface


router = APIRouter(prefix="/api/account", tags=["account"])


@router.get("/balance", response_model=Optional[AccountBalance])
async def get_balance(storage: ExpenseStorageInterface = Depends(get_storage)):
    return await storage.get_account_balance()


@router.put("/balance", response_model=AccountBalance)
async def update_balance(
    body: AccountBalanceUpdate,
    storage: ExpenseStorageInterface = Depends(get_storage),
):
    return await storage.update_account_balance(body)


@router.get("/projection", response_model=BalanceProjection)
async def get_projection(storage: ExpenseStorageInterface = Depends(get_storage)):
    """Shortfall of the current balance against every unpaid expense."""
    balance = await storage.get_account_balance()
    unpaid = await storage.get_unpaid_expenses()
    return project_balance(balance, unpaid)
