"""
Shared fixtures.

No test touches the network: the API runs on MemoryStorage and the
REST backend is driven through httpx.MockTransport.
"""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from expense_tracker.api import create_app
from expense_tracker.auth import EmailAllowList
from expense_tracker.models import ExpenseCreate, PaymentMethod
from expense_tracker.services.storage import MemoryStorage, StorageHandle


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def allow_list():
    return EmailAllowList(["owner@example.com", "Partner@Example.com"])


@pytest.fixture
def client(memory_storage, allow_list):
    app = create_app(
        storage_handle=StorageHandle(memory_storage),
        allow_list=allow_list,
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_expense():
    """Factory for valid expense drafts."""

    def _make(**overrides) -> ExpenseCreate:
        fields = {
            "category": "fuel",
            "description": "Gas",
            "value": Decimal("50.00"),
            "date": date(2024, 3, 1),
            "payment_method": PaymentMethod.CASH,
            "is_paid": True,
        }
        fields.update(overrides)
        return ExpenseCreate(**fields)

    return _make
