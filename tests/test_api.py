"""
HTTP API tests.

Most tests run on MemoryStorage through a pre-built StorageHandle, so
no backend probing happens. TestStartupSelection runs the probe.
"""

import time

import pytest
from fastapi.testclient import TestClient

from expense_tracker.api import create_app
from expense_tracker.auth import EmailAllowList
from expense_tracker.config import DatabaseSettings, SupabaseSettings
from expense_tracker.services.storage import (
    MemoryStorage,
    StorageError,
    StorageHandle,
    StorageInitializer,
)


ROUND_TRIP = {
    "category": "fuel",
    "description": "Gas",
    "value": "50.00",
    "date": "2024-03-01",
    "paymentMethod": "cash",
}


def create(client, **overrides) -> dict:
    response = client.post("/api/expenses", json={**ROUND_TRIP, **overrides})
    assert response.status_code == 201
    return response.json()


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["storage"] == "memory"
        assert "timestamp" in body

    def test_cors_headers(self, client):
        response = client.get("/api/health", headers={"Origin": "https://app.example.com"})
        assert response.headers["access-control-allow-origin"] == "*"


class TestExpenseRoutes:

    def test_create_returns_camel_case_with_string_money(self, client):
        body = create(client)

        assert body["id"] >= 1
        assert body["value"] == "50.00"
        assert body["paymentMethod"] == "cash"
        assert body["isPaid"] is True
        assert "createdAt" in body

    def test_round_trip_through_listing(self, client):
        created = create(client)

        listing = client.get("/api/expenses").json()

        assert listing["total"] == 1
        [item] = listing["items"]
        assert item == created
        for key, value in ROUND_TRIP.items():
            assert item[key] == value

    def test_invalid_body_is_400(self, client):
        response = client.post("/api/expenses", json={"category": "fuel"})

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Invalid data"
        assert body["errors"]

    def test_negative_value_is_400(self, client):
        response = client.post("/api/expenses", json={**ROUND_TRIP, "value": "-1"})
        assert response.status_code == 400

    def test_listing_paginates_with_defaults(self, client):
        for day in range(1, 18):
            create(client, date=f"2024-03-{day:02d}")

        first = client.get("/api/expenses").json()
        second = client.get("/api/expenses", params={"page": 2}).json()

        assert first["limit"] == 15
        assert first["totalPages"] == 2
        assert len(first["items"]) == 15
        assert first["items"][0]["date"] == "2024-03-17"
        assert [i["date"] for i in second["items"]] == ["2024-03-02", "2024-03-01"]

    def test_limit_clamped(self, client):
        create(client)
        body = client.get("/api/expenses", params={"limit": 10_000}).json()
        assert body["limit"] == 100

    def test_bad_page_is_400(self, client):
        assert client.get("/api/expenses", params={"page": 0}).status_code == 400

    def test_unpaid_listing(self, client):
        create(client, isPaid=False, date="2024-05-01")
        create(client, isPaid=False, date="2024-04-01")
        create(client)

        body = client.get("/api/expenses/unpaid").json()

        assert body["limit"] == 5
        assert [i["date"] for i in body["items"]] == ["2024-04-01", "2024-05-01"]

    def test_by_category(self, client):
        create(client, category="food")
        create(client)

        body = client.get("/api/expenses/category/food").json()
        assert [i["category"] for i in body] == ["food"]

    def test_update(self, client):
        created = create(client)

        response = client.put(f"/api/expenses/{created['id']}", json={"description": "Diesel"})

        assert response.status_code == 200
        assert response.json()["description"] == "Diesel"
        assert response.json()["value"] == "50.00"

    def test_update_unknown_is_404(self, client):
        response = client.put("/api/expenses/999", json={"description": "x"})
        assert response.status_code == 404
        assert response.json() == {"message": "Expense not found"}

    def test_update_null_is_400(self, client):
        created = create(client)
        response = client.put(f"/api/expenses/{created['id']}", json={"category": None})
        assert response.status_code == 400

    def test_delete(self, client):
        created = create(client)

        first = client.delete(f"/api/expenses/{created['id']}")
        second = client.delete(f"/api/expenses/{created['id']}")

        assert first.status_code == 200
        assert first.json() == {"message": "Expense deleted"}
        assert second.status_code == 404

    def test_mark_paid_idempotent(self, client):
        created = create(client, isPaid=False)

        for _ in range(2):
            response = client.patch(f"/api/expenses/{created['id']}/paid")
            assert response.status_code == 200

        assert client.get("/api/expenses/unpaid").json()["total"] == 0

    def test_mark_paid_unknown_is_404(self, client):
        assert client.patch("/api/expenses/12345/paid").status_code == 404

    @pytest.mark.parametrize("expense_id", [0, 2**31])
    @pytest.mark.parametrize("method, path, body", [
        ("PUT", "/api/expenses/{}", {"description": "x"}),
        ("DELETE", "/api/expenses/{}", None),
        ("PATCH", "/api/expenses/{}/paid", None),
    ])
    def test_out_of_range_id_is_400(self, client, method, path, body, expense_id):
        """Test that ids no database column can hold never reach storage."""
        response = client.request(method, path.format(expense_id), json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid data"

    def test_largest_id_is_404(self, client):
        assert client.delete("/api/expenses/2147483647").status_code == 404

    def test_monthly_summary(self, client):
        create(client, value="10.00")
        create(client, value="5.50", isPaid=False)
        create(client, date="2024-04-02")

        body = client.get("/api/expenses/summary", params={"year": 2024, "month": 3}).json()

        assert body["count"] == 2
        assert body["total"] == "15.50"
        assert body["unpaid"] == "5.50"


class TestBalanceRoutes:

    def test_balance_null_before_set(self, client):
        response = client.get("/api/account/balance")
        assert response.status_code == 200
        assert response.json() is None

    def test_set_and_read_balance(self, client):
        response = client.put("/api/account/balance", json={"currentBalance": "100"})

        assert response.status_code == 200
        assert response.json()["currentBalance"] == "100.00"
        assert client.get("/api/account/balance").json()["id"] == 1

    def test_projection_shortfall(self, client):
        client.put("/api/account/balance", json={"currentBalance": "100.00"})
        create(client, value="40.00", isPaid=False)
        create(client, value="90.00", isPaid=False)

        body = client.get("/api/account/projection").json()

        assert body["totalUnpaid"] == "130.00"
        assert body["neededAmount"] == "30.00"
        assert body["unpaidCount"] == 2


class TestAuthRoutes:

    def test_check_authorized_case_insensitive(self, client):
        response = client.post("/api/auth/check-authorization", json={"email": "OWNER@example.com"})
        assert response.status_code == 200
        assert response.json() == {"authorized": True}

    def test_check_unauthorized(self, client):
        response = client.post("/api/auth/check-authorization", json={"email": "stranger@example.com"})
        assert response.status_code == 200
        assert response.json() == {"authorized": False}

    def test_check_missing_email_is_400(self, client):
        assert client.post("/api/auth/check-authorization", json={}).status_code == 400

    def test_list_add_remove(self, client):
        assert client.get("/api/auth/authorized-emails").json() == {
            "emails": ["owner@example.com", "partner@example.com"],
        }

        added = client.post("/api/auth/add-email", json={"email": "New@Example.com"}).json()
        assert "new@example.com" in added["emails"]

        removed = client.request(
            "DELETE",
            "/api/auth/remove-email",
            json={"email": "owner@example.com"},
        ).json()
        assert removed["emails"] == ["partner@example.com", "new@example.com"]

        check = client.post("/api/auth/check-authorization", json={"email": "owner@example.com"})
        assert check.json() == {"authorized": False}


class TestAdminRoutes:

    def test_list_users(self, client):
        body = client.get("/api/admin/users").json()
        assert {"email": "owner@example.com", "authorized": True} in body

    def test_add_and_remove_user(self, client, allow_list):
        response = client.post("/api/admin/users", json={"email": " Third@Example.com "})
        assert response.json() == {"message": "User added", "email": "third@example.com"}
        assert allow_list.is_authorized("third@example.com")

        response = client.delete("/api/admin/users/third@example.com")
        assert response.json() == {"message": "User removed"}
        assert not allow_list.is_authorized("third@example.com")


class TestStartupSelection:
    """Backend selection running in the background at startup."""

    def test_health_reports_selected_backend(self):
        selected = MemoryStorage()
        initializer = StorageInitializer(
            database=DatabaseSettings(url="postgresql://u:p@db.ref.supabase.co:5432/postgres"),
            supabase=SupabaseSettings(url=None, anon_key=None),
            rest_factory=lambda: selected,
        )
        app = create_app(allow_list=EmailAllowList(), initializer=initializer)

        with TestClient(app) as client:
            storage = None
            for _ in range(100):
                storage = client.get("/api/health").json()["storage"]
                if storage == "rest":
                    break
                time.sleep(0.01)

            assert storage == "rest"
            assert app.state.storage_handle.backend is selected

    def test_no_database_stays_on_memory(self):
        initializer = StorageInitializer(
            database=DatabaseSettings(url=None),
            supabase=SupabaseSettings(url=None, anon_key=None),
        )
        app = create_app(allow_list=EmailAllowList(), initializer=initializer)

        with TestClient(app) as client:
            for _ in range(100):
                if app.state.storage_handle.activated:
                    break
                time.sleep(0.01)

            assert app.state.storage_handle.activated
            assert client.get("/api/health").json()["storage"] == "memory"


class FailingStorage(MemoryStorage):
    async def get_all_expenses(self):
        raise StorageError("connection reset by peer")


class TestErrorHandling:

    def test_storage_failure_is_opaque_500(self):
        app = create_app(
            storage_handle=StorageHandle(FailingStorage()),
            allow_list=EmailAllowList(),
        )
        with TestClient(app) as client:
            response = client.get("/api/expenses")

        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}
        assert "connection reset" not in response.text

    def test_unexpected_error_is_500(self):
        class Broken(MemoryStorage):
            async def get_unpaid_expenses(self):
                raise RuntimeError("bug")

        app = create_app(storage_handle=StorageHandle(Broken()), allow_list=EmailAllowList())
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/api/expenses/unpaid")

        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}
