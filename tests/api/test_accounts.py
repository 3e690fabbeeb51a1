"""
Tests for the chart of accounts and directory endpoints.
"""

from decimal import Decimal

from sqlalchemy.exc import OperationalError

from trade_ledger.services.ledger_service import LedgerService


def create_account(client, code, name, account_type="EXPENSE", **extra):
    """Helper to create an account through the API."""
    return client.post("/accounts", json={
        "code": code,
        "name": name,
        "account_type": account_type,
        **extra,
    })


class TestCreateAccount:

    def test_create_single_account(self, client):
        response = create_account(client, "5000", "Expenses")
        assert response.status_code == 201
        data = response.json()
        assert data["code"] == "5000"
        assert data["account_type"] == "EXPENSE"
        assert data["is_active"] is True
        assert data["can_debit_on_payment"] is True

    def test_duplicate_code_returns_409(self, client):
        create_account(client, "5000", "Expenses")
        response = create_account(client, "5000", "More Expenses")
        assert response.status_code == 409
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "DUPLICATE_CODE"
        assert data["kind"] == "VALIDATION"

    def test_type_mismatch_returns_400(self, client):
        parent = create_account(client, "5000", "Expenses").json()
        response = create_account(
            client, "5100", "Loan", account_type="LIABILITY", parent_id=parent["id"]
        )
        assert response.status_code == 400
        assert response.json()["error"] == "TYPE_MISMATCH"

    def test_unknown_account_type_rejected(self, client):
        response = create_account(client, "9000", "Misc", account_type="INCOME")
        assert response.status_code == 422


class TestBulkCreate:

    def test_all_created(self, client):
        response = client.post("/accounts", json=[
            {"code": "5001", "name": "Fuel", "account_type": "EXPENSE"},
            {"code": "5002", "name": "Tolls", "account_type": "EXPENSE"},
        ])
        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["created"] == 2
        assert data["failed"] == 0

    def test_partial_success_returns_207(self, client):
        response = client.post("/accounts", json=[
            {"code": "5001", "name": "Fuel", "account_type": "EXPENSE"},
            {"code": "5001", "name": "Fuel again", "account_type": "EXPENSE"},
        ])
        assert response.status_code == 207
        data = response.json()
        assert data["success"] is False
        assert data["created"] == 1
        assert data["failed"] == 1
        assert data["data"][0]["name"] == "Fuel"
        assert data["errors"][0]["index"] == 1
        assert data["errors"][0]["error"] == "DUPLICATE_CODE"

    def test_nothing_created_returns_400(self, client):
        create_account(client, "5001", "Fuel")
        response = client.post("/accounts", json=[
            {"code": "5001", "name": "Fuel", "account_type": "EXPENSE"},
        ])
        assert response.status_code == 400
        assert response.json()["created"] == 0


class TestReadAccounts:

    def test_get_account(self, client, chart):
        response = client.get(f"/accounts/{chart['1111']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Petty Cash"

    def test_get_missing_account_returns_404(self, client):
        response = client.get("/accounts/99999")
        assert response.status_code == 404
        assert response.json()["error"] == "ACCOUNT_NOT_FOUND"

    def test_chart(self, client, chart):
        response = client.get("/accounts/chart")
        assert response.status_code == 200
        roots = response.json()
        assert [r["code"] for r in roots] == ["1000", "2000", "3000", "4000", "5000"]
        assert roots[0]["children"][0]["code"] == "1100"

    def test_eligible_debit_accounts(self, client, chart):
        response = client.get("/accounts/eligible/debit")
        assert response.status_code == 200
        assert all(a["account_type"] == "EXPENSE" for a in response.json())

    def test_balance_of_new_account_is_zero(self, client, chart):
        response = client.get(f"/accounts/{chart['1111']}/balance", params={"context": "payment"})
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["accounting_balance"]) == Decimal("0")
        assert data["is_zero_balance"] is True
        assert data["context_message"] == "Insufficient funds for payment"

    def test_storage_error_on_read_returns_503(self, client, chart, monkeypatch):
        def lose_connection(self, account_id):
            raise OperationalError("SELECT sum(debit_amount)", {}, Exception("gone"))

        monkeypatch.setattr(LedgerService, "sum_entries", lose_connection)

        response = client.get(f"/accounts/{chart['1111']}/balance")
        assert response.status_code == 503
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "STORAGE_FAILURE"
        assert data["kind"] == "STORAGE_FAILURE"

    def test_ledger_of_new_account_is_empty(self, client, chart):
        response = client.get(f"/accounts/{chart['1111']}/ledger")
        assert response.status_code == 200
        assert response.json()["lines"] == []


class TestChangeAccounts:

    def test_patch_account(self, client, chart):
        response = client.patch(f"/accounts/{chart['1111']}", json={"name": "Till"})
        assert response.status_code == 200
        assert response.json()["name"] == "Till"

    def test_cycle_rejected(self, client, chart):
        response = client.patch(
            f"/accounts/{chart['1100']}", json={"parent_id": chart["1111"]}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_PARENT"

    def test_deactivate_account(self, client, chart):
        response = client.post(f"/accounts/{chart['1113']}/deactivate")
        assert response.status_code == 200
        assert response.json()["is_active"] is False

    def test_delete_unused_account(self, client, chart):
        response = client.delete(f"/accounts/{chart['1140']}")
        assert response.status_code == 204
        assert client.get(f"/accounts/{chart['1140']}").status_code == 404

    def test_delete_parent_returns_409(self, client, chart):
        response = client.delete(f"/accounts/{chart['1110']}")
        assert response.status_code == 409
        assert response.json()["error"] == "HAS_CHILD_ACCOUNTS"


class TestDirectory:

    def test_create_supplier(self, client, chart):
        response = client.post("/suppliers", json={"name": "ABC Traders", "phone": "98450"})
        assert response.status_code == 201
        data = response.json()
        assert data["account"]["name"] == "ABC Traders - Payable"
        assert data["account"]["can_credit_on_receipt"] is False

    def test_create_customer(self, client, chart):
        response = client.post("/customers", json={"name": "Fresh Mart"})
        assert response.status_code == 201
        assert response.json()["account"]["account_type"] == "ASSET"

    def test_list_suppliers(self, client, chart):
        client.post("/suppliers", json={"name": "XYZ Farms"})
        client.post("/suppliers", json={"name": "ABC Traders"})
        response = client.get("/suppliers")
        assert [s["name"] for s in response.json()] == ["ABC Traders", "XYZ Farms"]

    def test_missing_customer_returns_404(self, client):
        response = client.get("/customers/5")
        assert response.status_code == 404
