"""Tests for recurring bill routes."""

from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from greenreceipt.api.app import create_app
from greenreceipt.auth.dependencies import get_jwt_handler
from greenreceipt.bills.dependencies import get_bill_service
from greenreceipt.bills.service import BillService


@pytest.fixture
def mock_bill_service():
    return AsyncMock(spec=BillService)


@pytest.fixture
def client(mock_bill_service, jwt_handler):
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_bill_service] = lambda: mock_bill_service
    app.dependency_overrides[get_jwt_handler] = lambda: jwt_handler
    return TestClient(app)


class TestBillAccess:
    """Bills belong to customers."""

    def test_requires_token(self, client):
        response = client.get("/api/bills")
        assert response.status_code == 401

    def test_merchant_forbidden(self, client, bearer, merchant_id, mock_bill_service):
        response = client.get("/api/bills/upcoming", headers=bearer(merchant_id, "merchant"))

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "FORBIDDEN"
        mock_bill_service.upcoming.assert_not_called()


class TestBillEndpoints:
    def test_create_bill(self, client, bearer, customer_id, mock_bill_service):
        mock_bill_service.create_bill.return_value = {"id": "b1", "name": "Rent"}

        response = client.post(
            "/api/bills",
            json={"name": "Rent", "billCycle": "monthly", "dueDay": 5, "startDate": "2025-03-01"},
            headers=bearer(customer_id, "customer"),
            follow_redirects=False,
        )

        assert response.status_code == 201
        user_id, request = mock_bill_service.create_bill.call_args.args
        assert user_id == customer_id
        assert request.due_day == 5

    def test_create_custom_without_interval(self, client, bearer, customer_id, mock_bill_service):
        response = client.post(
            "/api/bills", json={"name": "Gym", "billCycle": "custom"}, headers=bearer(customer_id, "customer")
        )

        assert response.status_code == 422
        mock_bill_service.create_bill.assert_not_called()

    def test_list_bills(self, client, bearer, customer_id, mock_bill_service):
        mock_bill_service.list_bills.return_value = {
            "bills": [{"id": "b1"}],
            "page": 2,
            "limit": 10,
            "total": 11,
            "hasMore": False,
        }

        response = client.get(
            "/api/bills",
            params={"status": "all", "category": "rent", "page": 2, "limit": 10},
            headers=bearer(customer_id, "customer"),
        )

        assert response.status_code == 200
        assert response.json()["hasMore"] is False
        mock_bill_service.list_bills.assert_called_once_with(customer_id, "all", "rent", 2, 10)

    def test_list_unknown_status(self, client, bearer, customer_id):
        response = client.get("/api/bills", params={"status": "paid"}, headers=bearer(customer_id, "customer"))
        assert response.status_code == 422

    def test_upcoming_is_not_treated_as_an_id(self, client, bearer, customer_id, mock_bill_service):
        mock_bill_service.upcoming.return_value = {"bills": [], "summary": {"totalBills": 0}}

        response = client.get("/api/bills/upcoming", params={"days": 14}, headers=bearer(customer_id, "customer"))

        assert response.status_code == 200
        mock_bill_service.upcoming.assert_called_once_with(customer_id, 14)
        mock_bill_service.get_bill.assert_not_called()

    def test_categories(self, client, bearer, customer_id, mock_bill_service):
        mock_bill_service.categories.return_value = [{"name": "rent", "count": 2, "totalAmount": 1000}]

        response = client.get("/api/bills/categories", headers=bearer(customer_id, "customer"))

        assert response.json() == {"categories": [{"name": "rent", "count": 2, "totalAmount": 1000}]}

    def test_get_bill(self, client, bearer, customer_id, mock_bill_service):
        bill_id = str(ObjectId())
        mock_bill_service.get_bill.return_value = {"id": bill_id}

        response = client.get(f"/api/bills/{bill_id}", headers=bearer(customer_id, "customer"))

        assert response.status_code == 200
        mock_bill_service.get_bill.assert_called_once_with(customer_id, bill_id)

    def test_pause_bill(self, client, bearer, customer_id, mock_bill_service):
        bill_id = str(ObjectId())
        mock_bill_service.set_status.return_value = {"id": bill_id, "status": "paused"}

        response = client.patch(
            f"/api/bills/{bill_id}/status", json={"status": "paused"}, headers=bearer(customer_id, "customer")
        )

        assert response.status_code == 200
        mock_bill_service.set_status.assert_called_once_with(customer_id, bill_id, "paused")

    def test_status_cannot_delete(self, client, bearer, customer_id, mock_bill_service):
        response = client.patch(
            f"/api/bills/{ObjectId()}/status", json={"status": "deleted"}, headers=bearer(customer_id, "customer")
        )

        assert response.status_code == 422
        mock_bill_service.set_status.assert_not_called()

    def test_mark_paid(self, client, bearer, customer_id, mock_bill_service):
        bill_id = str(ObjectId())
        mock_bill_service.mark_paid.return_value = {"id": bill_id, "isPaidThisCycle": True}

        response = client.post(f"/api/bills/{bill_id}/mark-paid", headers=bearer(customer_id, "customer"))

        assert response.json()["isPaidThisCycle"] is True
        mock_bill_service.mark_paid.assert_called_once_with(customer_id, bill_id)

    def test_update_bill(self, client, bearer, customer_id, mock_bill_service):
        bill_id = str(ObjectId())
        mock_bill_service.update_bill.return_value = {"id": bill_id}

        response = client.patch(
            f"/api/bills/{bill_id}", json={"amount": None}, headers=bearer(customer_id, "customer")
        )

        assert response.status_code == 200
        request = mock_bill_service.update_bill.call_args.args[2]
        assert request.model_dump(by_alias=True, exclude_unset=True) == {"amount": None}

    def test_soft_delete(self, client, bearer, customer_id, mock_bill_service):
        bill_id = str(ObjectId())

        response = client.delete(f"/api/bills/{bill_id}", headers=bearer(customer_id, "customer"))

        assert response.json() == {"message": "Bill deleted successfully"}
        mock_bill_service.delete_bill.assert_called_once_with(customer_id, bill_id, False)

    def test_permanent_delete(self, client, bearer, customer_id, mock_bill_service):
        bill_id = str(ObjectId())

        response = client.delete(
            f"/api/bills/{bill_id}", params={"permanent": "true"}, headers=bearer(customer_id, "customer")
        )

        assert response.json() == {"message": "Bill permanently deleted"}
        mock_bill_service.delete_bill.assert_called_once_with(customer_id, bill_id, True)
