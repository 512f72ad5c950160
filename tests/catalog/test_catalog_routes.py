"""Tests for merchant catalog routes."""

from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from greenreceipt.api.app import create_app
from greenreceipt.auth.dependencies import get_jwt_handler
from greenreceipt.catalog.dependencies import get_catalog_service
from greenreceipt.catalog.service import CatalogService


@pytest.fixture
def mock_catalog_service():
    return AsyncMock(spec=CatalogService)


@pytest.fixture
def client(mock_catalog_service, jwt_handler):
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_catalog_service] = lambda: mock_catalog_service
    app.dependency_overrides[get_jwt_handler] = lambda: jwt_handler
    return TestClient(app)


class TestCatalogAccess:
    """Only merchants reach the catalog."""

    def test_requires_token(self, client):
        response = client.get("/api/merchant/categories")
        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "TOKEN_MISSING"

    def test_customer_forbidden(self, client, bearer, customer_id, mock_catalog_service):
        response = client.get("/api/merchant/items", headers=bearer(customer_id, "customer"))

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "FORBIDDEN"
        mock_catalog_service.list_items.assert_not_called()


class TestCategoryEndpoints:
    def test_list_categories(self, client, bearer, merchant_id, mock_catalog_service):
        mock_catalog_service.list_categories.return_value = [{"id": "c1", "name": "Snacks", "itemCount": 2}]

        response = client.get("/api/merchant/categories", headers=bearer(merchant_id, "merchant"))

        assert response.status_code == 200
        assert response.json()[0]["itemCount"] == 2
        mock_catalog_service.list_categories.assert_called_once_with(merchant_id)

    def test_create_category(self, client, bearer, merchant_id, mock_catalog_service):
        mock_catalog_service.create_category.return_value = {"id": "c1", "name": "Snacks"}

        response = client.post(
            "/api/merchant/categories", json={"name": "Snacks"}, headers=bearer(merchant_id, "merchant")
        )

        assert response.status_code == 201
        request = mock_catalog_service.create_category.call_args.args[1]
        assert request.name == "Snacks"

    def test_create_category_invalid_color(self, client, bearer, merchant_id):
        response = client.post(
            "/api/merchant/categories",
            json={"name": "Snacks", "color": "red"},
            headers=bearer(merchant_id, "merchant"),
        )
        assert response.status_code == 422

    def test_reorder_is_not_treated_as_an_id(self, client, bearer, merchant_id, mock_catalog_service):
        ids = [str(ObjectId()), str(ObjectId())]

        response = client.patch(
            "/api/merchant/categories/reorder",
            json={"categoryIds": ids},
            headers=bearer(merchant_id, "merchant"),
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Order updated"}
        mock_catalog_service.update_category.assert_not_called()

    def test_delete_category_with_reassign(self, client, bearer, merchant_id, mock_catalog_service):
        source, target = str(ObjectId()), str(ObjectId())
        mock_catalog_service.delete_category.return_value = 4

        response = client.delete(
            f"/api/merchant/categories/{source}",
            params={"reassignTo": target},
            headers=bearer(merchant_id, "merchant"),
        )

        assert response.status_code == 200
        assert response.json()["movedItems"] == 4
        mock_catalog_service.delete_category.assert_called_once_with(merchant_id, source, target)


class TestItemEndpoints:
    def test_list_items_filters(self, client, bearer, merchant_id, mock_catalog_service):
        category_id = str(ObjectId())
        mock_catalog_service.list_items.return_value = []

        response = client.get(
            "/api/merchant/items",
            params={"categoryId": category_id, "search": "dosa", "isAvailable": "true"},
            headers=bearer(merchant_id, "merchant"),
        )

        assert response.status_code == 200
        mock_catalog_service.list_items.assert_called_once_with(
            merchant_id, category_id=category_id, search="dosa", is_available=True, is_active=True, tag=None
        )

    def test_bulk_create(self, client, bearer, merchant_id, mock_catalog_service):
        category_id = str(ObjectId())
        mock_catalog_service.bulk_create_items.return_value = [{"id": "i1"}, {"id": "i2"}]

        response = client.post(
            "/api/merchant/items/bulk",
            json={"items": [
                {"categoryId": category_id, "name": "Tea", "price": 20},
                {"categoryId": category_id, "name": "Vada", "price": 25},
            ]},
            headers=bearer(merchant_id, "merchant"),
        )

        assert response.status_code == 201
        assert response.json()["count"] == 2

    def test_bulk_create_rejects_whole_batch(self, client, bearer, merchant_id, mock_catalog_service):
        category_id = str(ObjectId())

        response = client.post(
            "/api/merchant/items/bulk",
            json={"items": [
                {"categoryId": category_id, "name": "Tea", "price": 20},
                {"categoryId": category_id, "name": "Vada", "price": -5},
            ]},
            headers=bearer(merchant_id, "merchant"),
        )

        assert response.status_code == 422
        mock_catalog_service.bulk_create_items.assert_not_called()

    def test_soft_delete_message(self, client, bearer, merchant_id, mock_catalog_service):
        mock_catalog_service.delete_item.return_value = False

        response = client.delete(f"/api/merchant/items/{ObjectId()}", headers=bearer(merchant_id, "merchant"))

        assert response.json() == {"message": "Item deactivated"}

    def test_permanent_delete_message(self, client, bearer, merchant_id, mock_catalog_service):
        item_id = str(ObjectId())
        mock_catalog_service.delete_item.return_value = True

        response = client.delete(
            f"/api/merchant/items/{item_id}", params={"permanent": "true"}, headers=bearer(merchant_id, "merchant")
        )

        assert response.json() == {"message": "Item deleted"}
        mock_catalog_service.delete_item.assert_called_once_with(merchant_id, item_id, True)
