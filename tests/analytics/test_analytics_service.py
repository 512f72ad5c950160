"""Tests for AnalyticsService caching and error handling."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from fastapi import HTTPException
from pymongo.errors import ServerSelectionTimeoutError

from greenreceipt.analytics.cache import AnalyticsCache
from greenreceipt.analytics.service import AnalyticsService
from greenreceipt.receipts.repository import ReceiptRepository

pytestmark = pytest.mark.asyncio

NOW = datetime(2025, 3, 19, 6, 30, tzinfo=timezone.utc)


class TestAnalyticsService:
    @pytest.fixture
    def repository(self):
        repository = AsyncMock(spec=ReceiptRepository)
        repository.list_for_stats.return_value = [
            {"_id": ObjectId(), "total": 120, "transactionDate": NOW, "paymentMethod": "upi"}
        ]
        return repository

    @pytest.fixture
    def cache(self):
        return AnalyticsCache(ttl_seconds=60)

    @pytest.fixture
    def service(self, repository, cache):
        return AnalyticsService(repository, cache)

    async def test_customer_queries_own_receipts(self, service, repository, customer_id):
        result = await service.customer(customer_id, now=NOW)

        repository.list_for_stats.assert_called_once_with("userId", ObjectId(customer_id))
        assert result["summary"]["thisMonth"]["total"] == 120

    async def test_merchant_queries_own_receipts(self, service, repository, merchant_id):
        result = await service.merchant(merchant_id, now=NOW)

        repository.list_for_stats.assert_called_once_with("merchantId", ObjectId(merchant_id))
        assert result["insights"]["hasData"] is True

    async def test_second_call_served_from_cache(self, service, repository, customer_id):
        first = await service.customer(customer_id, now=NOW)
        second = await service.customer(customer_id, now=NOW)

        assert second is first
        assert repository.list_for_stats.call_count == 1

    async def test_refresh_rebuilds(self, service, repository, customer_id):
        await service.customer(customer_id, now=NOW)
        await service.customer(customer_id, refresh=True, now=NOW)

        assert repository.list_for_stats.call_count == 2

    async def test_roles_cached_separately(self, service, repository, customer_id):
        await service.customer(customer_id, now=NOW)
        await service.merchant(customer_id, now=NOW)

        assert repository.list_for_stats.call_count == 2

    async def test_database_failure(self, service, repository, cache, merchant_id):
        repository.list_for_stats.side_effect = ServerSelectionTimeoutError("no servers")

        with pytest.raises(HTTPException) as exc_info:
            await service.merchant(merchant_id, now=NOW)

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Failed to load analytics"
        assert len(cache) == 0
