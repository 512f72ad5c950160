"""Tests for ReceiptRepository query shapes."""

from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo import ReturnDocument

from greenreceipt.receipts.repository import NEWEST_FIRST, ReceiptRepository

pytestmark = pytest.mark.asyncio


class TestReceiptRepository:
    @pytest.fixture
    def repository(self, mock_db):
        return ReceiptRepository(mock_db)

    async def test_create_stamps_times(self, repository, mock_db):
        inserted_id = ObjectId()
        mock_db["receipts"].insert_one.return_value = MagicMock(inserted_id=inserted_id)

        receipt = await repository.create({"total": 10})

        assert receipt["_id"] == inserted_id
        assert receipt["createdAt"] == receipt["updatedAt"]

    async def test_page_query(self, repository, mock_db):
        owner = ObjectId()
        cursor = mock_db["receipts"].find.return_value
        cursor.sort.return_value.skip.return_value.limit.return_value = iter([{"_id": ObjectId()}])
        mock_db["receipts"].count_documents.return_value = 7

        receipts, total = await repository.list_for_owner("userId", owner, skip=20, limit=10)

        mock_db["receipts"].find.assert_called_once_with({"userId": owner})
        cursor.sort.assert_called_once_with(NEWEST_FIRST)
        cursor.sort.return_value.skip.assert_called_once_with(20)
        cursor.sort.return_value.skip.return_value.limit.assert_called_once_with(10)
        assert len(receipts) == 1
        assert total == 7

    async def test_stats_query_skips_excluded_and_void(self, repository, mock_db):
        owner = ObjectId()
        mock_db["receipts"].find.return_value.sort.return_value = iter([])

        await repository.list_for_stats("merchantId", owner)

        query = mock_db["receipts"].find.call_args.args[0]
        assert query == {
            "merchantId": owner,
            "excludeFromStats": {"$ne": True},
            "status": {"$ne": "void"},
        }

    async def test_claim_only_matches_unclaimed(self, repository, mock_db):
        receipt_id, user_id = ObjectId(), ObjectId()
        mock_db["receipts"].find_one_and_update.return_value = None

        assert await repository.claim(receipt_id, user_id, {"name": "Asha"}) is None

        query, update = mock_db["receipts"].find_one_and_update.call_args.args
        assert query == {"_id": receipt_id, "userId": None}
        assert update["$set"]["userId"] == user_id
        assert mock_db["receipts"].find_one_and_update.call_args.kwargs["return_document"] == ReturnDocument.AFTER

    async def test_delete(self, repository, mock_db):
        mock_db["receipts"].delete_one.return_value = MagicMock(deleted_count=0)
        assert await repository.delete(ObjectId()) is False
