"""Analytics service - cached customer and merchant dashboards."""

from typing import Callable, Optional

from fastapi import HTTPException, status
from loguru import logger
from pymongo.errors import PyMongoError

from greenreceipt.auth import CUSTOMER, MERCHANT
from greenreceipt.db import to_object_id
from greenreceipt.i18n import Language, translate
from greenreceipt.receipts.repository import ReceiptRepository
from greenreceipt.utils.timezone import ISTDateRanges, ist_date_ranges

from .aggregations import customer_analytics, merchant_analytics
from .cache import AnalyticsCache

Builder = Callable[[list[dict], ISTDateRanges], dict]


class AnalyticsService:
    """Builds analytics from an owner's receipts and caches the result."""

    def __init__(
        self,
        repository: ReceiptRepository,
        cache: AnalyticsCache,
        language: Language = Language.ENGLISH,
    ):
        self.repo = repository
        self.cache = cache
        self.language = language

    async def _cached(
        self,
        role: str,
        owner_field: str,
        account_id: str,
        build: Builder,
        refresh: bool,
        now=None,
    ) -> dict:
        if refresh:
            self.cache.invalidate(role, account_id)
        else:
            cached = self.cache.get(role, account_id)
            if cached is not None:
                return cached

        try:
            receipts = await self.repo.list_for_stats(owner_field, to_object_id(account_id))
        except PyMongoError as e:
            logger.exception(f"Analytics query failed for {role}={account_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=translate("analytics_failed", self.language),
            )

        result = build(receipts, ist_date_ranges(now))
        self.cache.set(role, account_id, result)
        logger.debug(f"Analytics built for {role}={account_id} from {len(receipts)} receipts")
        return result

    async def customer(self, customer_id: str, refresh: bool = False, now=None) -> dict:
        """Spending analytics; ``refresh`` skips and replaces the cached copy."""
        return await self._cached(CUSTOMER, "userId", customer_id, customer_analytics, refresh, now)

    async def merchant(self, merchant_id: str, refresh: bool = False, now=None) -> dict:
        """Sales analytics; ``refresh`` skips and replaces the cached copy."""
        return await self._cached(MERCHANT, "merchantId", merchant_id, merchant_analytics, refresh, now)
