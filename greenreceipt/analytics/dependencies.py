from fastapi import Depends
from pymongo.database import Database

from greenreceipt.db import get_database
from greenreceipt.i18n import Language, get_language
from greenreceipt.receipts.repository import ReceiptRepository

from .cache import AnalyticsCache, get_analytics_cache
from .service import AnalyticsService


def get_analytics_service(
    db: Database = Depends(get_database),
    cache: AnalyticsCache = Depends(get_analytics_cache),
    language: Language = Depends(get_language),
) -> AnalyticsService:
    return AnalyticsService(ReceiptRepository(db), cache, language)
