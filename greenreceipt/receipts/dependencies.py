from fastapi import Depends
from pymongo.database import Database

from greenreceipt.analytics.cache import AnalyticsCache, get_analytics_cache
from greenreceipt.auth import CUSTOMER, MERCHANT, AccountRepository, get_account_repository, require_role
from greenreceipt.catalog.dependencies import get_catalog_repository
from greenreceipt.catalog.repository import CatalogRepository
from greenreceipt.db import get_database
from greenreceipt.i18n import Language, get_language

from .repository import ReceiptRepository
from .service import ReceiptService

require_customer = require_role(CUSTOMER)
require_merchant = require_role(MERCHANT)
require_account = require_role(CUSTOMER, MERCHANT)


def get_receipt_repository(db: Database = Depends(get_database)) -> ReceiptRepository:
    return ReceiptRepository(db)


def get_receipt_service(
    repository: ReceiptRepository = Depends(get_receipt_repository),
    accounts: AccountRepository = Depends(get_account_repository),
    catalog: CatalogRepository = Depends(get_catalog_repository),
    cache: AnalyticsCache = Depends(get_analytics_cache),
    language: Language = Depends(get_language),
) -> ReceiptService:
    return ReceiptService(repository, accounts, catalog, cache, language)
