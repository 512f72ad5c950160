from fastapi import Depends
from pymongo.database import Database

from greenreceipt.auth import MERCHANT, require_role
from greenreceipt.db import get_database
from greenreceipt.i18n import Language, get_language

from .repository import CatalogRepository
from .service import CatalogService

require_merchant = require_role(MERCHANT)


def get_catalog_repository(db: Database = Depends(get_database)) -> CatalogRepository:
    return CatalogRepository(db)


def get_catalog_service(
    repository: CatalogRepository = Depends(get_catalog_repository),
    language: Language = Depends(get_language),
) -> CatalogService:
    return CatalogService(repository, language)
