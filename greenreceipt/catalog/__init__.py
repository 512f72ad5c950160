"""Merchant item catalog: categories and items."""

from .models import effective_price, normalize_tags, stock_status, with_derived_fields
from .repository import CatalogRepository
from .routes import router as catalog_router
from .service import CatalogService

__all__ = [
    "catalog_router",
    "CatalogRepository",
    "CatalogService",
    "effective_price",
    "normalize_tags",
    "stock_status",
    "with_derived_fields",
]
