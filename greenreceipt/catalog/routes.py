"""Merchant catalog routes: categories and items."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from greenreceipt.auth import CurrentUser
from greenreceipt.i18n import Language, get_language, translate
from greenreceipt.schemas import MessageResponse

from .dependencies import get_catalog_service, require_merchant
from .schemas import (
    AvailabilityUpdate,
    BulkItemCreate,
    CategoryCreate,
    CategoryReorder,
    CategoryUpdate,
    ItemCreate,
    ItemReorder,
    ItemUpdate,
)
from .service import CatalogService

router = APIRouter(prefix="/api/merchant", tags=["catalog"])


# =============================================================================
# Categories
# =============================================================================


@router.get("/categories")
async def list_categories(
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
) -> list[dict]:
    """Categories in display order, each with its item count."""
    return await service.list_categories(merchant.id)


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    request_body: CategoryCreate,
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
) -> dict:
    return await service.create_category(merchant.id, request_body)


@router.patch("/categories/reorder", response_model=MessageResponse)
async def reorder_categories(
    request_body: CategoryReorder,
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
    language: Language = Depends(get_language),
) -> MessageResponse:
    """Set display order to the position of each id in ``categoryIds``."""
    await service.reorder_categories(merchant.id, request_body)
    return MessageResponse(message=translate("reordered", language))


@router.patch("/categories/{category_id}")
async def update_category(
    category_id: str,
    request_body: CategoryUpdate,
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
) -> dict:
    return await service.update_category(merchant.id, category_id, request_body)


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: str,
    reassign_to: Optional[str] = Query(default=None, alias="reassignTo"),
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
    language: Language = Depends(get_language),
) -> dict:
    """
    Delete a category.

    A category that still has items needs ``reassignTo``; its items are moved
    there before the delete.
    """
    moved = await service.delete_category(merchant.id, category_id, reassign_to)
    return {"message": translate("category_deleted", language), "movedItems": moved}


# =============================================================================
# Items
# =============================================================================


@router.get("/items")
async def list_items(
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    search: Optional[str] = Query(default=None, max_length=100),
    is_available: Optional[bool] = Query(default=None, alias="isAvailable"),
    is_active: Optional[bool] = Query(default=True, alias="isActive"),
    tag: Optional[str] = Query(default=None, max_length=50),
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
) -> list[dict]:
    """List items; only active items unless ``isActive`` says otherwise."""
    return await service.list_items(
        merchant.id,
        category_id=category_id,
        search=search,
        is_available=is_available,
        is_active=is_active,
        tag=tag,
    )


@router.post("/items", status_code=status.HTTP_201_CREATED)
async def create_item(
    request_body: ItemCreate,
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
) -> dict:
    return await service.create_item(merchant.id, request_body)


@router.post("/items/bulk", status_code=status.HTTP_201_CREATED)
async def bulk_create_items(
    request_body: BulkItemCreate,
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
) -> dict:
    """Create 1-100 items at once; nothing is saved if any item is invalid."""
    items = await service.bulk_create_items(merchant.id, request_body)
    return {"items": items, "count": len(items)}


@router.patch("/items/reorder", response_model=MessageResponse)
async def reorder_items(
    request_body: ItemReorder,
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
    language: Language = Depends(get_language),
) -> MessageResponse:
    await service.reorder_items(merchant.id, request_body)
    return MessageResponse(message=translate("reordered", language))


@router.get("/items/{item_id}")
async def get_item(
    item_id: str,
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
) -> dict:
    return await service.get_item(merchant.id, item_id)


@router.patch("/items/{item_id}")
async def update_item(
    item_id: str,
    request_body: ItemUpdate,
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
) -> dict:
    return await service.update_item(merchant.id, item_id, request_body)


@router.patch("/items/{item_id}/availability")
async def set_item_availability(
    item_id: str,
    request_body: AvailabilityUpdate,
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
) -> dict:
    return await service.set_availability(merchant.id, item_id, request_body)


@router.delete("/items/{item_id}", response_model=MessageResponse)
async def delete_item(
    item_id: str,
    permanent: bool = False,
    merchant: CurrentUser = Depends(require_merchant),
    service: CatalogService = Depends(get_catalog_service),
    language: Language = Depends(get_language),
) -> MessageResponse:
    """Deactivate an item, or delete it for good with ``?permanent=true``."""
    removed = await service.delete_item(merchant.id, item_id, permanent)
    return MessageResponse(message=translate("item_deleted" if removed else "item_deactivated", language))
