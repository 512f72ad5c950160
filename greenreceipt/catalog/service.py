"""Catalog service - category and item rules for a merchant's shop."""

from typing import Optional

from bson import ObjectId
from fastapi import HTTPException, status
from loguru import logger
from pymongo.errors import DuplicateKeyError

from greenreceipt.db import serialize_document, to_object_id
from greenreceipt.i18n import Language, translate

from .models import discount_problem, with_derived_fields
from .repository import CatalogRepository
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


# Fields a client may clear by sending null.
NULLABLE_ITEM_FIELDS = {"description", "stockQuantity", "discountPrice", "imageUrl", "barcode", "sku"}


def item_view(item: dict) -> dict:
    return serialize_document(with_derived_fields(item))


class CatalogService:
    """Service class for category and item operations."""

    def __init__(self, repository: CatalogRepository, language: Language = Language.ENGLISH):
        self.repo = repository
        self.language = language

    def _error(self, status_code: int, key: str, **params) -> HTTPException:
        return HTTPException(status_code=status_code, detail=translate(key, self.language, **params))

    async def _require_category(self, merchant_id: ObjectId, category_id: str) -> dict:
        category = await self.repo.get_category(merchant_id, to_object_id(category_id))
        if not category:
            raise self._error(status.HTTP_404_NOT_FOUND, "category_not_found")
        return category

    async def _require_item(self, merchant_id: ObjectId, item_id: str) -> dict:
        item = await self.repo.get_item(merchant_id, to_object_id(item_id))
        if not item:
            raise self._error(status.HTTP_404_NOT_FOUND, "item_not_found")
        return item

    async def _check_categories_owned(self, merchant_id: ObjectId, category_ids: set[ObjectId]) -> None:
        if await self.repo.count_owned_categories(merchant_id, list(category_ids)) != len(category_ids):
            raise self._error(status.HTTP_400_BAD_REQUEST, "invalid_category")

    # =========================================================================
    # Categories
    # =========================================================================

    async def list_categories(self, merchant_id: str) -> list[dict]:
        categories = await self.repo.list_categories(to_object_id(merchant_id))
        return serialize_document(categories)

    async def create_category(self, merchant_id: str, request: CategoryCreate) -> dict:
        """
        Create a category.

        Raises:
            HTTPException: 409 if the shop already has a category with this name
        """
        owner = to_object_id(merchant_id)
        if await self.repo.find_category_by_name(owner, request.name):
            raise self._error(status.HTTP_409_CONFLICT, "category_exists")
        try:
            category = await self.repo.create_category({**request.to_document(), "merchantId": owner})
        except DuplicateKeyError:
            raise self._error(status.HTTP_409_CONFLICT, "category_exists")
        return serialize_document({**category, "itemCount": 0})

    async def update_category(self, merchant_id: str, category_id: str, request: CategoryUpdate) -> dict:
        owner = to_object_id(merchant_id)
        fields = request.model_dump(by_alias=True, exclude_none=True)
        if not fields:
            raise self._error(status.HTTP_400_BAD_REQUEST, "no_update_fields")

        category = await self._require_category(owner, category_id)
        if "name" in fields and await self.repo.find_category_by_name(owner, fields["name"], exclude_id=category["_id"]):
            raise self._error(status.HTTP_409_CONFLICT, "category_exists")

        try:
            updated = await self.repo.update_category(owner, category["_id"], fields)
        except DuplicateKeyError:
            raise self._error(status.HTTP_409_CONFLICT, "category_exists")
        if not updated:
            raise self._error(status.HTTP_404_NOT_FOUND, "category_not_found")
        return serialize_document(updated)

    async def reorder_categories(self, merchant_id: str, request: CategoryReorder) -> None:
        owner = to_object_id(merchant_id)
        ordered = [to_object_id(value) for value in request.category_ids]
        if await self.repo.count_owned_categories(owner, ordered) != len(ordered):
            raise self._error(status.HTTP_400_BAD_REQUEST, "unknown_categories")
        await self.repo.set_display_order("categories", owner, ordered)

    async def delete_category(self, merchant_id: str, category_id: str, reassign_to: Optional[str] = None) -> int:
        """
        Delete a category, first moving its items when ``reassign_to`` is given.

        Returns:
            Number of items moved

        Raises:
            HTTPException: 409 if items remain and no target was named,
                400 if the target is not another category of this shop
        """
        owner = to_object_id(merchant_id)
        category = await self._require_category(owner, category_id)
        item_count = await self.repo.count_items_in_category(owner, category["_id"])

        moved = 0
        if item_count:
            if not reassign_to:
                raise self._error(status.HTTP_409_CONFLICT, "category_has_items", count=item_count)
            target_id = to_object_id(reassign_to)
            if target_id == category["_id"] or not await self.repo.get_category(owner, target_id):
                raise self._error(status.HTTP_400_BAD_REQUEST, "invalid_reassign_target")
            moved = await self.repo.move_items(owner, category["_id"], target_id)

        await self.repo.delete_category(owner, category["_id"])
        logger.info(f"Category deleted: {category_id} merchant={merchant_id} moved_items={moved}")
        return moved

    # =========================================================================
    # Items
    # =========================================================================

    async def list_items(
        self,
        merchant_id: str,
        category_id: Optional[str] = None,
        search: Optional[str] = None,
        is_available: Optional[bool] = None,
        is_active: Optional[bool] = True,
        tag: Optional[str] = None,
    ) -> list[dict]:
        items = await self.repo.list_items(
            to_object_id(merchant_id),
            category_id=to_object_id(category_id) if category_id else None,
            search=search.strip() if search else None,
            is_available=is_available,
            is_active=is_active,
            tag=tag,
        )
        return [item_view(item) for item in items]

    async def get_item(self, merchant_id: str, item_id: str) -> dict:
        return item_view(await self._require_item(to_object_id(merchant_id), item_id))

    def _item_document(self, owner: ObjectId, request: ItemCreate) -> dict:
        document = request.to_document()
        document["merchantId"] = owner
        document["categoryId"] = to_object_id(request.category_id)
        return document

    async def create_item(self, merchant_id: str, request: ItemCreate) -> dict:
        owner = to_object_id(merchant_id)
        await self._check_categories_owned(owner, {to_object_id(request.category_id)})
        created = await self.repo.create_items([self._item_document(owner, request)])
        return item_view(created[0])

    async def bulk_create_items(self, merchant_id: str, request: BulkItemCreate) -> list[dict]:
        """Create up to 100 items; nothing is written unless every item is valid."""
        owner = to_object_id(merchant_id)
        await self._check_categories_owned(owner, {to_object_id(item.category_id) for item in request.items})
        created = await self.repo.create_items([self._item_document(owner, item) for item in request.items])
        return [item_view(item) for item in created]

    async def update_item(self, merchant_id: str, item_id: str, request: ItemUpdate) -> dict:
        """
        Apply a partial update, re-checking discount and variant rules
        against the item as it would be stored.
        """
        owner = to_object_id(merchant_id)
        fields = {
            key: value
            for key, value in request.model_dump(by_alias=True, exclude_unset=True).items()
            if value is not None or key in NULLABLE_ITEM_FIELDS
        }
        if not fields:
            raise self._error(status.HTTP_400_BAD_REQUEST, "no_update_fields")

        item = await self._require_item(owner, item_id)
        merged = {**item, **fields}

        problem = discount_problem(merged.get("price"), bool(merged.get("isDiscounted")), merged.get("discountPrice"))
        if problem:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=problem)
        if merged.get("hasVariants") and not merged.get("variants"):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="At least one variant is required when hasVariants is true",
            )

        if "categoryId" in fields:
            fields["categoryId"] = to_object_id(fields["categoryId"])
            await self._check_categories_owned(owner, {fields["categoryId"]})

        updated = await self.repo.update_item(owner, item["_id"], fields)
        if not updated:
            raise self._error(status.HTTP_404_NOT_FOUND, "item_not_found")
        return item_view(updated)

    async def set_availability(self, merchant_id: str, item_id: str, request: AvailabilityUpdate) -> dict:
        owner = to_object_id(merchant_id)
        updated = await self.repo.update_item(owner, to_object_id(item_id), {"isAvailable": request.is_available})
        if not updated:
            raise self._error(status.HTTP_404_NOT_FOUND, "item_not_found")
        return item_view(updated)

    async def reorder_items(self, merchant_id: str, request: ItemReorder) -> None:
        owner = to_object_id(merchant_id)
        ordered = [to_object_id(value) for value in request.item_ids]
        if await self.repo.count_owned_items(owner, ordered) != len(ordered):
            raise self._error(status.HTTP_400_BAD_REQUEST, "unknown_items")
        await self.repo.set_display_order("items", owner, ordered)

    async def delete_item(self, merchant_id: str, item_id: str, permanent: bool = False) -> bool:
        """
        Deactivate an item, or remove it for good when ``permanent``.

        Returns:
            True when the item was removed, False when it was deactivated
        """
        owner = to_object_id(merchant_id)
        oid = to_object_id(item_id)
        if permanent:
            if not await self.repo.delete_item(owner, oid):
                raise self._error(status.HTTP_404_NOT_FOUND, "item_not_found")
            logger.info(f"Item deleted: {item_id} merchant={merchant_id}")
            return True

        updated = await self.repo.update_item(owner, oid, {"isActive": False, "isAvailable": False})
        if not updated:
            raise self._error(status.HTTP_404_NOT_FOUND, "item_not_found")
        logger.info(f"Item deactivated: {item_id} merchant={merchant_id}")
        return False
