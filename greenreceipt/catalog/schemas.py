"""Category and item request schemas."""

from typing import Any, Literal, Optional

from pydantic import Field, field_validator, model_validator

from greenreceipt.db.ids import is_object_id
from greenreceipt.schemas import CamelModel

from .models import DEFAULT_CATEGORY_COLOR, DEFAULT_LOW_STOCK_THRESHOLD, discount_problem, normalize_tags

OBJECT_ID_PATTERN = r"^[0-9a-fA-F]{24}$"
ItemUnit = Literal["piece", "kg", "g", "l", "ml", "dozen", "pack", "plate", "cup", "glass", "serving", "other"]
HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"

MAX_BULK_ITEMS = 100


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


# =============================================================================
# Categories
# =============================================================================


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=200)
    display_order: int = 0
    is_active: bool = True
    color: str = Field(default=DEFAULT_CATEGORY_COLOR, pattern=HEX_COLOR_PATTERN)
    icon: Optional[str] = Field(default=None, max_length=50)

    @field_validator("name", "description", "icon", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=200)
    display_order: Optional[int] = None
    is_active: Optional[bool] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    icon: Optional[str] = Field(default=None, max_length=50)

    @field_validator("name", "description", "icon", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)


class CategoryReorder(CamelModel):
    category_ids: list[str] = Field(..., min_length=1)

    @field_validator("category_ids")
    @classmethod
    def check_ids(cls, v: list[str]) -> list[str]:
        return _validate_id_list(v)


def _validate_id_list(ids: list[str]) -> list[str]:
    for value in ids:
        if not is_object_id(value):
            raise ValueError(f"Invalid id: {value}")
    if len(set(ids)) != len(ids):
        raise ValueError("Ids must be unique")
    return ids


# =============================================================================
# Items
# =============================================================================


class ItemVariant(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    price: float = Field(..., ge=0)
    is_available: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return _strip(v)


class _ItemFields(CamelModel):
    @field_validator("tags", mode="before", check_fields=False)
    @classmethod
    def clean_tags(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.split(",")
        return normalize_tags(v)

    @field_validator("name", "description", "barcode", "sku", "image_url", mode="before", check_fields=False)
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)


class ItemCreate(_ItemFields):
    """A new catalog item. Discount and variant rules are checked here."""

    category_id: str = Field(..., pattern=OBJECT_ID_PATTERN)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    price: float = Field(..., ge=0)
    unit: ItemUnit = "piece"
    is_available: bool = True
    stock_quantity: Optional[int] = Field(default=None, ge=0)
    low_stock_threshold: int = Field(default=DEFAULT_LOW_STOCK_THRESHOLD, ge=0)
    discount_price: Optional[float] = Field(default=None, ge=0)
    is_discounted: bool = False
    display_order: int = 0
    image_url: Optional[str] = None
    has_variants: bool = False
    variants: list[ItemVariant] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    barcode: Optional[str] = Field(default=None, max_length=64)
    sku: Optional[str] = Field(default=None, max_length=64)
    tax_rate: float = Field(default=0, ge=0, le=100)
    is_active: bool = True

    @model_validator(mode="after")
    def check_consistency(self) -> "ItemCreate":
        problem = discount_problem(self.price, self.is_discounted, self.discount_price)
        if problem:
            raise ValueError(problem)
        if self.has_variants and not self.variants:
            raise ValueError("At least one variant is required when hasVariants is true")
        return self


class ItemUpdate(_ItemFields):
    """Partial item update; cross-field rules are re-checked on the merged item."""

    category_id: Optional[str] = Field(default=None, pattern=OBJECT_ID_PATTERN)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    price: Optional[float] = Field(default=None, ge=0)
    unit: Optional[ItemUnit] = None
    is_available: Optional[bool] = None
    stock_quantity: Optional[int] = Field(default=None, ge=0)
    low_stock_threshold: Optional[int] = Field(default=None, ge=0)
    discount_price: Optional[float] = Field(default=None, ge=0)
    is_discounted: Optional[bool] = None
    display_order: Optional[int] = None
    image_url: Optional[str] = None
    has_variants: Optional[bool] = None
    variants: Optional[list[ItemVariant]] = None
    tags: Optional[list[str]] = None
    barcode: Optional[str] = Field(default=None, max_length=64)
    sku: Optional[str] = Field(default=None, max_length=64)
    tax_rate: Optional[float] = Field(default=None, ge=0, le=100)
    is_active: Optional[bool] = None


class BulkItemCreate(CamelModel):
    items: list[ItemCreate] = Field(..., min_length=1, max_length=MAX_BULK_ITEMS)


class AvailabilityUpdate(CamelModel):
    is_available: bool


class ItemReorder(CamelModel):
    item_ids: list[str] = Field(..., min_length=1)

    @field_validator("item_ids")
    @classmethod
    def check_ids(cls, v: list[str]) -> list[str]:
        return _validate_id_list(v)
