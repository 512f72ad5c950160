"""Derived catalog values computed from stored item documents."""

from typing import Iterable, Optional

ITEM_UNITS = ("piece", "kg", "g", "l", "ml", "dozen", "pack", "plate", "cup", "glass", "serving", "other")
DEFAULT_CATEGORY_COLOR = "#10b981"
DEFAULT_LOW_STOCK_THRESHOLD = 10

UNLIMITED = "unlimited"
OUT_OF_STOCK = "out_of_stock"
LOW_STOCK = "low_stock"
IN_STOCK = "in_stock"


def effective_price(item: dict) -> float:
    """The discount price when a discount is active, else the list price."""
    discount = item.get("discountPrice")
    if item.get("isDiscounted") and discount is not None:
        return discount
    return item.get("price", 0)


def stock_status(item: dict) -> str:
    quantity = item.get("stockQuantity")
    if quantity is None:
        return UNLIMITED
    if quantity == 0:
        return OUT_OF_STOCK
    threshold = item.get("lowStockThreshold")
    if threshold is None:
        threshold = DEFAULT_LOW_STOCK_THRESHOLD
    if quantity <= threshold:
        return LOW_STOCK
    return IN_STOCK


def with_derived_fields(item: dict) -> dict:
    return {**item, "effectivePrice": effective_price(item), "stockStatus": stock_status(item)}


def normalize_tags(tags: Optional[Iterable[str]]) -> list[str]:
    """Trim, lower-case and de-duplicate tags, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags or []:
        if not isinstance(tag, str):
            continue
        cleaned = tag.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def discount_problem(price: Optional[float], is_discounted: bool, discount_price: Optional[float]) -> Optional[str]:
    """Return why a discount setup is inconsistent, or None when it is fine."""
    if not is_discounted:
        return None
    if discount_price is None:
        return "discountPrice is required when isDiscounted is true"
    if price is not None and discount_price > price:
        return "discountPrice cannot exceed price"
    return None
