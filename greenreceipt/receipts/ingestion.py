"""Receipt payload normalization.

Receipts arrive from three places: shop QR codes (short keys such as ``mid``,
``i``, ``n``, ``p``, ``q``), photo uploads and manual entry. This module turns
any of them into a :class:`NormalizedReceipt`, collecting every problem it
finds before giving up, and reconciles the lines with the merchant catalog.
"""

import math
import re
from typing import Any, Iterable, Optional

from greenreceipt.catalog.models import effective_price
from greenreceipt.db.ids import is_object_id
from greenreceipt.exceptions import ReceiptPayloadError
from greenreceipt.utils.timezone import combine_ist_date_time, normalize_transaction_date

from .models import (
    DEFAULT_CATEGORY,
    PAYMENT_METHODS,
    RECEIPT_SOURCES,
    RECEIPT_STATUSES,
    NormalizedReceipt,
    ReceiptLine,
)

MERCHANT_NAME_MAX = 200
NOTE_MAX = 500
FOOTER_MAX = 200
CATEGORY_MAX = 100
LINE_TEXT_MAX = 200

PRICE_TOLERANCE = 0.005

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


class _Issues:
    def __init__(self):
        self.items: list[dict] = []

    def add(self, path: str, message: str) -> None:
        self.items.append({"path": path, "message": message})


def _first_present(source: dict, *keys: str) -> Any:
    """Value of the first alias that is present and not empty."""
    for key in keys:
        value = source.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        if isinstance(value, list) and not value:
            continue
        return value
    return None


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _money(value: Any, path: str, issues: _Issues) -> Optional[float]:
    if value is None:
        return None
    number = _to_number(value)
    if number is None:
        issues.add(path, "Must be a number")
        return None
    if not math.isfinite(number):
        issues.add(path, "Must be a finite number")
        return None
    if number < 0:
        issues.add(path, "Must be zero or more")
        return None
    return round(number, 2)


def _quantity(value: Any, path: str, issues: _Issues) -> int:
    if value is None:
        return 1
    number = _to_number(value)
    if number is None:
        issues.add(path, "Must be a number")
        return 1
    if not math.isfinite(number):
        issues.add(path, "Must be a finite number")
        return 1
    if not number.is_integer():
        issues.add(path, "Quantity must be a whole number")
        return 1
    if number < 1:
        issues.add(path, "Quantity must be at least 1")
        return 1
    return int(number)


def _boolean(value: Any, path: str, issues: _Issues, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    issues.add(path, "Must be true or false")
    return default


def _choice(value: Any, allowed: Iterable[str], default: str, path: str, issues: _Issues) -> str:
    if value is None:
        return default
    if isinstance(value, str) and value.strip().lower() in allowed:
        return value.strip().lower()
    issues.add(path, f"Must be one of: {', '.join(allowed)}")
    return default


def _text(value: Any, path: str, issues: _Issues, max_length: Optional[int] = None) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        issues.add(path, "Must be a string")
        return None
    text = str(value).strip()
    if not text:
        return None
    if max_length is not None and len(text) > max_length:
        issues.add(path, f"Must be at most {max_length} characters")
        return None
    return text


def _object_id(value: Any, path: str, issues: _Issues) -> Optional[str]:
    if value is None:
        return None
    if not is_object_id(value):
        issues.add(path, "Invalid id")
        return None
    return str(value)


def _normalize_line(raw: Any, index: int, issues: _Issues) -> Optional[ReceiptLine]:
    path = f"items.{index}"
    if not isinstance(raw, dict):
        issues.add(path, "Must be an object")
        return None

    name_value = _first_present(raw, "name", "n")
    price_value = _first_present(raw, "unitPrice", "price", "p")

    # Blank rows are common in QR payloads.
    if name_value is None and price_value is None:
        return None

    name = _text(name_value, f"{path}.name", issues, LINE_TEXT_MAX)
    unit_price = _money(price_value, f"{path}.unitPrice", issues)
    quantity = _quantity(_first_present(raw, "quantity", "qty", "q"), f"{path}.quantity", issues)

    if name is None and name_value is None:
        issues.add(f"{path}.name", "Item name is required")

    return ReceiptLine(
        name=name,
        unit_price=unit_price,
        quantity=quantity,
        sku=_text(raw.get("sku"), f"{path}.sku", issues, 64),
        barcode=_text(raw.get("barcode"), f"{path}.barcode", issues, 64),
        variant=_text(raw.get("variant"), f"{path}.variant", issues, 50),
        item_id=_object_id(_first_present(raw, "itemId"), f"{path}.itemId", issues),
    )


def _transaction_date(raw: dict):
    supplied = _first_present(raw, "transactionDate")
    if supplied is None and _first_present(raw, "date") is not None:
        combined = combine_ist_date_time(raw.get("date"), raw.get("time"))
        if combined is not None:
            return combined
        supplied = raw.get("date")
    return normalize_transaction_date(supplied)


def compute_subtotal(lines: Iterable[ReceiptLine]) -> float:
    return round(sum(line.line_total for line in lines), 2)


def normalize_receipt_payload(raw: Any) -> NormalizedReceipt:
    """
    Resolve aliases, coerce values and validate a raw receipt payload.

    Raises:
        ReceiptPayloadError: with every issue found, each carrying a dotted
            path such as ``items.2.quantity``
    """
    issues = _Issues()
    if not isinstance(raw, dict):
        raise ReceiptPayloadError([{"path": "", "message": "Payload must be an object"}])

    raw_items = _first_present(raw, "items", "i")
    if raw_items is None:
        raw_items = []
    lines: list[ReceiptLine] = []
    if isinstance(raw_items, list):
        for index, raw_line in enumerate(raw_items):
            line = _normalize_line(raw_line, index, issues)
            if line is not None:
                lines.append(line)
    else:
        issues.add("items", "Must be a list")

    merchant_code = _text(_first_present(raw, "merchantCode", "mid"), "merchantCode", issues, 20)
    discount = _money(_first_present(raw, "discount"), "discount", issues) or 0.0
    supplied_total = _money(_first_present(raw, "total"), "total", issues)
    category = _text(_first_present(raw, "category"), "category", issues, CATEGORY_MAX)

    receipt = {
        "merchant_id": _object_id(_first_present(raw, "merchantId"), "merchantId", issues),
        "merchant_code": merchant_code.upper() if merchant_code else None,
        "merchant_name": _text(_first_present(raw, "merchantName", "merchant"), "merchantName", issues, MERCHANT_NAME_MAX),
        "user_id": _object_id(_first_present(raw, "userId"), "userId", issues),
        "source": _choice(_first_present(raw, "source"), RECEIPT_SOURCES, "qr", "source", issues),
        "payment_method": _choice(
            _first_present(raw, "paymentMethod"), PAYMENT_METHODS, "upi", "paymentMethod", issues
        ),
        "status": _choice(_first_present(raw, "status"), RECEIPT_STATUSES, "completed", "status", issues),
        "note": _text(_first_present(raw, "note"), "note", issues, NOTE_MAX),
        "image_url": _text(_first_present(raw, "imageUrl"), "imageUrl", issues),
        "footer": _text(_first_present(raw, "footer"), "footer", issues, FOOTER_MAX),
        "exclude_from_stats": _boolean(raw.get("excludeFromStats"), "excludeFromStats", issues),
    }

    if issues.items:
        raise ReceiptPayloadError(issues.items)

    subtotal = compute_subtotal(lines)
    total = supplied_total if supplied_total is not None else round(max(0.0, subtotal - discount), 2)

    return NormalizedReceipt(
        **receipt,
        items=lines,
        subtotal=subtotal,
        discount=discount,
        total=total,
        total_supplied=supplied_total is not None,
        transaction_date=_transaction_date(raw),
        category=category or DEFAULT_CATEGORY,
    )


# =============================================================================
# Catalog reconciliation
# =============================================================================


def _name_key(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return re.sub(r"\s+", " ", value).strip().casefold() or None


def _code_key(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.strip().lower() or None


def _catalog_price(item: dict, variant: Optional[str]) -> float:
    wanted = _name_key(variant)
    if wanted and item.get("hasVariants"):
        for option in item.get("variants") or []:
            if _name_key(option.get("name")) == wanted and option.get("isAvailable", True):
                return option["price"]
    return effective_price(item)


def reconcile_lines(lines: list[ReceiptLine], catalog_items: list[dict]) -> list[ReceiptLine]:
    """
    Match receipt lines to active catalog items by sku, barcode, then name.

    A matched line gets ``item_id`` and ``catalog_price``; a missing unit
    price is filled from the catalog, and a supplied price that differs is
    kept but flagged with ``price_mismatch``. Unmatched lines are returned
    unchanged.
    """
    by_sku: dict[str, dict] = {}
    by_barcode: dict[str, dict] = {}
    by_name: dict[str, dict] = {}
    for item in catalog_items:
        if item.get("isActive") is False:
            continue
        keys = (
            (by_sku, _code_key(item.get("sku"))),
            (by_barcode, _code_key(item.get("barcode"))),
            (by_name, _name_key(item.get("name"))),
        )
        for lookup, key in keys:
            if key:
                lookup.setdefault(key, item)

    reconciled = []
    for line in lines:
        item = (
            by_sku.get(_code_key(line.sku) or "")
            or by_barcode.get(_code_key(line.barcode) or "")
            or by_name.get(_name_key(line.name) or "")
        )
        if item is None:
            reconciled.append(line)
            continue

        catalog_price = round(float(_catalog_price(item, line.variant)), 2)
        update: dict[str, Any] = {
            "item_id": str(item["_id"]),
            "catalog_price": catalog_price,
            "name": line.name or item.get("name"),
        }
        if line.unit_price is None:
            update["unit_price"] = catalog_price
            update["price_mismatch"] = False
        else:
            update["price_mismatch"] = abs(line.unit_price - catalog_price) > PRICE_TOLERANCE
        reconciled.append(line.model_copy(update=update))
    return reconciled


def apply_catalog(receipt: NormalizedReceipt, catalog_items: list[dict]) -> NormalizedReceipt:
    """Reconcile lines and recompute totals the client did not supply."""
    lines = reconcile_lines(receipt.items, catalog_items)
    subtotal = compute_subtotal(lines)
    update: dict[str, Any] = {"items": lines, "subtotal": subtotal}
    if not receipt.total_supplied:
        update["total"] = round(max(0.0, subtotal - receipt.discount), 2)
    return receipt.model_copy(update=update)
