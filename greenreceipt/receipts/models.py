"""Receipt document models."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from greenreceipt.schemas import CamelModel

RECEIPT_SOURCES = ("qr", "upload", "manual")
PAYMENT_METHODS = ("upi", "card", "cash", "other")
RECEIPT_STATUSES = ("completed", "pending", "void")

Source = Literal["qr", "upload", "manual"]
PaymentMethod = Literal["upi", "card", "cash", "other"]
ReceiptStatus = Literal["completed", "pending", "void"]

DEFAULT_CATEGORY = "general"


class ReceiptLine(CamelModel):
    """One purchased line. ``unit_price`` may stay empty until reconciled."""

    name: Optional[str] = None
    unit_price: Optional[float] = None
    quantity: int = 1
    sku: Optional[str] = None
    barcode: Optional[str] = None
    variant: Optional[str] = None
    item_id: Optional[str] = None
    catalog_price: Optional[float] = None
    price_mismatch: bool = False

    @property
    def line_total(self) -> float:
        return (self.unit_price or 0) * self.quantity


class NormalizedReceipt(CamelModel):
    """A receipt payload after alias resolution, coercion and validation."""

    merchant_id: Optional[str] = None
    merchant_code: Optional[str] = None
    merchant_name: Optional[str] = None
    user_id: Optional[str] = None
    items: list[ReceiptLine] = Field(default_factory=list)
    subtotal: float = 0
    discount: float = 0
    total: float = 0
    total_supplied: bool = Field(default=False, exclude=True)
    source: Source = "qr"
    payment_method: PaymentMethod = "upi"
    status: ReceiptStatus = "completed"
    transaction_date: datetime
    note: Optional[str] = None
    image_url: Optional[str] = None
    exclude_from_stats: bool = False
    footer: Optional[str] = None
    category: str = DEFAULT_CATEGORY
