"""Receipt request/response schemas."""

from typing import Any, Optional

from pydantic import Field, field_validator

from greenreceipt.schemas import CamelModel

from .models import PaymentMethod, ReceiptStatus

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50


class ClaimReceiptRequest(CamelModel):
    receipt_id: str = Field(..., pattern=r"^[0-9a-fA-F]{24}$")


class MarkPaidRequest(CamelModel):
    payment_method: Optional[PaymentMethod] = None


class ReceiptUpdate(CamelModel):
    """Fields either owner may change after a receipt is issued."""

    payment_method: Optional[PaymentMethod] = None
    status: Optional[ReceiptStatus] = None
    note: Optional[str] = Field(default=None, max_length=500)
    exclude_from_stats: Optional[bool] = None
    category: Optional[str] = Field(default=None, max_length=100)

    @field_validator("note", "category", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class ReceiptPage(CamelModel):
    receipts: list[dict]
    page: int
    limit: int
    total: int
    has_more: bool
