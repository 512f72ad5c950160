"""Receipts: ingestion, catalog reconciliation and ownership rules."""

from .ingestion import apply_catalog, normalize_receipt_payload, reconcile_lines
from .models import NormalizedReceipt, ReceiptLine
from .repository import ReceiptRepository
from .routes import router as receipts_router
from .service import ReceiptService

__all__ = [
    "receipts_router",
    "ReceiptRepository",
    "ReceiptService",
    "NormalizedReceipt",
    "ReceiptLine",
    "normalize_receipt_payload",
    "reconcile_lines",
    "apply_catalog",
]
