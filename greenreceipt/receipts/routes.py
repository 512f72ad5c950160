"""Receipt routes for customers and merchants."""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from greenreceipt.auth import CurrentUser
from greenreceipt.i18n import Language, get_language, translate
from greenreceipt.schemas import MessageResponse

from .dependencies import get_receipt_service, require_account, require_customer, require_merchant
from .schemas import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ClaimReceiptRequest,
    MarkPaidRequest,
    ReceiptPage,
    ReceiptUpdate,
)
from .service import ReceiptService

router = APIRouter(prefix="/api/receipts", tags=["receipts"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_receipt(
    payload: dict[str, Any] = Body(...),
    user: CurrentUser = Depends(require_account),
    service: ReceiptService = Depends(get_receipt_service),
) -> dict:
    """
    Create a receipt from a QR scan, an upload or manual entry.

    The body is taken as-is: short QR keys (``mid``, ``i``, ``n``, ``p``,
    ``q``) are accepted next to the full names, and unknown keys are ignored.
    """
    return await service.create_receipt(user, payload)


@router.get("/customer", response_model=ReceiptPage)
async def list_customer_receipts(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user: CurrentUser = Depends(require_customer),
    service: ReceiptService = Depends(get_receipt_service),
) -> dict:
    return await service.list_receipts(user, page, limit)


@router.get("/merchant", response_model=ReceiptPage)
async def list_merchant_receipts(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user: CurrentUser = Depends(require_merchant),
    service: ReceiptService = Depends(get_receipt_service),
) -> dict:
    return await service.list_receipts(user, page, limit)


@router.post("/claim")
async def claim_receipt(
    request_body: ClaimReceiptRequest,
    user: CurrentUser = Depends(require_customer),
    service: ReceiptService = Depends(get_receipt_service),
) -> dict:
    """Attach an unclaimed receipt (e.g. scanned at the counter) to the caller."""
    return await service.claim_receipt(user, request_body.receipt_id)


@router.get("/{receipt_id}")
async def get_receipt(
    receipt_id: str,
    user: CurrentUser = Depends(require_account),
    service: ReceiptService = Depends(get_receipt_service),
) -> dict:
    return await service.get_receipt(user, receipt_id)


@router.patch("/{receipt_id}/mark-paid")
async def mark_receipt_paid(
    receipt_id: str,
    request_body: Optional[MarkPaidRequest] = None,
    user: CurrentUser = Depends(require_merchant),
    service: ReceiptService = Depends(get_receipt_service),
) -> dict:
    """Mark a pending receipt completed; the body may name the payment method."""
    return await service.mark_paid(user, receipt_id, request_body or MarkPaidRequest())


@router.patch("/{receipt_id}")
async def update_receipt(
    receipt_id: str,
    request_body: ReceiptUpdate,
    user: CurrentUser = Depends(require_account),
    service: ReceiptService = Depends(get_receipt_service),
) -> dict:
    return await service.update_receipt(user, receipt_id, request_body)


@router.delete("/{receipt_id}", response_model=MessageResponse)
async def delete_receipt(
    receipt_id: str,
    user: CurrentUser = Depends(require_account),
    service: ReceiptService = Depends(get_receipt_service),
    language: Language = Depends(get_language),
) -> MessageResponse:
    await service.delete_receipt(user, receipt_id)
    return MessageResponse(message=translate("receipt_deleted", language))
