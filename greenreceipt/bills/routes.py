"""Recurring bill routes for customers."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from greenreceipt.auth import CurrentUser
from greenreceipt.i18n import Language, get_language, translate
from greenreceipt.schemas import MessageResponse

from .dependencies import get_bill_service, require_customer
from .models import BillCategory
from .schemas import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, BillCreate, BillPage, BillStatusUpdate, BillUpdate
from .service import BillService

router = APIRouter(prefix="/api/bills", tags=["bills"])


@router.get("/upcoming")
async def upcoming_bills(
    days: int = Query(default=7, ge=0, le=365),
    user: CurrentUser = Depends(require_customer),
    service: BillService = Depends(get_bill_service),
) -> dict:
    """Active bills due within ``days`` or overdue, with a summary for the dashboard."""
    return await service.upcoming(user.id, days)


@router.get("/categories")
async def bill_categories(
    user: CurrentUser = Depends(require_customer),
    service: BillService = Depends(get_bill_service),
) -> dict:
    return {"categories": await service.categories(user.id)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_bill(
    request_body: BillCreate,
    user: CurrentUser = Depends(require_customer),
    service: BillService = Depends(get_bill_service),
) -> dict:
    return await service.create_bill(user.id, request_body)


@router.get("", response_model=BillPage)
async def list_bills(
    bill_status: Literal["active", "paused", "deleted", "all"] = Query(default="active", alias="status"),
    category: Optional[BillCategory] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user: CurrentUser = Depends(require_customer),
    service: BillService = Depends(get_bill_service),
) -> dict:
    return await service.list_bills(user.id, bill_status, category, page, limit)


@router.get("/{bill_id}")
async def get_bill(
    bill_id: str,
    user: CurrentUser = Depends(require_customer),
    service: BillService = Depends(get_bill_service),
) -> dict:
    """A bill with its next six due dates."""
    return await service.get_bill(user.id, bill_id)


@router.patch("/{bill_id}/status")
async def set_bill_status(
    bill_id: str,
    request_body: BillStatusUpdate,
    user: CurrentUser = Depends(require_customer),
    service: BillService = Depends(get_bill_service),
) -> dict:
    return await service.set_status(user.id, bill_id, request_body.status)


@router.post("/{bill_id}/mark-paid")
async def mark_bill_paid(
    bill_id: str,
    user: CurrentUser = Depends(require_customer),
    service: BillService = Depends(get_bill_service),
) -> dict:
    return await service.mark_paid(user.id, bill_id)


@router.patch("/{bill_id}")
async def update_bill(
    bill_id: str,
    request_body: BillUpdate,
    user: CurrentUser = Depends(require_customer),
    service: BillService = Depends(get_bill_service),
) -> dict:
    return await service.update_bill(user.id, bill_id, request_body)


@router.delete("/{bill_id}", response_model=MessageResponse)
async def delete_bill(
    bill_id: str,
    permanent: bool = False,
    user: CurrentUser = Depends(require_customer),
    service: BillService = Depends(get_bill_service),
    language: Language = Depends(get_language),
) -> MessageResponse:
    """Soft delete, or remove for good with ``?permanent=true``."""
    await service.delete_bill(user.id, bill_id, permanent)
    return MessageResponse(message=translate("bill_removed" if permanent else "bill_deleted", language))
