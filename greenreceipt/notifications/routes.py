"""Notification routes for customers."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from greenreceipt.auth import CurrentUser
from greenreceipt.i18n import Language, get_language, translate
from greenreceipt.schemas import MessageResponse

from .dependencies import get_notification_service, require_customer
from .models import NotificationType
from .schemas import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    BatchResult,
    NotificationBatchRequest,
    NotificationPage,
)
from .service import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=NotificationPage)
async def list_notifications(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    notification_type: Optional[NotificationType] = Query(default=None, alias="type"),
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    user: CurrentUser = Depends(require_customer),
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    """Newest first; dismissed notifications are hidden."""
    return await service.list_notifications(
        user.id, page, limit, notification_type=notification_type, unread_only=unread_only
    )


@router.get("/count")
async def unread_count(
    user: CurrentUser = Depends(require_customer),
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    return {"count": await service.unread_count(user.id)}


@router.get("/preferences")
async def get_preferences(
    user: CurrentUser = Depends(require_customer),
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    return {"preferences": service.preferences()}


@router.post("/mark-all-read", response_model=BatchResult)
async def mark_all_read(
    request_body: Optional[NotificationBatchRequest] = None,
    user: CurrentUser = Depends(require_customer),
    service: NotificationService = Depends(get_notification_service),
    language: Language = Depends(get_language),
) -> BatchResult:
    notification_type = request_body.type if request_body else None
    count = await service.mark_all_read(user.id, notification_type)
    return BatchResult(message=translate("notifications_read", language), count=count)


@router.post("/dismiss-all", response_model=BatchResult)
async def dismiss_all(
    request_body: Optional[NotificationBatchRequest] = None,
    user: CurrentUser = Depends(require_customer),
    service: NotificationService = Depends(get_notification_service),
    language: Language = Depends(get_language),
) -> BatchResult:
    notification_type = request_body.type if request_body else None
    count = await service.dismiss_all(user.id, notification_type)
    return BatchResult(message=translate("notifications_dismissed", language), count=count)


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    user: CurrentUser = Depends(require_customer),
    service: NotificationService = Depends(get_notification_service),
    language: Language = Depends(get_language),
) -> dict:
    notification = await service.mark_read(user.id, notification_id)
    return {"message": translate("notification_read", language), "notification": notification}


@router.delete("/{notification_id}", response_model=MessageResponse)
async def dismiss_notification(
    notification_id: str,
    user: CurrentUser = Depends(require_customer),
    service: NotificationService = Depends(get_notification_service),
    language: Language = Depends(get_language),
) -> MessageResponse:
    await service.dismiss(user.id, notification_id)
    return MessageResponse(message=translate("notification_dismissed", language))
