"""Notification request/response schemas."""

from typing import Optional

from greenreceipt.schemas import CamelModel

from .models import NotificationType

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


class NotificationBatchRequest(CamelModel):
    """Body of mark-all-read and dismiss-all; ``type`` narrows the batch."""

    type: Optional[NotificationType] = None


class BatchResult(CamelModel):
    message: str
    count: int


class NotificationPage(CamelModel):
    notifications: list[dict]
    page: int
    limit: int
    total: int
    has_more: bool
    unread_count: int
