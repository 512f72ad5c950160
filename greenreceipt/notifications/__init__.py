"""In-app notifications for customers."""

from .repository import NotificationRepository
from .routes import router as notifications_router
from .service import NotificationService

__all__ = [
    "notifications_router",
    "NotificationRepository",
    "NotificationService",
]
