from fastapi import Depends
from pymongo.database import Database

from greenreceipt.auth import CUSTOMER, require_role
from greenreceipt.db import get_database
from greenreceipt.i18n import Language, get_language

from .repository import NotificationRepository
from .service import NotificationService

require_customer = require_role(CUSTOMER)


def get_notification_repository(db: Database = Depends(get_database)) -> NotificationRepository:
    return NotificationRepository(db)


def get_notification_service(
    repository: NotificationRepository = Depends(get_notification_repository),
    language: Language = Depends(get_language),
) -> NotificationService:
    return NotificationService(repository, language)
