from fastapi import Depends
from pymongo.database import Database

from greenreceipt.auth import CUSTOMER, require_role
from greenreceipt.db import get_database
from greenreceipt.i18n import Language, get_language
from greenreceipt.notifications.dependencies import get_notification_repository
from greenreceipt.notifications.repository import NotificationRepository

from .repository import BillRepository
from .service import BillService

require_customer = require_role(CUSTOMER)


def get_bill_repository(db: Database = Depends(get_database)) -> BillRepository:
    return BillRepository(db)


def get_bill_service(
    repository: BillRepository = Depends(get_bill_repository),
    notifications: NotificationRepository = Depends(get_notification_repository),
    language: Language = Depends(get_language),
) -> BillService:
    return BillService(repository, notifications, language)
