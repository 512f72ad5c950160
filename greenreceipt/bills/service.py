"""Recurring bill service - a customer's bills and their due dates."""

from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException, status
from loguru import logger

from greenreceipt.db import to_object_id
from greenreceipt.i18n import Language, translate
from greenreceipt.notifications.models import SOURCE_RECURRING_BILL
from greenreceipt.notifications.repository import NotificationRepository
from greenreceipt.utils.timezone import IST_TIME_ZONE, ensure_utc, ist_midnight, now_utc, to_ist

from .models import bill_view, next_due_date, upcoming_bills
from .repository import NOT_DELETED, BillRepository
from .schemas import BillCreate, BillUpdate

# Fields a client may clear by sending null.
NULLABLE_BILL_FIELDS = {"amount", "endDate"}


class BillService:
    """Service class for recurring bill operations."""

    def __init__(
        self,
        repository: BillRepository,
        notifications: NotificationRepository,
        language: Language = Language.ENGLISH,
    ):
        self.repo = repository
        self.notifications = notifications
        self.language = language

    def _error(self, status_code: int, key: str) -> HTTPException:
        return HTTPException(status_code=status_code, detail=translate(key, self.language))

    async def _require_bill(self, user_id: str, bill_id: str) -> dict:
        bill = await self.repo.get(to_object_id(user_id), to_object_id(bill_id))
        if not bill:
            raise self._error(status.HTTP_404_NOT_FOUND, "bill_not_found")
        return bill

    async def create_bill(self, user_id: str, request: BillCreate, now: Optional[datetime] = None) -> dict:
        """Create an active bill; ``startDate`` defaults to today (IST)."""
        now = ensure_utc(now) if now is not None else now_utc()
        document = request.to_document()
        document.update(
            userId=to_object_id(user_id),
            startDate=request.start_date or ist_midnight(to_ist(now).date()),
            status="active",
            timezone=IST_TIME_ZONE,
            markedPaidUntil=None,
            merchantId=None,
        )
        bill = await self.repo.create(document)
        return bill_view(bill, now)

    async def list_bills(
        self,
        user_id: str,
        status_filter: str = "active",
        category: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
        now: Optional[datetime] = None,
    ) -> dict:
        """One page of bills, newest first; ``status_filter="all"`` hides only deleted ones."""
        query: dict = {
            "userId": to_object_id(user_id),
            "status": NOT_DELETED if status_filter == "all" else status_filter,
        }
        if category:
            query["category"] = category

        skip = (page - 1) * limit
        bills, total = await self.repo.list_page(query, skip=skip, limit=limit)
        return {
            "bills": [bill_view(bill, now) for bill in bills],
            "page": page,
            "limit": limit,
            "total": total,
            "hasMore": skip + len(bills) < total,
        }

    async def get_bill(self, user_id: str, bill_id: str, now: Optional[datetime] = None) -> dict:
        return bill_view(await self._require_bill(user_id, bill_id), now, upcoming=6)

    async def update_bill(
        self, user_id: str, bill_id: str, request: BillUpdate, now: Optional[datetime] = None
    ) -> dict:
        """
        Apply a partial update.

        Raises:
            HTTPException: 400 for an empty update or a deleted bill, 404 if
                unknown, 422 if the result is a custom cycle without an interval
        """
        fields = {
            key: value
            for key, value in request.model_dump(by_alias=True, exclude_unset=True).items()
            if value is not None or key in NULLABLE_BILL_FIELDS
        }
        if not fields:
            raise self._error(status.HTTP_400_BAD_REQUEST, "no_update_fields")

        bill = await self._require_bill(user_id, bill_id)
        if bill.get("status") == "deleted":
            raise self._error(status.HTTP_400_BAD_REQUEST, "bill_is_deleted")

        merged = {**bill, **fields}
        if merged.get("billCycle") == "custom" and not merged.get("customIntervalDays"):
            raise self._error(status.HTTP_422_UNPROCESSABLE_ENTITY, "custom_interval_required")

        updated = await self.repo.update(bill["userId"], bill["_id"], fields)
        if not updated:
            raise self._error(status.HTTP_404_NOT_FOUND, "bill_not_found")
        return bill_view(updated, now)

    async def set_status(self, user_id: str, bill_id: str, new_status: str, now: Optional[datetime] = None) -> dict:
        """Pause or resume a bill that is not deleted."""
        updated = await self.repo.update(
            to_object_id(user_id), to_object_id(bill_id), {"status": new_status}, include_deleted=False
        )
        if not updated:
            raise self._error(status.HTTP_404_NOT_FOUND, "bill_not_found")
        return bill_view(updated, now)

    async def mark_paid(self, user_id: str, bill_id: str, now: Optional[datetime] = None) -> dict:
        """
        Mark the current cycle paid.

        ``markedPaidUntil`` is set to the day after the next due date; the
        returned ``nextDueDate`` is the following cycle's.
        """
        now = ensure_utc(now) if now is not None else now_utc()
        bill = await self._require_bill(user_id, bill_id)
        paid_until = next_due_date(bill, to_ist(now).date()) + timedelta(days=1)

        updated = await self.repo.update(bill["userId"], bill["_id"], {"markedPaidUntil": ist_midnight(paid_until)})
        if not updated:
            raise self._error(status.HTTP_404_NOT_FOUND, "bill_not_found")
        view = bill_view(updated, now)
        view["nextDueDate"] = ist_midnight(next_due_date(updated, paid_until))
        return view

    async def delete_bill(self, user_id: str, bill_id: str, permanent: bool = False) -> None:
        """Soft delete by default; ``permanent`` also removes the bill's notifications."""
        owner, bill_oid = to_object_id(user_id), to_object_id(bill_id)
        if permanent:
            if not await self.repo.delete(owner, bill_oid):
                raise self._error(status.HTTP_404_NOT_FOUND, "bill_not_found")
            await self.notifications.delete_for_source(SOURCE_RECURRING_BILL, bill_oid)
            logger.info(f"Bill permanently deleted: {bill_id} user={user_id}")
            return

        if not await self.repo.update(owner, bill_oid, {"status": "deleted"}):
            raise self._error(status.HTTP_404_NOT_FOUND, "bill_not_found")

    async def upcoming(self, user_id: str, within_days: int = 7, now: Optional[datetime] = None) -> dict:
        now = ensure_utc(now) if now is not None else now_utc()
        bills = await self.repo.list_active(to_object_id(user_id))
        return upcoming_bills(bills, now, within_days)

    async def categories(self, user_id: str) -> list[dict]:
        return await self.repo.category_totals(to_object_id(user_id))
