"""Recurring bills a customer tracks (rent, utilities, subscriptions)."""

from .models import bill_view, next_due_date, upcoming_bills, upcoming_due_dates
from .repository import BillRepository
from .routes import router as bills_router
from .service import BillService

__all__ = [
    "bills_router",
    "BillRepository",
    "BillService",
    "bill_view",
    "next_due_date",
    "upcoming_bills",
    "upcoming_due_dates",
]
