"""Recurring bill cycles and due-date arithmetic.

Due dates are IST calendar days. A ``dueDay`` past the end of a short month
lands on that month's last day (31 in February is the 28th or 29th).
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Literal, Optional

from greenreceipt.db import serialize_document
from greenreceipt.utils.timezone import ensure_utc, ist_midnight, now_utc, to_ist

BillCycle = Literal["weekly", "biweekly", "monthly", "quarterly", "yearly", "custom"]
BillCategory = Literal[
    "utilities", "subscriptions", "insurance", "rent", "loan", "credit_card", "phone", "internet", "other"
]
BillStatus = Literal["active", "paused", "deleted"]

DEFAULT_REMINDER_OFFSETS = [3, 1]
DUE_SOON_DAYS = 3


def _ist_day(value) -> date:
    if isinstance(value, datetime):
        return to_ist(value).date()
    return value


def _month_day(year: int, month: int, day: int) -> date:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, max(1, min(day, last)))


def _shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def _every(start: date, today: date, days: int) -> date:
    completed = (today - start).days // days
    return start + timedelta(days=(completed + 1) * days)


def next_due_date(bill: dict, today: date) -> date:
    """
    First due day strictly after the cycle position of ``today``.

    - weekly: ``dueDay`` is the weekday, 0 = Sunday
    - biweekly / custom: every 14 / ``customIntervalDays`` days from ``startDate``
    - monthly: ``dueDay`` of this month if still ahead, else next month
    - quarterly: ``dueDay`` of the next quarter month (Jan, Apr, Jul, Oct)
    - yearly: ``dueDay`` of the ``startDate`` month
    """
    cycle = bill.get("billCycle") or "monthly"
    due_day = bill.get("dueDay")
    if due_day is None:
        due_day = 1
    start = _ist_day(bill.get("startDate") or today)

    if cycle == "custom" and not bill.get("customIntervalDays"):
        cycle = "monthly"

    if cycle == "weekly":
        sunday_based = (today.weekday() + 1) % 7
        days = due_day % 7 - sunday_based
        if days <= 0:
            days += 7
        return today + timedelta(days=days)

    if cycle == "biweekly":
        return _every(start, today, 14)

    if cycle == "custom":
        return _every(start, today, int(bill["customIntervalDays"]))

    if cycle == "quarterly":
        quarter_month = (today.month - 1) // 3 * 3 + 1
        if today.month == quarter_month and today.day < due_day:
            return _month_day(today.year, quarter_month, due_day)
        return _month_day(*_shift_month(today.year, quarter_month, 3), due_day)

    if cycle == "yearly":
        year = today.year
        if today.month > start.month or (today.month == start.month and today.day >= due_day):
            year += 1
        return _month_day(year, start.month, due_day)

    year, month = today.year, today.month
    if today.day >= due_day:
        year, month = _shift_month(year, month, 1)
    return _month_day(year, month, due_day)


def upcoming_due_dates(bill: dict, today: date, count: int = 3) -> list[date]:
    dates = []
    current = today
    for _ in range(count):
        due = next_due_date(bill, current)
        dates.append(due)
        current = due + timedelta(days=1)
    return dates


def is_paid_this_cycle(bill: dict, now: datetime) -> bool:
    paid_until = bill.get("markedPaidUntil")
    return paid_until is not None and ensure_utc(paid_until) > now


def bill_view(bill: dict, now: Optional[datetime] = None, upcoming: int = 3) -> dict:
    """Serialize a bill with its next due date and the derived due flags."""
    now = ensure_utc(now) if now is not None else now_utc()
    today = to_ist(now).date()
    due = next_due_date(bill, today)
    days_until_due = (due - today).days

    view = serialize_document(bill)
    view["nextDueDate"] = ist_midnight(due)
    if upcoming:
        view["upcomingDueDates"] = [ist_midnight(day) for day in upcoming_due_dates(bill, today, upcoming)]
    view["daysUntilDue"] = days_until_due
    view["isOverdue"] = days_until_due < 0
    view["isDueSoon"] = 0 <= days_until_due <= DUE_SOON_DAYS
    view["isPaidThisCycle"] = is_paid_this_cycle(bill, now)
    return view


def upcoming_bills(bills: list[dict], now: datetime, within_days: int = 7) -> dict:
    """Bills due within ``within_days`` (or overdue), soonest first, with totals."""
    cutoff = ist_midnight(to_ist(now).date() + timedelta(days=within_days))
    views = [bill_view(bill, now, upcoming=0) for bill in bills]
    due = sorted(
        (view for view in views if view["nextDueDate"] <= cutoff or view["isOverdue"]),
        key=lambda view: view["nextDueDate"],
    )
    pending = [view for view in due if not view["isPaidThisCycle"]]
    return {
        "bills": due,
        "summary": {
            "totalBills": len(due),
            "totalAmount": round(sum(view.get("amount") or 0 for view in due), 2),
            "overdueCount": sum(1 for view in pending if view["isOverdue"]),
            "dueSoonCount": sum(1 for view in pending if view["isDueSoon"]),
            "currency": (due[0].get("currency") if due else None) or "INR",
        },
    }
