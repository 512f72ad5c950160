"""In-app notification types and display helpers."""

from datetime import datetime
from typing import Literal, Optional

from greenreceipt.db import serialize_document
from greenreceipt.i18n import Language, translate
from greenreceipt.utils.timezone import ensure_utc, now_utc

NotificationType = Literal[
    "bill_reminder",
    "bill_due_today",
    "bill_overdue",
    "warranty",
    "budget",
    "eco",
    "return",
    "system",
    "promo",
]

SOURCE_RECURRING_BILL = "recurring_bill"

# Returned until per-user settings exist.
DEFAULT_PREFERENCES = {
    "inApp": True,
    "email": False,
    "billReminders": True,
    "budgetAlerts": True,
    "warrantyAlerts": True,
    "ecoMilestones": True,
    "promos": False,
}


def time_ago(created_at: Optional[datetime], now: Optional[datetime] = None, language: Language = Language.ENGLISH) -> str:
    if created_at is None:
        return ""
    now = now or now_utc()
    seconds = max(0, int((now - ensure_utc(created_at)).total_seconds()))
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400

    if days > 0:
        return translate("time_yesterday" if days == 1 else "time_days_ago", language, count=days)
    if hours > 0:
        return translate("time_hour_ago" if hours == 1 else "time_hours_ago", language, count=hours)
    if minutes > 0:
        return translate("time_minute_ago" if minutes == 1 else "time_minutes_ago", language, count=minutes)
    return translate("time_just_now", language)


def notification_view(notification: dict, now: Optional[datetime] = None, language: Language = Language.ENGLISH) -> dict:
    view = serialize_document(notification)
    view["timeAgo"] = time_ago(notification.get("createdAt"), now, language)
    return view

