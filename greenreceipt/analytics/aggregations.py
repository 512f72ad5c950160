"""Spending and sales analytics computed over a list of receipt documents.

All functions here are pure: they take the owner's receipts (as stored,
camelCase keys, UTC ``transactionDate``) plus an :class:`ISTDateRanges`
snapshot and return JSON-ready dicts. Day, hour, weekday and month buckets
follow the IST calendar.
"""

import calendar
import math
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Optional

from greenreceipt.utils.timezone import (
    IST_TIME_ZONE,
    ISTDateRanges,
    ensure_utc,
    format_ist_datetime,
    ist_midnight,
    to_ist,
)

DAILY_TREND_DAYS = 30
MONTHLY_TREND_MONTHS = 6
RECENT_LIMIT = 5
TOP_MERCHANTS = 5
TOP_CUSTOMERS = 5
TOP_ITEMS = 10
TOP_CATEGORIES = 10

# dayOfWeek numbering: 1 = Sunday .. 7 = Saturday
WEEKDAY_NAMES = ["", "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

GENERAL_CATEGORY = "general"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _money(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _amount(receipt: dict) -> float:
    return _money(receipt.get("total"))


def _when(receipt: dict) -> Optional[datetime]:
    value = receipt.get("transactionDate") or receipt.get("createdAt")
    return ensure_utc(value) if isinstance(value, datetime) else None


def countable(receipts: Iterable[dict]) -> list[dict]:
    """Receipts that count towards statistics, newest first."""
    kept = [
        receipt
        for receipt in receipts
        if not receipt.get("excludeFromStats") and receipt.get("status") != "void" and _when(receipt)
    ]
    kept.sort(key=_when, reverse=True)
    return kept


def in_period(receipts: Iterable[dict], start: datetime, end: Optional[datetime] = None) -> list[dict]:
    return [r for r in receipts if _when(r) >= start and (end is None or _when(r) <= end)]


def totals(receipts: list[dict]) -> dict:
    return {"total": round(sum(_amount(r) for r in receipts), 2), "count": len(receipts)}


def percent_change(current: float, previous: float, from_zero: int = 0) -> int:
    """Rounded percent change; ``from_zero`` is reported when there is no previous value."""
    if previous > 0:
        return round_half_up((current - previous) / previous * 100)
    return from_zero if current > 0 else 0


def percentage(part: float, whole: float) -> int:
    return round_half_up(part / whole * 100) if whole > 0 else 0


def _group(receipts: Iterable[dict], key: Callable[[dict], Any]) -> dict[Any, list[dict]]:
    groups: dict[Any, list[dict]] = defaultdict(list)
    for receipt in receipts:
        groups[key(receipt)].append(receipt)
    return groups


def _lines(receipts: Iterable[dict]) -> Iterable[dict]:
    for receipt in receipts:
        for line in receipt.get("items") or []:
            yield line


# =============================================================================
# Shared sections
# =============================================================================


def summary(receipts: list[dict], ranges: ISTDateRanges, grow_from_zero: int = 0) -> dict:
    """All-time, month, week and year totals plus period-over-period changes."""
    this_month = totals(in_period(receipts, ranges.start_of_month))
    last_month = totals(in_period(receipts, ranges.start_of_last_month, ranges.end_of_last_month))
    this_week = totals(in_period(receipts, ranges.start_of_week))
    last_week = totals(in_period(receipts, ranges.start_of_last_week, ranges.end_of_last_week))
    all_time = totals(receipts)

    day_of_month = to_ist(ranges.now).day
    this_month["avgPerDay"] = round_half_up(this_month["total"] / day_of_month) if day_of_month else 0

    return {
        "totalAllTime": all_time["total"],
        "totalReceiptsAllTime": all_time["count"],
        "thisMonth": this_month,
        "lastMonth": last_month,
        "thisWeek": this_week,
        "lastWeek": last_week,
        "thisYear": totals(in_period(receipts, ranges.start_of_year)),
        "changes": {
            "monthOverMonth": percent_change(this_month["total"], last_month["total"], grow_from_zero),
            "weekOverWeek": percent_change(this_week["total"], last_week["total"], grow_from_zero),
        },
    }


def payment_methods(month_receipts: list[dict], month_total: float) -> list[dict]:
    rows = [
        {
            "method": method or "other",
            "total": round(sum(_amount(r) for r in group), 2),
            "count": len(group),
        }
        for method, group in _group(month_receipts, lambda r: r.get("paymentMethod")).items()
    ]
    rows.sort(key=lambda row: row["total"], reverse=True)
    for row in rows:
        row["percentage"] = percentage(row["total"], month_total)
    return rows


def daily_trend(receipts: list[dict], ranges: ISTDateRanges) -> list[dict]:
    """Per-IST-day totals over the last 30 days, oldest first."""
    since = ranges.now - timedelta(days=DAILY_TREND_DAYS)
    groups = _group(in_period(receipts, since), lambda r: to_ist(_when(r)).strftime("%Y-%m-%d"))
    return [{"date": day, **totals(groups[day])} for day in sorted(groups)]


def _months_back(ranges: ISTDateRanges, months: int) -> datetime:
    today = to_ist(ranges.now).date()
    index = today.year * 12 + (today.month - 1) - months
    return ist_midnight(today.replace(year=index // 12, month=index % 12 + 1, day=1))


def monthly_trend(receipts: list[dict], ranges: ISTDateRanges) -> list[dict]:
    """Per-IST-month totals for the current month and the five before it."""
    since = _months_back(ranges, MONTHLY_TREND_MONTHS - 1)
    groups = _group(in_period(receipts, since), lambda r: (to_ist(_when(r)).year, to_ist(_when(r)).month))
    return [{"year": year, "month": month, **totals(groups[(year, month)])} for year, month in sorted(groups)]


def meta(ranges: ISTDateRanges) -> dict:
    return {
        "generatedAt": format_ist_datetime(ranges.now),
        "periodStart": format_ist_datetime(ranges.start_of_month),
        "periodEnd": format_ist_datetime(ranges.now),
        "timezone": IST_TIME_ZONE,
    }


# =============================================================================
# Customer
# =============================================================================


def resolve_category(receipt: dict) -> str:
    """Receipt category, else the shop's business category, else ``general``."""
    category = (receipt.get("category") or "").strip()
    if category and category != GENERAL_CATEGORY:
        return category
    snapshot = receipt.get("merchantSnapshot") or {}
    return snapshot.get("businessCategory") or GENERAL_CATEGORY


def _customer_categories(month_receipts: list[dict], month_total: float) -> list[dict]:
    rows = []
    for category, group in _group(month_receipts, resolve_category).items():
        spent = round(sum(_amount(r) for r in group), 2)
        rows.append({
            "category": category,
            "totalSpent": spent,
            "count": len(group),
            "avgTransaction": round_half_up(spent / len(group)),
            "percentage": percentage(spent, month_total),
        })
    rows.sort(key=lambda row: row["totalSpent"], reverse=True)
    return rows[:TOP_CATEGORIES]


def _top_merchants(month_receipts: list[dict]) -> list[dict]:
    def _shop(receipt: dict) -> tuple:
        snapshot = receipt.get("merchantSnapshot") or {}
        return snapshot.get("shopName"), snapshot.get("businessCategory")

    rows = [
        {
            "name": shop_name or "Unknown",
            "businessCategory": business_category or GENERAL_CATEGORY,
            "totalSpent": round(sum(_amount(r) for r in group), 2),
            "visits": len(group),
            "lastVisit": max(_when(r) for r in group),
        }
        for (shop_name, business_category), group in _group(month_receipts, _shop).items()
    ]
    rows.sort(key=lambda row: row["totalSpent"], reverse=True)
    return rows[:TOP_MERCHANTS]


def _item_rows(month_receipts: list[dict]) -> list[dict]:
    grouped: dict[str, dict] = {}
    for line in _lines(month_receipts):
        name = line.get("name") or "Unknown"
        price = _money(line.get("unitPrice"))
        quantity = int(line.get("quantity") or 1)
        row = grouped.setdefault(name, {"name": name, "spent": 0.0, "quantity": 0, "prices": []})
        row["spent"] += price * quantity
        row["quantity"] += quantity
        row["prices"].append(price)
    return list(grouped.values())


def _customer_top_items(month_receipts: list[dict]) -> list[dict]:
    rows = sorted(_item_rows(month_receipts), key=lambda row: row["spent"], reverse=True)[:TOP_ITEMS]
    return [
        {
            "name": row["name"],
            "totalSpent": round_half_up(row["spent"]),
            "quantity": row["quantity"],
            "avgPrice": round_half_up(sum(row["prices"]) / len(row["prices"])),
        }
        for row in rows
    ]


def customer_analytics(receipts: Iterable[dict], ranges: ISTDateRanges) -> dict:
    """Spending analytics for one customer's receipts."""
    receipts = countable(receipts)
    month_receipts = in_period(receipts, ranges.start_of_month)
    overview = summary(receipts, ranges)

    this_month = overview["thisMonth"]
    today = to_ist(ranges.now)
    days_in_month = calendar.monthrange(today.year, today.month)[1]
    this_month["projectedTotal"] = this_month["avgPerDay"] * days_in_month
    month_total = this_month["total"]

    recent = []
    for receipt in receipts[:RECENT_LIMIT]:
        snapshot = receipt.get("merchantSnapshot") or {}
        recent.append({
            "merchant": snapshot.get("shopName") or "Unknown",
            "businessCategory": snapshot.get("businessCategory") or receipt.get("category") or GENERAL_CATEGORY,
            "amount": _amount(receipt),
            "date": _when(receipt),
            "category": receipt.get("category") or snapshot.get("businessCategory") or GENERAL_CATEGORY,
            "paymentMethod": receipt.get("paymentMethod"),
        })

    return {
        "summary": overview,
        "categories": _customer_categories(month_receipts, month_total),
        "paymentMethods": payment_methods(month_receipts, month_total),
        "topMerchants": _top_merchants(month_receipts),
        "trends": {
            "daily": daily_trend(receipts, ranges),
            "monthly": monthly_trend(receipts, ranges),
        },
        "recentActivity": recent,
        "topItems": _customer_top_items(month_receipts),
        "meta": meta(ranges),
    }


# =============================================================================
# Merchant
# =============================================================================


def format_hour(hour: int) -> str:
    if hour == 0:
        return "12:00 AM"
    if hour == 12:
        return "12:00 PM"
    return f"{hour}:00 AM" if hour < 12 else f"{hour - 12}:00 PM"


def hour_range(hour: int) -> str:
    return f"{format_hour(hour)} - {format_hour((hour + 1) % 24)}"


def day_of_week(moment: datetime) -> int:
    """1 = Sunday .. 7 = Saturday, on the IST calendar."""
    return (to_ist(moment).weekday() + 1) % 7 + 1


def insights(month_receipts: list[dict]) -> dict:
    """Peak hour and busiest/slowest weekday, from this month's receipts only."""
    hourly = [
        {
            "hour": hour,
            "formatted": format_hour(hour),
            "timeRange": hour_range(hour),
            "count": len(group),
            "total": round(sum(_amount(r) for r in group), 2),
        }
        for hour, group in _group(month_receipts, lambda r: to_ist(_when(r)).hour).items()
    ]
    hourly.sort(key=lambda row: (-row["count"], row["hour"]))

    weekdays = [
        {
            "dayOfWeek": day,
            "name": WEEKDAY_NAMES[day],
            "count": len(group),
            "total": round(sum(_amount(r) for r in group), 2),
        }
        for day, group in _group(month_receipts, lambda r: day_of_week(_when(r))).items()
    ]
    weekdays.sort(key=lambda row: (row["count"], row["dayOfWeek"]))

    def _day(row: Optional[dict]) -> Optional[dict]:
        if row is None:
            return None
        return {
            "dayOfWeek": row["dayOfWeek"],
            "name": row["name"],
            "salesCount": row["count"],
            "totalRevenue": row["total"],
        }

    peak = hourly[0] if hourly else None
    return {
        "peakHour": {
            "hour": peak["hour"],
            "formatted": peak["formatted"],
            "timeRange": peak["timeRange"],
            "salesCount": peak["count"],
            "totalRevenue": peak["total"],
        } if peak else None,
        "slowestDay": _day(weekdays[0] if weekdays else None),
        "busiestDay": _day(weekdays[-1] if weekdays else None),
        "hourlyDistribution": hourly,
        "weekdayDistribution": weekdays,
        "hasData": bool(month_receipts),
        "dataPoints": {
            "totalReceipts": len(month_receipts),
            "daysWithSales": len(weekdays),
            "hoursWithSales": len(hourly),
        },
    }


def _merchant_categories(month_receipts: list[dict], month_total: float) -> list[dict]:
    rows = []
    for category, group in _group(month_receipts, lambda r: r.get("category") or "Uncategorized").items():
        sales = round(sum(_amount(r) for r in group), 2)
        rows.append({
            "category": category,
            "totalSales": sales,
            "receipts": len(group),
            "percentage": percentage(sales, month_total),
        })
    rows.sort(key=lambda row: row["totalSales"], reverse=True)
    return rows


def _top_customers(receipts: list[dict]) -> list[dict]:
    linked = [r for r in receipts if r.get("userId") is not None]
    rows = []
    for _, group in _group(linked, lambda r: str(r["userId"])).items():
        # Groups keep newest-first order, so the first snapshot is the latest name.
        snapshot = group[0].get("customerSnapshot") or {}
        rows.append({
            "name": snapshot.get("name") or "Anonymous",
            "totalSpent": round(sum(_amount(r) for r in group), 2),
            "visits": len(group),
            "lastVisit": max(_when(r) for r in group),
        })
    rows.sort(key=lambda row: row["totalSpent"], reverse=True)
    return rows[:TOP_CUSTOMERS]


def _merchant_top_items(month_receipts: list[dict]) -> list[dict]:
    rows = sorted(_item_rows(month_receipts), key=lambda row: row["quantity"], reverse=True)[:TOP_ITEMS]
    best_seller = rows[0]["quantity"] if rows else 1
    return [
        {
            "name": row["name"],
            "totalRevenue": round_half_up(row["spent"]),
            "quantity": row["quantity"],
            "avgPrice": round_half_up(sum(row["prices"]) / len(row["prices"])),
            "percentage": percentage(row["quantity"], best_seller),
        }
        for row in rows
    ]


def merchant_analytics(receipts: Iterable[dict], ranges: ISTDateRanges) -> dict:
    """Sales analytics for one merchant's receipts."""
    receipts = countable(receipts)
    month_receipts = in_period(receipts, ranges.start_of_month)
    overview = summary(receipts, ranges, grow_from_zero=100)
    month_total = overview["thisMonth"]["total"]

    recent = [
        {
            "customer": (receipt.get("customerSnapshot") or {}).get("name") or "Walk-in",
            "amount": _amount(receipt),
            "date": _when(receipt),
            "category": receipt.get("category"),
            "paymentMethod": receipt.get("paymentMethod"),
            "itemCount": len(receipt.get("items") or []),
        }
        for receipt in receipts[:RECENT_LIMIT]
    ]

    return {
        "summary": overview,
        "insights": insights(month_receipts),
        "categories": _merchant_categories(month_receipts, month_total),
        "paymentMethods": payment_methods(month_receipts, month_total),
        "dailySales": daily_trend(receipts, ranges),
        "monthlyTrend": monthly_trend(receipts, ranges),
        "topCustomers": _top_customers(receipts),
        "topItems": _merchant_top_items(month_receipts),
        "recentActivity": recent,
        "meta": meta(ranges),
    }
