"""IST calendar helpers.

Instants are stored as real UTC datetimes; India Standard Time is only used
to interpret date-only input and to format or bucket values for display.
IST has no daylight saving, so a fixed offset is exact.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

IST = timezone(timedelta(hours=5, minutes=30), "IST")
IST_TIME_ZONE = "Asia/Kolkata"

_DATE_ONLY = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DAY_FIRST = re.compile(r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{4})$")
_CLOCK = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])?$")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_ist(value: datetime) -> datetime:
    return ensure_utc(value).astimezone(IST)


def ist_midnight(day: date) -> datetime:
    """Start of an IST calendar day, as a UTC instant."""
    return datetime.combine(day, time(0, 0), tzinfo=IST).astimezone(timezone.utc)


def _parse_iso(text: str) -> Optional[datetime]:
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def normalize_transaction_date(value: Any) -> datetime:
    """
    Normalize a transaction timestamp for storage.

    - empty / None -> now
    - datetime -> aware UTC (naive values are taken as UTC)
    - int / float -> epoch milliseconds
    - ``YYYY-MM-DD`` -> midnight IST of that day
    - other strings -> ISO-8601, trailing ``Z`` accepted
    - anything unparseable -> now
    """
    if value is None or value == "":
        return now_utc()

    if isinstance(value, datetime):
        return ensure_utc(value)

    if isinstance(value, bool):
        return now_utc()

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return now_utc()

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return now_utc()
        match = _DATE_ONLY.match(text)
        if match:
            try:
                return ist_midnight(date(*(int(part) for part in match.groups())))
            except ValueError:
                return now_utc()
        return _parse_iso(text) or now_utc()

    return now_utc()


def parse_calendar_datetime(value: Any) -> Optional[datetime]:
    """
    Strict variant of :func:`normalize_transaction_date` for user-set dates.

    ``YYYY-MM-DD`` is midnight IST, other strings must be ISO-8601.

    Raises:
        ValueError: if the value cannot be read as a date
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return ist_midnight(value)
    if isinstance(value, str):
        text = value.strip()
        match = _DATE_ONLY.match(text)
        if match:
            return ist_midnight(date(*(int(part) for part in match.groups())))
        parsed = _parse_iso(text)
        if parsed is not None:
            return parsed
    raise ValueError("Invalid date")


def parse_ist_clock(value: Any) -> Optional[time]:
    """Parse ``14:30``, ``2:30 PM`` or ``14:30:05`` into a wall-clock time."""
    if not isinstance(value, str):
        return None
    match = _CLOCK.match(value.strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    meridiem = (match.group(4) or "").lower()
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12 + (12 if meridiem == "pm" else 0)
    if hour > 23 or minute > 59 or second > 59:
        return None
    return time(hour, minute, second)


def combine_ist_date_time(date_value: Any, time_value: Any = None) -> Optional[datetime]:
    """
    Build a UTC instant from a printed IST date and optional clock time.

    Accepts ``YYYY-MM-DD`` and day-first ``DD/MM/YYYY`` dates, as printed on
    shop QR codes. Returns None when the date cannot be read.
    """
    if not isinstance(date_value, str):
        return None
    text = date_value.strip()
    try:
        match = _DATE_ONLY.match(text)
        if match:
            day = date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        else:
            match = _DAY_FIRST.match(text)
            if not match:
                return None
            day = date(int(match.group(3)), int(match.group(2)), int(match.group(1)))
    except ValueError:
        return None

    clock = parse_ist_clock(time_value) or time(0, 0)
    return datetime.combine(day, clock, tzinfo=IST).astimezone(timezone.utc)


def format_ist_date(value: Optional[datetime]) -> str:
    """``YYYY-MM-DD`` on the IST calendar, empty string for None."""
    if value is None:
        return ""
    return to_ist(value).strftime("%Y-%m-%d")


def format_ist_time(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return to_ist(value).strftime("%H:%M")


def format_ist_datetime(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return to_ist(value).strftime("%Y-%m-%dT%H:%M:%S") + "+05:30"


@dataclass(frozen=True)
class ISTDateRanges:
    """Period boundaries on the IST calendar, expressed as UTC instants."""

    now: datetime
    start_of_today: datetime
    start_of_week: datetime
    start_of_last_week: datetime
    end_of_last_week: datetime
    start_of_month: datetime
    start_of_last_month: datetime
    end_of_last_month: datetime
    start_of_year: datetime


def ist_date_ranges(now: Optional[datetime] = None) -> ISTDateRanges:
    """Compute today / week (Sunday first) / month / year boundaries."""
    now = ensure_utc(now) if now is not None else now_utc()
    today = to_ist(now).date()

    start_of_today = ist_midnight(today)
    # Python's weekday(): Monday=0 .. Sunday=6; weeks here start on Sunday.
    days_since_sunday = (today.weekday() + 1) % 7
    start_of_week = start_of_today - timedelta(days=days_since_sunday)
    start_of_last_week = start_of_week - timedelta(days=7)

    first_of_month = today.replace(day=1)
    start_of_month = ist_midnight(first_of_month)
    last_month_day = first_of_month - timedelta(days=1)
    start_of_last_month = ist_midnight(last_month_day.replace(day=1))

    one_ms = timedelta(milliseconds=1)
    return ISTDateRanges(
        now=now,
        start_of_today=start_of_today,
        start_of_week=start_of_week,
        start_of_last_week=start_of_last_week,
        end_of_last_week=start_of_week - one_ms,
        start_of_month=start_of_month,
        start_of_last_month=start_of_last_month,
        end_of_last_month=start_of_month - one_ms,
        start_of_year=ist_midnight(date(today.year, 1, 1)),
    )
