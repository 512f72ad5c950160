"""Recurring bill request schemas."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field, field_validator, model_validator

from greenreceipt.schemas import CamelModel
from greenreceipt.utils.timezone import parse_calendar_datetime

from .models import DEFAULT_REMINDER_OFFSETS, BillCategory, BillCycle

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50

ToggleStatus = Literal["active", "paused"]


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _check_offsets(offsets: Optional[list[int]]) -> Optional[list[int]]:
    if offsets is not None and any(offset < 0 or offset > 30 for offset in offsets):
        raise ValueError("reminderOffsets must have 1-5 values between 0-30 days")
    return offsets


class BillCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    amount: Optional[float] = Field(default=None, ge=0)
    currency: str = Field(default="INR", min_length=1, max_length=10)
    category: BillCategory = "other"
    bill_cycle: BillCycle
    due_day: int = Field(default=1, ge=0, le=31)
    custom_interval_days: Optional[int] = Field(default=None, ge=1, le=365)
    reminder_offsets: list[int] = Field(
        default_factory=lambda: list(DEFAULT_REMINDER_OFFSETS), min_length=1, max_length=5
    )
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_auto_pay: bool = False
    notes: str = Field(default="", max_length=1000)

    @field_validator("name", "description", "currency", "notes", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Optional[datetime]:
        return parse_calendar_datetime(v)

    @field_validator("reminder_offsets")
    @classmethod
    def check_offsets(cls, v: list[int]) -> list[int]:
        return _check_offsets(v)

    @model_validator(mode="after")
    def check_custom_interval(self) -> "BillCreate":
        if self.bill_cycle == "custom" and not self.custom_interval_days:
            raise ValueError("Custom interval days required for custom cycle")
        return self


class BillUpdate(CamelModel):
    """Partial update; ``amount`` and ``endDate`` may be cleared with null."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    amount: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, min_length=1, max_length=10)
    category: Optional[BillCategory] = None
    bill_cycle: Optional[BillCycle] = None
    due_day: Optional[int] = Field(default=None, ge=0, le=31)
    custom_interval_days: Optional[int] = Field(default=None, ge=1, le=365)
    reminder_offsets: Optional[list[int]] = Field(default=None, min_length=1, max_length=5)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_auto_pay: Optional[bool] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[ToggleStatus] = None

    @field_validator("name", "description", "currency", "notes", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Optional[datetime]:
        return parse_calendar_datetime(v)

    @field_validator("reminder_offsets")
    @classmethod
    def check_offsets(cls, v: Optional[list[int]]) -> Optional[list[int]]:
        return _check_offsets(v)


class BillStatusUpdate(CamelModel):
    status: ToggleStatus


class BillPage(CamelModel):
    bills: list[dict]
    page: int
    limit: int
    total: int
    has_more: bool
