"""Tests for recurring bill request schemas."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from greenreceipt.bills.schemas import BillCreate, BillStatusUpdate, BillUpdate


class TestBillCreate:
    def test_defaults(self):
        bill = BillCreate.model_validate({"name": "  Rent ", "billCycle": "monthly"})

        assert bill.name == "Rent"
        assert bill.category == "other"
        assert bill.due_day == 1
        assert bill.reminder_offsets == [3, 1]
        assert bill.currency == "INR"
        assert bill.start_date is None

    def test_date_only_is_ist_midnight(self):
        bill = BillCreate.model_validate({"name": "Rent", "billCycle": "monthly", "startDate": "2025-03-15"})

        assert bill.start_date == datetime(2025, 3, 14, 18, 30, tzinfo=timezone.utc)

    def test_iso_datetime_kept_as_utc(self):
        bill = BillCreate.model_validate(
            {"name": "Rent", "billCycle": "monthly", "startDate": "2025-03-15T10:00:00Z"}
        )

        assert bill.start_date == datetime(2025, 3, 15, 10, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["tomorrow", "2025-02-30"])
    def test_invalid_start_date(self, value):
        with pytest.raises(ValidationError):
            BillCreate.model_validate({"name": "Rent", "billCycle": "monthly", "startDate": value})

    def test_cycle_required(self):
        with pytest.raises(ValidationError):
            BillCreate.model_validate({"name": "Rent"})

    def test_custom_cycle_needs_interval(self):
        with pytest.raises(ValidationError, match="Custom interval days required"):
            BillCreate.model_validate({"name": "Gym", "billCycle": "custom"})

        bill = BillCreate.model_validate({"name": "Gym", "billCycle": "custom", "customIntervalDays": 10})
        assert bill.custom_interval_days == 10

    @pytest.mark.parametrize("offsets", [[], [31], [-1], [1, 2, 3, 4, 5, 6]])
    def test_reminder_offsets(self, offsets):
        with pytest.raises(ValidationError):
            BillCreate.model_validate({"name": "Rent", "billCycle": "monthly", "reminderOffsets": offsets})

    def test_unknown_category(self):
        with pytest.raises(ValidationError):
            BillCreate.model_validate({"name": "Rent", "billCycle": "monthly", "category": "groceries"})

    def test_negative_amount(self):
        with pytest.raises(ValidationError):
            BillCreate.model_validate({"name": "Rent", "billCycle": "monthly", "amount": -1})


class TestBillUpdate:
    def test_only_sent_fields_dumped(self):
        update = BillUpdate.model_validate({"amount": None, "dueDay": 5})

        assert update.model_dump(by_alias=True, exclude_unset=True) == {"amount": None, "dueDay": 5}

    def test_status_cannot_be_deleted(self):
        with pytest.raises(ValidationError):
            BillUpdate.model_validate({"status": "deleted"})

    def test_status_toggle(self):
        assert BillStatusUpdate.model_validate({"status": "paused"}).status == "paused"
        with pytest.raises(ValidationError):
            BillStatusUpdate.model_validate({"status": "deleted"})
