"""Shift schemas."""

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.shift import ShiftStatus, ShiftType


class ShiftCreate(BaseModel):
    staff_id: UUID
    shift_type: ShiftType
    shift_date: date
    start_time: time | None = None
    end_time: time | None = None
    note: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def _custom_needs_times(self):
        if self.shift_type == ShiftType.CUSTOM and (self.start_time is None or self.end_time is None):
            raise ValueError("Ca tùy chỉnh cần giờ bắt đầu và giờ kết thúc")
        return self


class ShiftUpdate(BaseModel):
    shift_type: ShiftType | None = None
    shift_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    note: str | None = Field(None, max_length=500)


class ShiftStatusUpdate(BaseModel):
    status: ShiftStatus


class ShiftResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    staff_id: UUID
    store_id: UUID
    shift_type: ShiftType
    shift_date: date
    starts_at: datetime
    ends_at: datetime
    status: ShiftStatus
    checked_in_at: datetime | None
    checked_out_at: datetime | None
    note: str | None
    created_at: datetime


class ShiftListResponse(BaseModel):
    items: list[ShiftResponse]
    total: int


class ScheduleDay(BaseModel):
    date: date
    shifts: list[ShiftResponse]


class WeeklySchedule(BaseModel):
    week_start: date
    week_end: date
    days: list[ScheduleDay]
    total_hours: Decimal
