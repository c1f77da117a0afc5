from datetime import date, datetime, time
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from clinic_scheduler.models.shift import ShiftStatus
from clinic_scheduler.models.time_off import TimeOffStatus, TimeOffType

TimeOffTypeValue = Literal["vacation", "sick", "personal", "bereavement", "other"]

# Times stay strings at the boundary (HH:MM); the scheduling validators parse them
# so malformed values surface as 400s with the same message everywhere.

class ScheduleCreate(BaseModel):
    staff_id: UUID
    day_of_week: int  # 0=Sun ... 6=Sat
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    break_start: Optional[str] = None
    break_end: Optional[str] = None

class ScheduleUpdate(BaseModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    break_start: Optional[str] = None
    break_end: Optional[str] = None
    is_active: Optional[bool] = None

class ScheduleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    schedule_id: UUID
    staff_id: UUID
    day_of_week: int
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    is_active: bool


class ShiftCreate(BaseModel):
    staff_id: UUID
    shift_date: date
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    notes: Optional[str] = None

class ShiftStatusUpdate(BaseModel):
    status: ShiftStatus
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None

class ShiftGenerateRequest(BaseModel):
    start_date: date
    end_date: date

class ShiftOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    shift_id: UUID
    staff_id: UUID
    shift_date: date
    start_time: time
    end_time: time
    status: ShiftStatus
    notes: Optional[str] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None


class TimeOffCreate(BaseModel):
    staff_id: UUID
    start_date: date
    end_date: date
    reason: str
    type: TimeOffTypeValue = "vacation"
    notes: Optional[str] = None

class TimeOffReview(BaseModel):
    decision: Literal["approved", "rejected"]
    notes: Optional[str] = None

class TimeOffOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time_off_id: UUID
    staff_id: UUID
    start_date: date
    end_date: date
    reason: str
    type: TimeOffType
    status: TimeOffStatus
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    notes: Optional[str] = None


class IntervalOut(BaseModel):
    start_time: str
    end_time: str

class EffectiveScheduleOut(BaseModel):
    staff_id: UUID
    date: date
    day_of_week: int
    intervals: list[IntervalOut]

class StaffAvailabilityOut(BaseModel):
    staff_id: UUID
    employee_code: str
    name: str
    position: str
    department: str
    has_schedule: bool
    has_shift: bool
    has_time_off: bool
    is_available: bool
    effective_intervals: list[IntervalOut]
