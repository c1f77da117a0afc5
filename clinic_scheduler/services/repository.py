from datetime import date
from typing import Optional, TypeVar
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from clinic_scheduler.models.recurring_schedule import RecurringSchedule
from clinic_scheduler.models.shift import Shift
from clinic_scheduler.models.staff import StaffMember
from clinic_scheduler.models.time_off import TimeOffRequest

T = TypeVar("T")

# natural ordering per entity
_ORDERING = {
    RecurringSchedule: (RecurringSchedule.day_of_week, RecurringSchedule.start_time),
    Shift: (Shift.shift_date, Shift.start_time),
    TimeOffRequest: (TimeOffRequest.start_date, TimeOffRequest.created_at.desc()),
}


class SchedulingRepository:
    """Snapshot reads and writes for the scheduling entities of one request-scoped session."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, model: type[T], entity_id: UUID) -> Optional[T]:
        return self.db.get(model, entity_id)

    def list_by_staff(self, model: type[T], staff_id: UUID, **filters) -> list[T]:
        stmt = select(model).where(model.staff_id == staff_id)
        for name, value in filters.items():
            stmt = stmt.where(getattr(model, name) == value)
        stmt = stmt.order_by(*_ORDERING.get(model, ()))
        return list(self.db.execute(stmt).scalars().all())

    def save(self, entity: T) -> T:
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def list_shifts(self, start_date: date, end_date: date, staff_id: Optional[UUID] = None) -> list[Shift]:
        stmt = select(Shift).where(and_(Shift.shift_date >= start_date, Shift.shift_date <= end_date))
        if staff_id:
            stmt = stmt.where(Shift.staff_id == staff_id)
        return list(self.db.execute(stmt.order_by(Shift.shift_date, Shift.start_time)).scalars().all())

    def list_time_off(self, staff_id: Optional[UUID] = None, status: Optional[str] = None) -> list[TimeOffRequest]:
        stmt = select(TimeOffRequest)
        if staff_id:
            stmt = stmt.where(TimeOffRequest.staff_id == staff_id)
        if status:
            stmt = stmt.where(TimeOffRequest.status == status)
        stmt = stmt.order_by(*_ORDERING[TimeOffRequest])
        return list(self.db.execute(stmt).scalars().all())

    def list_schedules(self, staff_id: Optional[UUID] = None) -> list[RecurringSchedule]:
        stmt = select(RecurringSchedule).where(RecurringSchedule.is_active == True)  # noqa: E712
        if staff_id:
            stmt = stmt.where(RecurringSchedule.staff_id == staff_id)
        stmt = stmt.order_by(RecurringSchedule.staff_id, *_ORDERING[RecurringSchedule])
        return list(self.db.execute(stmt).scalars().all())

    def list_staff(self, include_inactive: bool = False) -> list[StaffMember]:
        stmt = select(StaffMember)
        if not include_inactive:
            stmt = stmt.where(StaffMember.is_active == True)  # noqa: E712
        return list(self.db.execute(stmt.order_by(StaffMember.name)).scalars().all())

    def active_staff(self) -> list[StaffMember]:
        return self.list_staff(include_inactive=False)

    def staff_by_code(self, employee_code: str) -> Optional[StaffMember]:
        stmt = select(StaffMember).where(StaffMember.employee_code == employee_code)
        return self.db.execute(stmt).scalar_one_or_none()

    def staff_by_user(self, user_id: UUID) -> Optional[StaffMember]:
        stmt = select(StaffMember).where(StaffMember.user_id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()
