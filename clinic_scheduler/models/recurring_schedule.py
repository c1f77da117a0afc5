import uuid
from sqlalchemy import Column, Time, SmallInteger, Boolean, DateTime, ForeignKey, Uuid, CheckConstraint
from sqlalchemy.sql import func

from clinic_scheduler.core.database import Base

class RecurringSchedule(Base):
    __tablename__ = "recurring_schedules"

    schedule_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    staff_id = Column(
        Uuid,
        ForeignKey("staff_members.staff_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    day_of_week = Column(SmallInteger, nullable=False)  # 0=Sun ... 6=Sat
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    break_start = Column(Time, nullable=True)
    break_end = Column(Time, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_recurring_schedules_dow"),
        CheckConstraint("start_time < end_time", name="ck_recurring_schedules_range"),
    )
