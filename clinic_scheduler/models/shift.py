import enum
import uuid
from sqlalchemy import Column, Date, Time, Text, DateTime, Enum, ForeignKey, Uuid, Index, CheckConstraint, text
from sqlalchemy.sql import func

from clinic_scheduler.core.database import Base

class ShiftStatus(str, enum.Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"

class Shift(Base):
    __tablename__ = "shifts"

    shift_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    staff_id = Column(
        Uuid,
        ForeignKey("staff_members.staff_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    shift_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    status = Column(Enum(ShiftStatus, name="shift_status"), nullable=False, default=ShiftStatus.scheduled)
    notes = Column(Text, nullable=True)

    actual_start_time = Column(DateTime(timezone=True), nullable=True)
    actual_end_time = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Backstop for concurrent writers; Postgres also gets an exclusion constraint (see migrations)
    __table_args__ = (
        Index(
            "uq_shifts_live_staff_date_start",
            "staff_id",
            "shift_date",
            "start_time",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        CheckConstraint("start_time < end_time", name="ck_shifts_range"),
    )
