import enum
import uuid
from sqlalchemy import Column, Date, String, Text, DateTime, Enum, ForeignKey, Uuid, CheckConstraint
from sqlalchemy.sql import func

from clinic_scheduler.core.database import Base

class TimeOffType(str, enum.Enum):
    vacation = "vacation"
    sick = "sick"
    personal = "personal"
    bereavement = "bereavement"
    other = "other"

class TimeOffStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"

class TimeOffRequest(Base):
    __tablename__ = "time_off_requests"

    time_off_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    staff_id = Column(
        Uuid,
        ForeignKey("staff_members.staff_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    reason = Column(String, nullable=False)
    type = Column(Enum(TimeOffType, name="time_off_type"), nullable=False, default=TimeOffType.vacation)
    status = Column(Enum(TimeOffStatus, name="time_off_status"), nullable=False, default=TimeOffStatus.pending)

    reviewed_by = Column(Uuid, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_time_off_requests_range"),
    )
