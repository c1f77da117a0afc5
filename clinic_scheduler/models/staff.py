import uuid
from sqlalchemy import Column, String, Date, Boolean, DateTime, Text, Uuid
from sqlalchemy.sql import func

from clinic_scheduler.core.database import Base

class StaffMember(Base):
    __tablename__ = "staff_members"

    staff_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # identity-service user this profile belongs to
    user_id = Column(Uuid, nullable=True, unique=True, index=True)

    employee_code = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    position = Column(String, nullable=False)
    department = Column(String, nullable=False)

    hire_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
