from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

class StaffCreate(BaseModel):
    employee_code: str
    user_id: Optional[UUID] = None
    name: str
    position: str
    department: str
    hire_date: Optional[date] = None
    notes: Optional[str] = None

class StaffUpdate(BaseModel):
    name: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None

class StaffOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    staff_id: UUID
    user_id: Optional[UUID] = None
    employee_code: str
    name: str
    position: str
    department: str
    hire_date: Optional[date] = None
    is_active: bool
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
