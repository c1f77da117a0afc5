from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinic_scheduler.core.database import get_db
from clinic_scheduler.core.security import CurrentUser, get_current_manager, get_current_user
from clinic_scheduler.schemas.scheduling import EffectiveScheduleOut
from clinic_scheduler.schemas.staff import StaffCreate, StaffOut, StaffUpdate
from clinic_scheduler.scheduling.validators import day_of_week
from clinic_scheduler.services import scheduling

router = APIRouter()


@router.get("", response_model=list[StaffOut])
def list_staff(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return scheduling.list_staff(db, include_inactive=include_inactive)


@router.post("", response_model=StaffOut, status_code=201)
def create_staff(
    payload: StaffCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_manager),
):
    return scheduling.create_staff(db, payload)


@router.get("/{staff_id}", response_model=StaffOut)
def get_staff(
    staff_id: UUID,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return scheduling.get_staff(db, staff_id)


@router.patch("/{staff_id}", response_model=StaffOut)
def update_staff(
    staff_id: UUID,
    payload: StaffUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_manager),
):
    return scheduling.update_staff(db, staff_id, payload)


@router.post("/{staff_id}/deactivate", response_model=StaffOut)
def deactivate_staff(
    staff_id: UUID,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_manager),
):
    """Staff are never deleted; deactivation retires them from scheduling."""
    return scheduling.deactivate_staff(db, staff_id)


@router.get("/{staff_id}/effective-schedule", response_model=EffectiveScheduleOut)
def get_effective_schedule(
    staff_id: UUID,
    on_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    intervals = scheduling.effective_schedule(db, staff_id, on_date)
    return {
        "staff_id": staff_id,
        "date": on_date,
        "day_of_week": day_of_week(on_date),
        "intervals": [i.to_dict() for i in intervals],
    }
