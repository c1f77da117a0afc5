from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinic_scheduler.core.database import get_db
from clinic_scheduler.core.security import CurrentUser, get_current_manager, get_current_user
from clinic_scheduler.schemas.scheduling import ScheduleCreate, ScheduleOut, ScheduleUpdate
from clinic_scheduler.services import scheduling

router = APIRouter()


@router.get("", response_model=list[ScheduleOut])
def list_schedules(
    staff_id: UUID = Query(...),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return scheduling.list_schedules(db, staff_id)


@router.post("", response_model=ScheduleOut, status_code=201)
def create_schedule(
    payload: ScheduleCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_manager),
):
    return scheduling.create_schedule(db, payload)


@router.patch("/{schedule_id}", response_model=ScheduleOut)
def update_schedule(
    schedule_id: UUID,
    payload: ScheduleUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_manager),
):
    return scheduling.update_schedule(db, schedule_id, payload)
