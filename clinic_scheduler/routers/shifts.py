from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinic_scheduler.core.database import get_db
from clinic_scheduler.core.security import CurrentUser, get_current_manager, get_current_user
from clinic_scheduler.schemas.scheduling import ShiftCreate, ShiftGenerateRequest, ShiftOut, ShiftStatusUpdate
from clinic_scheduler.services import scheduling
from clinic_scheduler.services.shift_generator import generate_shifts_from_schedules

router = APIRouter()


@router.get("", response_model=list[ShiftOut])
def list_shifts(
    start_date: date = Query(...),
    end_date: date = Query(...),
    staff_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return scheduling.list_shifts(db, start_date, end_date, staff_id=staff_id)


@router.post("", response_model=ShiftOut, status_code=201)
def create_shift(
    payload: ShiftCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_manager),
):
    return scheduling.create_shift(db, payload)


@router.patch("/{shift_id}/status", response_model=ShiftOut)
def update_shift_status(
    shift_id: UUID,
    payload: ShiftStatusUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_manager),
):
    return scheduling.update_shift_status(db, shift_id, payload)


@router.post("/generate")
def generate_shifts(
    req: ShiftGenerateRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_manager),
):
    shifts = generate_shifts_from_schedules(db, req.start_date, req.end_date)
    return {
        "message": "Shifts generated successfully",
        "count": len(shifts),
        "shifts": [ShiftOut.model_validate(s) for s in shifts],
    }
