from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from clinic_scheduler.core.database import get_db
from clinic_scheduler.core.security import CurrentUser, get_current_manager, get_current_user
from clinic_scheduler.schemas.scheduling import TimeOffCreate, TimeOffOut, TimeOffReview
from clinic_scheduler.services import scheduling

router = APIRouter()


@router.get("", response_model=list[TimeOffOut])
def list_time_off(
    staff_id: Optional[UUID] = Query(None),
    status: Optional[Literal["pending", "approved", "rejected"]] = Query(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return scheduling.list_time_off(db, staff_id=staff_id, status=status)


@router.post("", response_model=TimeOffOut, status_code=201)
def create_time_off(
    payload: TimeOffCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    # staff file their own requests; managers may file for anyone
    if not current_user.is_manager and current_user.staff_id != payload.staff_id:
        raise HTTPException(status_code=403, detail="You can only request time off for yourself")
    return scheduling.create_time_off(db, payload)


@router.post("/{time_off_id}/review", response_model=TimeOffOut)
def review_time_off(
    time_off_id: UUID,
    payload: TimeOffReview,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_manager),
):
    return scheduling.review_time_off(
        db,
        time_off_id,
        payload.decision,
        reviewer_id=current_user.user_id,
        notes=payload.notes,
    )
