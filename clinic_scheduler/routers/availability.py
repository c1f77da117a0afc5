from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinic_scheduler.core.database import get_db
from clinic_scheduler.core.security import CurrentUser, get_current_user
from clinic_scheduler.schemas.scheduling import StaffAvailabilityOut
from clinic_scheduler.services import scheduling

router = APIRouter()


@router.get("", response_model=list[StaffAvailabilityOut])
def get_staff_availability(
    on_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Who is on the roster for a given date and still free to be booked."""
    return scheduling.staff_availability(db, on_date)
