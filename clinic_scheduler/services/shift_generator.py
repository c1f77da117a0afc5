from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Tuple
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_scheduler.models.recurring_schedule import RecurringSchedule
from clinic_scheduler.models.shift import Shift, ShiftStatus
from clinic_scheduler.models.staff import StaffMember
from clinic_scheduler.models.time_off import TimeOffRequest, TimeOffStatus
from clinic_scheduler.scheduling.conflicts import validate_shift, working_intervals
from clinic_scheduler.scheduling.errors import ShiftOverlap
from clinic_scheduler.scheduling.intervals import daterange
from clinic_scheduler.scheduling.validators import day_of_week, validate_date_range

logger = logging.getLogger(__name__)


def generate_shifts_from_schedules(db: Session, start_date: date, end_date: date) -> List[Shift]:
    """
    Materialize dated shifts from the weekly recurring schedules.

    For every date in [start_date, end_date] and every active schedule of an active
    staff member on that weekday, create one shift per working interval of the
    schedule (a break splits the day in two), unless the staff member already has
    a (non-cancelled) shift that day. Candidates the conflict engine rejects
    (e.g. approved time off) are skipped.

    Raises ShiftOverlap and creates nothing when the database rejects the batch
    because another writer booked an overlapping shift in the meantime.
    """
    validate_date_range(start_date, end_date)

    staff_ids = [
        s.staff_id
        for s in db.execute(select(StaffMember).where(StaffMember.is_active == True)).scalars().all()  # noqa: E712
    ]
    if not staff_ids:
        return []

    schedules = (
        db.execute(
            select(RecurringSchedule)
            .where(
                and_(
                    RecurringSchedule.staff_id.in_(staff_ids),
                    RecurringSchedule.is_active == True,  # noqa: E712
                )
            )
            .order_by(RecurringSchedule.start_time)
        )
        .scalars()
        .all()
    )

    existing_rows = (
        db.execute(
            select(Shift).where(
                and_(
                    Shift.staff_id.in_(staff_ids),
                    Shift.shift_date >= start_date,
                    Shift.shift_date <= end_date,
                    Shift.status != ShiftStatus.cancelled,
                )
            )
        )
        .scalars()
        .all()
    )
    time_off_rows = (
        db.execute(
            select(TimeOffRequest).where(
                and_(
                    TimeOffRequest.staff_id.in_(staff_ids),
                    TimeOffRequest.status == TimeOffStatus.approved,
                    TimeOffRequest.end_date >= start_date,
                    TimeOffRequest.start_date <= end_date,
                )
            )
        )
        .scalars()
        .all()
    )

    # Index by dow / (staff, date) / staff for quick lookup
    schedules_by_dow: Dict[int, List[RecurringSchedule]] = {}
    for r in schedules:
        schedules_by_dow.setdefault(int(r.day_of_week), []).append(r)

    shifts_by_staff_date: Dict[Tuple[UUID, date], List[Shift]] = {}
    for r in existing_rows:
        shifts_by_staff_date.setdefault((r.staff_id, r.shift_date), []).append(r)

    time_off_by_staff: Dict[UUID, List[TimeOffRequest]] = {}
    for r in time_off_rows:
        time_off_by_staff.setdefault(r.staff_id, []).append(r)

    # staff who already had a shift on a date before this run are left alone that day
    preexisting = set(shifts_by_staff_date)

    created: List[Shift] = []
    for d in daterange(start_date, end_date):
        for sched in schedules_by_dow.get(day_of_week(d), []):
            key = (sched.staff_id, d)
            if key in preexisting:
                continue

            for interval in working_intervals(sched):
                candidate = Shift(
                    staff_id=sched.staff_id,
                    shift_date=d,
                    start_time=interval.start,
                    end_time=interval.end,
                    status=ShiftStatus.scheduled,
                )
                decision = validate_shift(
                    candidate,
                    shifts_by_staff_date.get(key, []),
                    time_off_by_staff.get(sched.staff_id, []),
                )
                if not decision.accepted:
                    logger.info(
                        "skipping generated shift for staff %s on %s %s: %s",
                        sched.staff_id, d.isoformat(), interval, decision.kind,
                    )
                    continue

                db.add(candidate)
                shifts_by_staff_date.setdefault(key, []).append(candidate)
                created.append(candidate)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            "generated shifts for %s..%s rejected by database constraint", start_date, end_date
        )
        raise ShiftOverlap(
            f"Generated shifts overlap a shift booked meanwhile between {start_date.isoformat()} and {end_date.isoformat()}"
        )
    for s in created:
        db.refresh(s)

    logger.info("generated %d shifts from schedules for %s..%s", len(created), start_date, end_date)
    return created
