from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_scheduler.models.recurring_schedule import RecurringSchedule
from clinic_scheduler.models.shift import Shift, ShiftStatus
from clinic_scheduler.models.staff import StaffMember
from clinic_scheduler.models.time_off import TimeOffRequest, TimeOffStatus, TimeOffType
from clinic_scheduler.schemas.scheduling import (
    ScheduleCreate,
    ScheduleUpdate,
    ShiftCreate,
    ShiftStatusUpdate,
    TimeOffCreate,
)
from clinic_scheduler.schemas.staff import StaffCreate, StaffUpdate
from clinic_scheduler.scheduling import conflicts
from clinic_scheduler.scheduling.conflicts import ScheduleDecision
from clinic_scheduler.scheduling.errors import ShiftOverlap, ValidationError
from clinic_scheduler.scheduling.intervals import TimeInterval
from clinic_scheduler.scheduling.validators import day_of_week, parse_hhmm
from clinic_scheduler.services.repository import SchedulingRepository

logger = logging.getLogger(__name__)


# ---------- helpers ----------
def _require_staff(repo: SchedulingRepository, staff_id: UUID, active: bool = False) -> StaffMember:
    staff = repo.get(StaffMember, staff_id)
    if not staff:
        raise HTTPException(status_code=404, detail="Staff member not found")
    if active and not staff.is_active:
        raise ValidationError("Staff member is inactive")
    return staff


def _optional_hhmm(value: Optional[str], field: str):
    return parse_hhmm(value, field) if value else None


def _enforce(db: Session, decision: ScheduleDecision, what: str, staff_id: UUID) -> None:
    if not decision.accepted:
        logger.warning(
            "%s rejected for staff %s: %s (conflicting_id=%s)",
            what, staff_id, decision.kind, decision.conflicting_id,
        )
        db.rollback()
        decision.raise_for_conflict()


# ---------- staff ----------
def list_staff(db: Session, include_inactive: bool = False) -> List[StaffMember]:
    return SchedulingRepository(db).list_staff(include_inactive=include_inactive)


def get_staff(db: Session, staff_id: UUID) -> StaffMember:
    return _require_staff(SchedulingRepository(db), staff_id)


def create_staff(db: Session, payload: StaffCreate) -> StaffMember:
    repo = SchedulingRepository(db)
    if repo.staff_by_code(payload.employee_code):
        raise ValidationError("Employee code already exists")
    if payload.user_id is not None and repo.staff_by_user(payload.user_id):
        raise ValidationError("User already has a staff profile")

    staff = repo.save(StaffMember(**payload.model_dump(), is_active=True))
    logger.info("created staff member %s (%s)", staff.staff_id, staff.employee_code)
    return staff


def update_staff(db: Session, staff_id: UUID, payload: StaffUpdate) -> StaffMember:
    repo = SchedulingRepository(db)
    staff = _require_staff(repo, staff_id)
    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(staff, k, v)
    return repo.save(staff)


def deactivate_staff(db: Session, staff_id: UUID) -> StaffMember:
    repo = SchedulingRepository(db)
    staff = _require_staff(repo, staff_id)
    staff.is_active = False
    logger.info("deactivated staff member %s", staff_id)
    return repo.save(staff)


# ---------- recurring schedules ----------
def list_schedules(db: Session, staff_id: UUID) -> List[RecurringSchedule]:
    repo = SchedulingRepository(db)
    _require_staff(repo, staff_id)
    return repo.list_schedules(staff_id=staff_id)


def create_schedule(db: Session, payload: ScheduleCreate) -> RecurringSchedule:
    repo = SchedulingRepository(db)
    _require_staff(repo, payload.staff_id, active=True)

    candidate = RecurringSchedule(
        staff_id=payload.staff_id,
        day_of_week=payload.day_of_week,
        start_time=parse_hhmm(payload.start_time, "start_time"),
        end_time=parse_hhmm(payload.end_time, "end_time"),
        break_start=_optional_hhmm(payload.break_start, "break_start"),
        break_end=_optional_hhmm(payload.break_end, "break_end"),
        is_active=True,
    )
    existing = repo.list_by_staff(RecurringSchedule, payload.staff_id, is_active=True)
    _enforce(db, conflicts.validate_schedule(candidate, existing), "schedule", payload.staff_id)

    schedule = repo.save(candidate)
    logger.info("created schedule %s for staff %s (day %s)", schedule.schedule_id, schedule.staff_id, schedule.day_of_week)
    return schedule


def update_schedule(db: Session, schedule_id: UUID, payload: ScheduleUpdate) -> RecurringSchedule:
    repo = SchedulingRepository(db)
    schedule = repo.get(RecurringSchedule, schedule_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")

    changes = payload.model_dump(exclude_unset=True)
    try:
        for field in ("start_time", "end_time"):
            if changes.get(field) is not None:
                setattr(schedule, field, parse_hhmm(changes[field], field))
        for field in ("break_start", "break_end"):
            if field in changes:
                setattr(schedule, field, _optional_hhmm(changes[field], field))
        if changes.get("is_active") is not None:
            schedule.is_active = changes["is_active"]

        # shape checks always run; an inactive schedule has nothing to overlap with
        existing = []
        if schedule.is_active:
            existing = repo.list_by_staff(RecurringSchedule, schedule.staff_id, is_active=True)
        decision = conflicts.validate_schedule(schedule, existing)
    except ValidationError:
        db.rollback()
        raise

    _enforce(db, decision, "schedule update", schedule.staff_id)

    return repo.save(schedule)


# ---------- shifts ----------
def list_shifts(db: Session, start_date: date, end_date: date, staff_id: Optional[UUID] = None) -> List[Shift]:
    if end_date < start_date:
        raise ValidationError("Start date cannot be after end_date")
    return SchedulingRepository(db).list_shifts(start_date, end_date, staff_id=staff_id)


def create_shift(db: Session, payload: ShiftCreate) -> Shift:
    repo = SchedulingRepository(db)
    _require_staff(repo, payload.staff_id, active=True)

    candidate = Shift(
        staff_id=payload.staff_id,
        shift_date=payload.shift_date,
        start_time=parse_hhmm(payload.start_time, "start_time"),
        end_time=parse_hhmm(payload.end_time, "end_time"),
        status=ShiftStatus.scheduled,
        notes=payload.notes,
    )
    existing = repo.list_by_staff(Shift, payload.staff_id, shift_date=payload.shift_date)
    time_off = repo.list_by_staff(TimeOffRequest, payload.staff_id, status=TimeOffStatus.approved)
    _enforce(db, conflicts.validate_shift(candidate, existing, time_off), "shift", payload.staff_id)

    try:
        shift = repo.save(candidate)
    except IntegrityError:
        # a concurrent writer got there first; the table constraints caught it
        db.rollback()
        logger.warning("shift for staff %s on %s rejected by database constraint", payload.staff_id, payload.shift_date)
        raise ShiftOverlap(f"Shift overlaps an existing shift on {payload.shift_date.isoformat()}")

    logger.info("created shift %s for staff %s on %s", shift.shift_id, shift.staff_id, shift.shift_date)
    return shift


def update_shift_status(db: Session, shift_id: UUID, payload: ShiftStatusUpdate) -> Shift:
    repo = SchedulingRepository(db)
    shift = repo.get(Shift, shift_id)
    if not shift:
        raise HTTPException(status_code=404, detail="Shift not found")

    previous = shift.status
    conflicts.transition_shift(shift, payload.status, payload.actual_start_time, payload.actual_end_time)
    shift.status = ShiftStatus(shift.status)
    shift = repo.save(shift)
    logger.info("shift %s moved from %s to %s", shift_id, getattr(previous, "value", previous), shift.status.value)
    return shift


# ---------- time off ----------
def list_time_off(db: Session, staff_id: Optional[UUID] = None, status: Optional[str] = None) -> List[TimeOffRequest]:
    return SchedulingRepository(db).list_time_off(staff_id=staff_id, status=status)


def create_time_off(db: Session, payload: TimeOffCreate, today: Optional[date] = None) -> TimeOffRequest:
    repo = SchedulingRepository(db)
    _require_staff(repo, payload.staff_id, active=True)

    candidate = TimeOffRequest(
        staff_id=payload.staff_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        type=TimeOffType(payload.type),
        notes=payload.notes,
    )
    existing = repo.list_by_staff(TimeOffRequest, payload.staff_id)
    decision = conflicts.validate_time_off(candidate, existing, today=today)
    _enforce(db, decision, "time off", payload.staff_id)

    candidate.status = TimeOffStatus(decision.status)
    request = repo.save(candidate)
    logger.info("created time off request %s for staff %s", request.time_off_id, request.staff_id)
    return request


def review_time_off(
    db: Session,
    time_off_id: UUID,
    decision: str,
    reviewer_id: UUID,
    notes: Optional[str] = None,
) -> TimeOffRequest:
    repo = SchedulingRepository(db)
    request = repo.get(TimeOffRequest, time_off_id)
    if not request:
        raise HTTPException(status_code=404, detail="Time off request not found")

    conflicts.review_time_off(request, decision, reviewer_id, notes=notes)
    request.status = TimeOffStatus(request.status)
    request = repo.save(request)
    logger.info("time off request %s %s by %s", time_off_id, request.status.value, reviewer_id)
    return request


# ---------- resolution ----------
def effective_schedule(db: Session, staff_id: UUID, on_date: date) -> List[TimeInterval]:
    repo = SchedulingRepository(db)
    staff = _require_staff(repo, staff_id)
    return conflicts.resolve_effective_schedule(
        staff,
        on_date,
        repo.list_by_staff(RecurringSchedule, staff_id, is_active=True),
        repo.list_by_staff(Shift, staff_id, shift_date=on_date),
        repo.list_by_staff(TimeOffRequest, staff_id, status=TimeOffStatus.approved),
    )


def staff_availability(db: Session, on_date: date) -> List[dict]:
    repo = SchedulingRepository(db)
    staff = repo.active_staff()
    if not staff:
        return []

    staff_ids = [s.staff_id for s in staff]
    dow = day_of_week(on_date)

    schedules = (
        db.execute(
            select(RecurringSchedule).where(
                and_(
                    RecurringSchedule.staff_id.in_(staff_ids),
                    RecurringSchedule.is_active == True,  # noqa: E712
                    RecurringSchedule.day_of_week == dow,
                )
            )
        )
        .scalars()
        .all()
    )
    shifts = (
        db.execute(
            select(Shift).where(
                and_(
                    Shift.staff_id.in_(staff_ids),
                    Shift.shift_date == on_date,
                    Shift.status != ShiftStatus.cancelled,
                )
            )
        )
        .scalars()
        .all()
    )
    time_off = (
        db.execute(
            select(TimeOffRequest).where(
                and_(
                    TimeOffRequest.staff_id.in_(staff_ids),
                    TimeOffRequest.status == TimeOffStatus.approved,
                    TimeOffRequest.start_date <= on_date,
                    TimeOffRequest.end_date >= on_date,
                )
            )
        )
        .scalars()
        .all()
    )

    by_staff: Dict[UUID, Dict[str, list]] = {sid: {"schedules": [], "shifts": [], "time_off": []} for sid in staff_ids}
    for r in schedules:
        by_staff[r.staff_id]["schedules"].append(r)
    for r in shifts:
        by_staff[r.staff_id]["shifts"].append(r)
    for r in time_off:
        by_staff[r.staff_id]["time_off"].append(r)

    rows = []
    for s in staff:
        snap = by_staff[s.staff_id]
        intervals = conflicts.resolve_effective_schedule(s, on_date, snap["schedules"], snap["shifts"], snap["time_off"])
        has_schedule = bool(snap["schedules"])
        has_shift = bool(snap["shifts"])
        has_time_off = bool(snap["time_off"])
        rows.append(
            {
                "staff_id": s.staff_id,
                "employee_code": s.employee_code,
                "name": s.name,
                "position": s.position,
                "department": s.department,
                "has_schedule": has_schedule,
                "has_shift": has_shift,
                "has_time_off": has_time_off,
                # free to be booked: normally on that weekday, nothing booked yet, not on leave
                "is_available": has_schedule and not has_shift and not has_time_off,
                "effective_intervals": [i.to_dict() for i in intervals],
            }
        )
    return rows
