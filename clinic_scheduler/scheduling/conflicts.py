"""
Scheduling conflict engine.

Every check here is pure: it looks only at the candidate and the snapshot of
existing commitments handed in by the caller, never touches the database and
never mutates the snapshot. Entities are read by attribute, so ORM rows and
plain objects with the same fields work equally well.

Snapshot entries belonging to other staff members are ignored, as are retired
ones (inactive schedules, cancelled shifts, rejected time off).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional

from clinic_scheduler.scheduling.errors import (
    ConflictError,
    OverlapConflict,
    ShiftOverlap,
    TimeOffConflict,
    TimeOffOverlap,
    ValidationError,
)
from clinic_scheduler.scheduling.intervals import TimeInterval, dates_overlap
from clinic_scheduler.scheduling.validators import (
    day_of_week,
    parse_hhmm,
    validate_date_range,
    validate_day_of_week,
    validate_time_range,
)

logger = logging.getLogger(__name__)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

# time-off review and shift lifecycle
TIME_OFF_DECISIONS = {"approved", "rejected"}
SHIFT_TRANSITIONS = {
    "scheduled": {"in_progress", "cancelled", "no_show"},
    "in_progress": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
    "no_show": set(),
}


@dataclass
class ScheduleDecision:
    accepted: bool
    kind: Optional[str] = None
    conflicting_id: Optional[Any] = None
    status: Optional[str] = None
    conflict: Optional[ConflictError] = field(default=None, compare=False, repr=False)

    @classmethod
    def accept(cls, status: Optional[str] = None) -> "ScheduleDecision":
        return cls(accepted=True, status=status)

    @classmethod
    def reject(cls, conflict: ConflictError) -> "ScheduleDecision":
        logger.debug("rejected: %s (conflicting_id=%s)", conflict.kind, conflict.conflicting_id)
        return cls(
            accepted=False,
            kind=conflict.kind,
            conflicting_id=conflict.conflicting_id,
            conflict=conflict,
        )

    def raise_for_conflict(self) -> None:
        if self.conflict is not None:
            raise self.conflict


# ---------- helpers ----------
def _value(v, default: Optional[str] = None) -> Optional[str]:
    if v is None:
        return default
    return getattr(v, "value", v)


def _is_active(obj) -> bool:
    flag = getattr(obj, "is_active", None)
    return True if flag is None else bool(flag)


def _same_entity(a, b, id_attr: str) -> bool:
    a_id = getattr(a, id_attr, None)
    return a_id is not None and a_id == getattr(b, id_attr, None)


def _interval(obj) -> TimeInterval:
    return TimeInterval(parse_hhmm(obj.start_time, "start_time"), parse_hhmm(obj.end_time, "end_time"))


def _break_interval(schedule, window: TimeInterval) -> Optional[TimeInterval]:
    b_start = getattr(schedule, "break_start", None)
    b_end = getattr(schedule, "break_end", None)
    if b_start is None and b_end is None:
        return None
    if b_start is None or b_end is None:
        raise ValidationError("break_start and break_end must be given together")

    brk = TimeInterval(parse_hhmm(b_start, "break_start"), parse_hhmm(b_end, "break_end"))
    validate_time_range(brk.start, brk.end, what="break_end")
    if brk.start < window.start or brk.end > window.end:
        raise ValidationError("Break must fall within the scheduled hours")
    return brk


def _require_date(value, what: str) -> date:
    if isinstance(value, datetime) or not isinstance(value, date):
        raise ValidationError(f"{what} must be a calendar date")
    return value


def _covering_time_off(staff_id, on_date: date, time_off: Iterable[Any]):
    for req in time_off:
        if req.staff_id != staff_id or _value(req.status, "pending") != "approved":
            continue
        if req.start_date <= on_date <= req.end_date:
            return req
    return None


# ---------- validation ----------
def validate_schedule(candidate, existing: Iterable[Any]) -> ScheduleDecision:
    day = validate_day_of_week(candidate.day_of_week)
    window = _interval(candidate)
    validate_time_range(window.start, window.end)
    _break_interval(candidate, window)

    for other in existing:
        if other.staff_id != candidate.staff_id or not _is_active(other):
            continue
        if _same_entity(other, candidate, "schedule_id"):
            continue
        if int(other.day_of_week) != day:
            continue
        if window.overlaps(_interval(other)):
            return ScheduleDecision.reject(
                OverlapConflict(
                    f"Schedule overlaps existing {DAY_NAMES[day]} schedule {_interval(other)}",
                    conflicting_id=getattr(other, "schedule_id", None),
                )
            )

    return ScheduleDecision.accept()


def validate_shift(candidate, existing_shifts: Iterable[Any], time_off: Iterable[Any]) -> ScheduleDecision:
    shift_date = _require_date(candidate.shift_date, "shift_date")
    window = _interval(candidate)
    validate_time_range(window.start, window.end)

    for other in existing_shifts:
        if other.staff_id != candidate.staff_id or other.shift_date != shift_date:
            continue
        if _value(other.status, "scheduled") == "cancelled" or _same_entity(other, candidate, "shift_id"):
            continue
        if window.overlaps(_interval(other)):
            return ScheduleDecision.reject(
                ShiftOverlap(
                    f"Shift overlaps existing shift {_interval(other)} on {shift_date.isoformat()}",
                    conflicting_id=getattr(other, "shift_id", None),
                )
            )

    req = _covering_time_off(candidate.staff_id, shift_date, time_off)
    if req is not None:
        return ScheduleDecision.reject(
            TimeOffConflict(
                f"Staff member has approved time off from {req.start_date.isoformat()} "
                f"to {req.end_date.isoformat()}",
                conflicting_id=getattr(req, "time_off_id", None),
            )
        )

    return ScheduleDecision.accept()


def validate_time_off(candidate, existing: Iterable[Any], today: Optional[date] = None) -> ScheduleDecision:
    today = today or date.today()
    start = _require_date(candidate.start_date, "start_date")
    end = _require_date(candidate.end_date, "end_date")
    validate_date_range(start, end)
    if start < today:
        raise ValidationError("Start date cannot be in the past")

    for other in existing:
        if other.staff_id != candidate.staff_id or _value(other.status, "pending") == "rejected":
            continue
        if _same_entity(other, candidate, "time_off_id"):
            continue
        if dates_overlap(start, end, other.start_date, other.end_date):
            return ScheduleDecision.reject(
                TimeOffOverlap(
                    f"Time off overlaps existing {_value(other.status, 'pending')} request "
                    f"{other.start_date.isoformat()} to {other.end_date.isoformat()}",
                    conflicting_id=getattr(other, "time_off_id", None),
                )
            )

    return ScheduleDecision.accept(status="pending")


# ---------- resolution ----------
def working_intervals(schedule) -> List[TimeInterval]:
    """The hours of a recurring schedule with its break cut out."""
    window = _interval(schedule)
    brk = _break_interval(schedule, window)
    return window.subtract(brk) if brk else [window]


def resolve_effective_schedule(
    staff,
    on_date: date,
    schedules: Iterable[Any],
    shifts: Iterable[Any],
    time_off: Iterable[Any],
) -> List[TimeInterval]:
    """
    Working intervals for one staff member on one date:
      recurring schedule for the weekday (minus breaks)
      -> replaced wholesale by any dated shift
      -> emptied by approved time off covering the date
    """
    if not _is_active(staff):
        return []

    staff_id = staff.staff_id

    if _covering_time_off(staff_id, on_date, time_off) is not None:
        return []

    dated = [
        _interval(s)
        for s in shifts
        if s.staff_id == staff_id and s.shift_date == on_date and _value(s.status, "scheduled") != "cancelled"
    ]
    if dated:
        return sorted(dated)

    dow = day_of_week(on_date)
    intervals: List[TimeInterval] = []
    for sched in schedules:
        if sched.staff_id != staff_id or not _is_active(sched) or int(sched.day_of_week) != dow:
            continue
        intervals.extend(working_intervals(sched))

    return sorted(intervals)


# ---------- transitions ----------
def review_time_off(request, decision: str, reviewer_id, notes: Optional[str] = None, now: Optional[datetime] = None):
    decision = _value(decision)
    if decision not in TIME_OFF_DECISIONS:
        raise ValidationError("Decision must be 'approved' or 'rejected'")

    current = _value(request.status, "pending")
    if current != "pending":
        raise ValidationError(f"Time off request is already {current}")

    request.status = decision
    request.reviewed_by = reviewer_id
    request.reviewed_at = now or datetime.now(timezone.utc)
    if notes is not None:
        request.notes = notes
    return request


def transition_shift(shift, status: str, actual_start: Optional[datetime] = None, actual_end: Optional[datetime] = None):
    status = _value(status)
    current = _value(shift.status, "scheduled")
    if status not in SHIFT_TRANSITIONS:
        raise ValidationError(f"Unknown shift status: {status}")
    if status not in SHIFT_TRANSITIONS[current]:
        raise ValidationError(f"Cannot move shift from {current} to {status}")
    if actual_start is not None and actual_end is not None and actual_end <= actual_start:
        raise ValidationError("actual_end_time must be after actual_start_time")

    shift.status = status
    if actual_start is not None:
        shift.actual_start_time = actual_start
    if actual_end is not None:
        shift.actual_end_time = actual_end
    return shift
