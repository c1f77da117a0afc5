import re
from datetime import date, time

from clinic_scheduler.scheduling.errors import ValidationError

# 24-hour clock; a single-digit hour ("9:30") is accepted
HHMM_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


def parse_hhmm(value, field: str = "time") -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if isinstance(value, str) and HHMM_RE.match(value.strip()):
        hh, mm = value.strip().split(":")
        return time(int(hh), int(mm))
    raise ValidationError(f"Invalid {field} format. Use HH:MM format")


def validate_time_range(start: time, end: time, what: str = "end_time") -> None:
    # No overnight blocks: end must be strictly after start on the same day
    if end <= start:
        raise ValidationError(f"{what} must be after start_time")


def validate_day_of_week(day) -> int:
    if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
        raise ValidationError("Day of week must be between 0 and 6")
    return day


def validate_date_range(start: date, end: date, what: str = "end_date") -> None:
    if not isinstance(start, date) or not isinstance(end, date):
        raise ValidationError("Dates must be ISO-8601 calendar dates")
    if start > end:
        raise ValidationError(f"Start date cannot be after {what}")


def day_of_week(d: date) -> int:
    """0=Sun ... 6=Sat, matching RecurringSchedule.day_of_week."""
    return (d.weekday() + 1) % 7
