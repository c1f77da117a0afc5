from typing import Any, Optional


class SchedulingError(Exception):
    """Base class for everything the scheduling engine reports to callers."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed input, raised before any conflict check runs."""


class ConflictError(SchedulingError):
    """A candidate collides with an existing commitment of the same staff member."""

    kind = "conflict"

    def __init__(self, message: str, conflicting_id: Optional[Any] = None):
        super().__init__(message)
        self.conflicting_id = conflicting_id

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "conflict": self.kind,
            "conflicting_id": str(self.conflicting_id) if self.conflicting_id is not None else None,
        }


class OverlapConflict(ConflictError):
    kind = "overlap_conflict"


class ShiftOverlap(ConflictError):
    kind = "shift_overlap"


class TimeOffConflict(ConflictError):
    kind = "time_off_conflict"


class TimeOffOverlap(ConflictError):
    kind = "time_off_overlap"
