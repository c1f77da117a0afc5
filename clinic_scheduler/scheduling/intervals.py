from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Iterator, List


def to_minutes(t) -> int:
    if hasattr(t, "hour"):
        return int(t.hour) * 60 + int(t.minute)
    s = str(t)
    hh, mm = s[:5].split(":")
    return int(hh) * 60 + int(mm)


def overlaps(a_start_m: int, a_end_m: int, b_start_m: int, b_end_m: int) -> bool:
    # half-open: back-to-back blocks (09:00-12:00, 12:00-15:00) do not overlap
    return a_start_m < b_end_m and b_start_m < a_end_m


def dates_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    # inclusive date ranges
    return a_start <= b_end and b_start <= a_end


def daterange(start: date, end: date) -> Iterator[date]:
    cur = start
    while cur <= end:
        yield cur
        cur += timedelta(days=1)


@dataclass(frozen=True, order=True)
class TimeInterval:
    start: time
    end: time

    @property
    def start_m(self) -> int:
        return to_minutes(self.start)

    @property
    def end_m(self) -> int:
        return to_minutes(self.end)

    def overlaps(self, other: "TimeInterval") -> bool:
        return overlaps(self.start_m, self.end_m, other.start_m, other.end_m)

    def subtract(self, other: "TimeInterval") -> List["TimeInterval"]:
        if not self.overlaps(other):
            return [self]
        pieces = []
        if self.start < other.start:
            pieces.append(TimeInterval(self.start, other.start))
        if other.end < self.end:
            pieces.append(TimeInterval(other.end, self.end))
        return pieces

    def to_dict(self) -> dict:
        return {"start_time": self.start.strftime("%H:%M"), "end_time": self.end.strftime("%H:%M")}

    def __str__(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"
