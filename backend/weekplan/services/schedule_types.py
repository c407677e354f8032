from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
import re

HHMM_PATTERN = re.compile(r"^\s*(\d{1,2})\s*:\s*(\d{1,2})(?:\s*:\s*(\d{1,2}))?\s*$")


class DayOfWeek(str, Enum):
    mon = "Mon"
    tue = "Tue"
    wed = "Wed"
    thu = "Thu"
    fri = "Fri"
    sat = "Sat"
    sun = "Sun"

    @property
    def order(self) -> int:
        return DAYS_IN_ORDER.index(self)

    @property
    def full_name(self) -> str:
        return DAY_FULL_NAMES[self]


DAYS_IN_ORDER: tuple[DayOfWeek, ...] = tuple(DayOfWeek)

DAY_FULL_NAMES = {
    DayOfWeek.mon: "Monday",
    DayOfWeek.tue: "Tuesday",
    DayOfWeek.wed: "Wednesday",
    DayOfWeek.thu: "Thursday",
    DayOfWeek.fri: "Friday",
    DayOfWeek.sat: "Saturday",
    DayOfWeek.sun: "Sunday",
}


class RecordKind(str, Enum):
    center = "center"
    external = "external"
    absent = "absent"


def format_minutes(value: int) -> str:
    return f"{value // 60:02d}:{value % 60:02d}"


def parse_hhmm(value: object) -> int | None:
    """Parse ``H:M`` / ``HH:MM`` (optionally ``:SS``) into minutes since midnight, or None when malformed.

    Seconds are accepted for values read back from SQL ``TIME`` columns and truncated.
    """
    if value is None:
        return None
    match = HHMM_PATTERN.match(str(value))
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    seconds = int(match.group(3) or 0)
    if hours > 24 or minutes > 59 or seconds > 59 or (hours == 24 and (minutes or seconds)):
        return None
    return hours * 60 + minutes


@dataclass(frozen=True, order=True)
class Interval:
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.start >= self.end:
            raise ValueError(f"Invalid interval {self.start}..{self.end}")

    def touches_or_overlaps(self, other: Interval) -> bool:
        return self.start <= other.end and other.start <= self.end

    @property
    def minutes(self) -> int:
        return self.end - self.start

    @property
    def label(self) -> str:
        return f"{format_minutes(self.start)}~{format_minutes(self.end)}"


@dataclass(frozen=True)
class BusinessWindow:
    start: int = 8 * 60
    end: int = 23 * 60

    def __post_init__(self) -> None:
        if self.start < 0 or self.start >= self.end:
            raise ValueError("Business window start must be before its end")

    @classmethod
    def from_hours(cls, start_hour: int, end_hour: int) -> BusinessWindow:
        return cls(start=start_hour * 60, end=end_hour * 60)

    @property
    def start_hour(self) -> int:
        return self.start // 60

    @property
    def end_hour(self) -> int:
        return self.end // 60

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    def clip(self, interval: Interval) -> Interval | None:
        start = max(self.start, interval.start)
        end = min(self.end, interval.end)
        if start >= end:
            return None
        return Interval(start, end)


@dataclass(frozen=True)
class RawBlock:
    start_hour: str | None = None
    start_minute: str | None = None
    end_hour: str | None = None
    end_minute: str | None = None

    @property
    def fields(self) -> tuple[str, str, str, str]:
        return tuple(
            (value or "").strip()
            for value in (self.start_hour, self.start_minute, self.end_hour, self.end_minute)
        )

    @property
    def has_any_input(self) -> bool:
        return any(self.fields)

    @property
    def is_complete(self) -> bool:
        return all(self.fields)


@dataclass(frozen=True)
class GapInterval:
    interval: Interval
    label: str | None = None

    @property
    def clean_label(self) -> str:
        return (self.label or "").strip()

    @property
    def is_labeled(self) -> bool:
        return bool(self.clean_label)


@dataclass(frozen=True)
class DaySchedule:
    day: DayOfWeek
    absent: bool = False
    busy: tuple[Interval, ...] = ()
    gaps: tuple[GapInterval, ...] = ()


@dataclass(frozen=True)
class ScheduleRecord:
    student_id: str
    week_start: date | None
    day: DayOfWeek
    start: int | None
    end: int | None
    kind: RecordKind
    description: str = ""
    saved_at: datetime | None = None
    sequence: int | None = None

    @property
    def structural_key(self) -> tuple:
        return (self.student_id, self.day, self.start, self.end, self.kind)

    @property
    def content_key(self) -> tuple:
        return (
            self.day.order,
            -1 if self.start is None else self.start,
            -1 if self.end is None else self.end,
            self.kind.value,
            self.description,
        )

    @property
    def interval(self) -> Interval | None:
        if self.start is None or self.end is None or self.start >= self.end:
            return None
        return Interval(self.start, self.end)

    def as_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "week_start": self.week_start.isoformat() if self.week_start else None,
            "day": self.day.value,
            "start": None if self.start is None else format_minutes(self.start),
            "end": None if self.end is None else format_minutes(self.end),
            "kind": self.kind.value,
            "description": self.description,
            "saved_at": self.saved_at.isoformat() if self.saved_at else None,
            "sequence": self.sequence,
        }


@dataclass(frozen=True)
class WeeklySubmission:
    student_id: str
    week_start: date | None
    days: tuple[DaySchedule, ...]
    records: tuple[ScheduleRecord, ...] = field(default=())
    saved_at: datetime | None = None
    sequence: int | None = None

    def day(self, day: DayOfWeek) -> DaySchedule:
        return self.days[day.order]


class DefectKind(str, Enum):
    incomplete_block = "incomplete_block"
    non_numeric_time = "non_numeric_time"
    out_of_range = "out_of_range"
    inverted_range = "inverted_range"
    empty_day = "empty_day"
    unlabeled_gap = "unlabeled_gap"


@dataclass(frozen=True)
class ValidationDefect:
    kind: DefectKind
    day: DayOfWeek
    message: str
    block_index: int | None = None
    interval: Interval | None = None

    def as_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "day": self.day.value,
            "message": self.message,
            "block": None if self.block_index is None else self.block_index + 1,
            "range": None if self.interval is None else self.interval.label,
        }
