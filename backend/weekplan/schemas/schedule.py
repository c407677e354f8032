from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from weekplan.services.day_validator import DayInput
from weekplan.services.schedule_types import (
    DayOfWeek,
    DaySchedule,
    GapInterval,
    Interval,
    RawBlock,
    ScheduleRecord,
    ValidationDefect,
    WeeklySubmission,
    format_minutes,
    parse_hhmm,
)
from weekplan.services.versioner import normalize_day


def _parse_day(value: str) -> DayOfWeek:
    try:
        return normalize_day(value)
    except ValueError as exc:
        raise ValueError("Invalid day value") from exc


class RawBlockIn(BaseModel):
    start_hour: str | None = None
    start_minute: str | None = None
    end_hour: str | None = None
    end_minute: str | None = None

    @field_validator("start_hour", "start_minute", "end_hour", "end_minute", mode="before")
    @classmethod
    def coerce_to_text(cls, value: object) -> str | None:
        if value is None:
            return None
        if isinstance(value, bool):
            raise ValueError("Time fields must be text or numbers")
        if isinstance(value, int):
            return str(value)
        return value

    def to_raw_block(self) -> RawBlock:
        return RawBlock(
            start_hour=self.start_hour,
            start_minute=self.start_minute,
            end_hour=self.end_hour,
            end_minute=self.end_minute,
        )


class GapLabelIn(BaseModel):
    start: str
    end: str
    label: str = Field(default="", max_length=200)

    @model_validator(mode="after")
    def validate_range(self) -> "GapLabelIn":
        start = parse_hhmm(self.start)
        end = parse_hhmm(self.end)
        if start is None or end is None:
            raise ValueError("Time must be in HH:MM 24-hour format")
        if end <= start:
            raise ValueError("end must be after start")
        return self

    def to_gap(self) -> GapInterval:
        return GapInterval(Interval(parse_hhmm(self.start), parse_hhmm(self.end)), self.label)


class DayInputIn(BaseModel):
    day: str
    absent: bool = False
    blocks: list[RawBlockIn] = Field(default_factory=list, max_length=20)
    gap_labels: list[GapLabelIn] = Field(default_factory=list, max_length=40)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return _parse_day(value).value

    def to_day_input(self) -> DayInput:
        return DayInput(
            day=DayOfWeek(self.day),
            blocks=tuple(block.to_raw_block() for block in self.blocks),
            labels=tuple(label.to_gap() for label in self.gap_labels),
            absent=self.absent,
        )


class WeeklyScheduleIn(BaseModel):
    student_id: str = Field(min_length=1, max_length=36)
    week_start: date | None = None
    days: list[DayInputIn] = Field(default_factory=list, max_length=7)

    @model_validator(mode="after")
    def validate_unique_days(self) -> "WeeklyScheduleIn":
        seen: set[str] = set()
        duplicates: set[str] = set()
        for entry in self.days:
            if entry.day in seen:
                duplicates.add(entry.day)
            else:
                seen.add(entry.day)
        if duplicates:
            raise ValueError(f"Duplicate day entries: {', '.join(sorted(duplicates))}")
        return self

    def to_day_inputs(self) -> list[DayInput]:
        return [entry.to_day_input() for entry in self.days]


class DefectOut(BaseModel):
    kind: str
    day: str
    message: str
    block: int | None = None
    range: str | None = None

    @classmethod
    def from_defect(cls, defect: ValidationDefect) -> "DefectOut":
        return cls(**defect.as_dict())


class IntervalOut(BaseModel):
    start: str
    end: str


class GapOut(IntervalOut):
    label: str | None = None


class DayScheduleOut(BaseModel):
    day: str
    absent: bool
    busy: list[IntervalOut]
    gaps: list[GapOut]

    @classmethod
    def from_schedule(cls, schedule: DaySchedule) -> "DayScheduleOut":
        return cls(
            day=schedule.day.value,
            absent=schedule.absent,
            busy=[IntervalOut(start=format_minutes(item.start), end=format_minutes(item.end)) for item in schedule.busy],
            gaps=[
                GapOut(
                    start=format_minutes(gap.interval.start),
                    end=format_minutes(gap.interval.end),
                    label=gap.label,
                )
                for gap in schedule.gaps
            ],
        )


class ScheduleRecordOut(BaseModel):
    student_id: str
    week_start: date | None
    day: str
    start: str | None
    end: str | None
    kind: str
    description: str
    saved_at: datetime | None
    sequence: int | None

    @classmethod
    def from_record(cls, record: ScheduleRecord) -> "ScheduleRecordOut":
        return cls(**record.as_dict())


class WeeklySubmissionOut(BaseModel):
    student_id: str
    week_start: date | None
    saved_at: datetime | None
    sequence: int | None
    days: list[DayScheduleOut]
    records: list[ScheduleRecordOut]

    @classmethod
    def from_submission(cls, submission: WeeklySubmission) -> "WeeklySubmissionOut":
        return cls(
            student_id=submission.student_id,
            week_start=submission.week_start,
            saved_at=submission.saved_at,
            sequence=submission.sequence,
            days=[DayScheduleOut.from_schedule(day) for day in submission.days],
            records=[ScheduleRecordOut.from_record(record) for record in submission.records],
        )


class ValidationResultOut(BaseModel):
    valid: bool
    days: list[DayScheduleOut] = Field(default_factory=list)
    defects: list[DefectOut] = Field(default_factory=list)


class SaveResultOut(BaseModel):
    success: bool
    message: str
    week_start: date
    saved_at: datetime
    sequence: int
    record_count: int
    notified: bool | None = None
    submission: WeeklySubmissionOut


class CopyFromPreviousIn(BaseModel):
    student_id: str = Field(min_length=1, max_length=36)
    week_start: date | None = None
    previous_week_start: date | None = None


class CopyWeekIn(BaseModel):
    source_week_start: date
    target_week_start: date

    @model_validator(mode="after")
    def validate_distinct_weeks(self) -> "CopyWeekIn":
        if self.source_week_start == self.target_week_start:
            raise ValueError("source and target week must differ")
        return self


class CopyWeekOut(BaseModel):
    success: bool
    source_week_start: date
    target_week_start: date
    students: list[str]


class SavedWeekOut(BaseModel):
    week_start: date
    saved_at: datetime | None
    sequence: int | None


class WeekDayOut(BaseModel):
    day: str
    calendar_date: date


class TargetWeekOut(BaseModel):
    week_start: date
    previous_week_start: date
    week_range_text: str
    days: list[WeekDayOut]


class CenterSummaryRowOut(BaseModel):
    student_id: str
    name: str
    submitted: bool
    ranges: dict[str, str]
    first_arrival: dict[str, str]
    center_minutes: int

    model_config = {"from_attributes": True}
