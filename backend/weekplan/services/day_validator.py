"""Day-level validation of raw weekly schedule input.

Each day runs through four rule categories in order (block completeness,
block ranges, non-empty day, gap labels). The first category that fails
stops further checks for that day, but every day is checked so the caller
receives one aggregated report. Absent days skip validation entirely.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

from weekplan.services.intervals import carry_over_labels, compute_gaps, normalize_blocks
from weekplan.services.schedule_types import (
    DAYS_IN_ORDER,
    BusinessWindow,
    DayOfWeek,
    DaySchedule,
    DefectKind,
    GapInterval,
    Interval,
    RawBlock,
    RecordKind,
    ScheduleRecord,
    ValidationDefect,
    format_minutes,
)

# Lower ranks are more fundamental and are reported first.
DEFECT_RANK = {
    DefectKind.incomplete_block: 0,
    DefectKind.non_numeric_time: 0,
    DefectKind.out_of_range: 1,
    DefectKind.inverted_range: 1,
    DefectKind.empty_day: 2,
    DefectKind.unlabeled_gap: 3,
}


@dataclass(frozen=True)
class DayInput:
    day: DayOfWeek
    blocks: tuple[RawBlock, ...] = ()
    labels: tuple[GapInterval, ...] = ()
    absent: bool = False


@dataclass(frozen=True)
class DayValidation:
    day: DayOfWeek
    schedule: DaySchedule | None
    defects: tuple[ValidationDefect, ...] = ()

    @property
    def ok(self) -> bool:
        return self.schedule is not None


@dataclass(frozen=True)
class WeekValidation:
    days: tuple[DaySchedule, ...]
    defects: tuple[ValidationDefect, ...]

    @property
    def ok(self) -> bool:
        return not self.defects


def _block_structure_defects(day: DayOfWeek, blocks: tuple[RawBlock, ...]) -> list[ValidationDefect]:
    defects: list[ValidationDefect] = []
    for index, block in enumerate(blocks):
        if not block.has_any_input:
            continue
        if not block.is_complete:
            defects.append(
                ValidationDefect(
                    kind=DefectKind.incomplete_block,
                    day=day,
                    block_index=index,
                    message=f"{day.full_name} block {index + 1}: enter both hour and minute for start and end.",
                )
            )
        elif not all(part.isdecimal() for part in block.fields):
            defects.append(
                ValidationDefect(
                    kind=DefectKind.non_numeric_time,
                    day=day,
                    block_index=index,
                    message=f"{day.full_name} block {index + 1}: times must be numbers only.",
                )
            )
    return defects


def _block_range_defects(
    day: DayOfWeek,
    blocks: tuple[RawBlock, ...],
    window: BusinessWindow,
) -> list[ValidationDefect]:
    defects: list[ValidationDefect] = []
    for index, block in enumerate(blocks):
        if not block.has_any_input:
            continue
        start_hour, start_minute, end_hour, end_minute = (int(part) for part in block.fields)
        hours_ok = all(window.start_hour <= hour <= window.end_hour for hour in (start_hour, end_hour))
        minutes_ok = all(0 <= minute <= 59 for minute in (start_minute, end_minute))
        if not (hours_ok and minutes_ok):
            defects.append(
                ValidationDefect(
                    kind=DefectKind.out_of_range,
                    day=day,
                    block_index=index,
                    message=(
                        f"{day.full_name} block {index + 1}: times must fall between "
                        f"{format_minutes(window.start)} and {window.end_hour:02d}:59."
                    ),
                )
            )
            continue
        if start_hour * 60 + start_minute >= end_hour * 60 + end_minute:
            defects.append(
                ValidationDefect(
                    kind=DefectKind.inverted_range,
                    day=day,
                    block_index=index,
                    message=f"{day.full_name} block {index + 1}: start time must be earlier than end time.",
                )
            )
    return defects


def validate_day(day_input: DayInput, window: BusinessWindow) -> DayValidation:
    day = day_input.day
    if day_input.absent:
        return DayValidation(day=day, schedule=DaySchedule(day=day, absent=True))

    defects = _block_structure_defects(day, day_input.blocks)
    if defects:
        return DayValidation(day=day, schedule=None, defects=tuple(defects))

    defects = _block_range_defects(day, day_input.blocks, window)
    if defects:
        return DayValidation(day=day, schedule=None, defects=tuple(defects))

    busy = normalize_blocks(day_input.blocks, window)
    if not busy:
        defect = ValidationDefect(
            kind=DefectKind.empty_day,
            day=day,
            message=f"{day.full_name}: day has no valid schedule; mark absent or enter a block.",
        )
        return DayValidation(day=day, schedule=None, defects=(defect,))

    gaps = carry_over_labels(compute_gaps(busy, window), day_input.labels)
    unlabeled = [gap for gap in gaps if not gap.is_labeled]
    if unlabeled:
        return DayValidation(
            day=day,
            schedule=None,
            defects=tuple(
                ValidationDefect(
                    kind=DefectKind.unlabeled_gap,
                    day=day,
                    interval=gap.interval,
                    message=f"{day.full_name}: label required for {gap.interval.label}",
                )
                for gap in unlabeled
            ),
        )

    labeled = tuple(GapInterval(gap.interval, gap.clean_label) for gap in gaps)
    return DayValidation(day=day, schedule=DaySchedule(day=day, busy=busy, gaps=labeled))


def validate_week(inputs: Iterable[DayInput], window: BusinessWindow) -> WeekValidation:
    by_day = {item.day: item for item in inputs}
    results = [validate_day(by_day.get(day, DayInput(day=day)), window) for day in DAYS_IN_ORDER]

    defects = [defect for result in results for defect in result.defects]
    defects.sort(key=lambda item: (DEFECT_RANK[item.kind], item.day.order))
    if defects:
        return WeekValidation(days=(), defects=tuple(defects))
    return WeekValidation(days=tuple(result.schedule for result in results), defects=())


def build_records(
    student_id: str,
    week_start: date | None,
    days: Iterable[DaySchedule],
    *,
    saved_at: datetime | None = None,
    sequence: int | None = None,
) -> tuple[ScheduleRecord, ...]:
    records: list[ScheduleRecord] = []

    def add(day: DayOfWeek, interval: Interval | None, kind: RecordKind, description: str) -> None:
        records.append(
            ScheduleRecord(
                student_id=student_id,
                week_start=week_start,
                day=day,
                start=None if interval is None else interval.start,
                end=None if interval is None else interval.end,
                kind=kind,
                description=description,
                saved_at=saved_at,
                sequence=sequence,
            )
        )

    for schedule in days:
        if schedule.absent:
            add(schedule.day, None, RecordKind.absent, "")
            continue
        for interval in schedule.busy:
            add(schedule.day, interval, RecordKind.center, "")
        for gap in schedule.gaps:
            if gap.is_labeled:
                add(schedule.day, gap.interval, RecordKind.external, gap.clean_label)
    return tuple(records)
