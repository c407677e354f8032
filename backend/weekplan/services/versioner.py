"""Resolve append-only schedule history into canonical weekly submissions.

Rows arrive from storage (or from imports) in loosely-typed form. They are
canonicalized once at ingestion, grouped per student (and per week when
requested), reduced to the most recent save batch of each group and then
reassembled into seven day schedules.

Recency uses the strongest signal present anywhere in the input: the
write-path ``sequence`` first, then ``saved_at``, then ``week_start``. Weaker
signals only break ties. When no row carries any of them the input is trusted
as already canonical and only exact structural duplicates are removed.
"""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from enum import Enum
import logging

from weekplan.services.intervals import carry_over_labels, compute_gaps, normalize_intervals
from weekplan.services.schedule_types import (
    DAYS_IN_ORDER,
    BusinessWindow,
    DayOfWeek,
    DaySchedule,
    GapInterval,
    RecordKind,
    ScheduleRecord,
    WeeklySubmission,
    parse_hhmm,
)

logger = logging.getLogger(__name__)

ABSENT_MARKER = "미등원"

DAY_ALIASES: dict[str, DayOfWeek] = {}
for _day, _aliases in {
    DayOfWeek.mon: ("mon", "monday", "월", "월요일"),
    DayOfWeek.tue: ("tue", "tues", "tuesday", "화", "화요일"),
    DayOfWeek.wed: ("wed", "wednesday", "수", "수요일"),
    DayOfWeek.thu: ("thu", "thur", "thurs", "thursday", "목", "목요일"),
    DayOfWeek.fri: ("fri", "friday", "금", "금요일"),
    DayOfWeek.sat: ("sat", "saturday", "토", "토요일"),
    DayOfWeek.sun: ("sun", "sunday", "일", "일요일"),
}.items():
    for _alias in _aliases:
        DAY_ALIASES[_alias] = _day

KIND_ALIASES: dict[str, RecordKind] = {
    "center": RecordKind.center,
    "센터": RecordKind.center,
    "external": RecordKind.external,
    "외부": RecordKind.external,
    "원외": RecordKind.external,
    "빈구간": RecordKind.external,
    "absent": RecordKind.absent,
    ABSENT_MARKER: RecordKind.absent,
}

_MIN_SAVED_AT = datetime.min.replace(tzinfo=timezone.utc)


class RecencyTier(str, Enum):
    sequence = "sequence"
    saved_at = "saved_at"
    week_start = "week_start"
    none = "none"


def normalize_day(value: object) -> DayOfWeek:
    if isinstance(value, DayOfWeek):
        return value
    key = str(value or "").strip().lower()
    if key not in DAY_ALIASES:
        raise ValueError(f"Unknown day value: {value!r}")
    return DAY_ALIASES[key]


def normalize_kind(value: object, description: str = "") -> RecordKind:
    if isinstance(value, RecordKind):
        return value
    key = str(value or "").strip().lower()
    if key in KIND_ALIASES:
        return KIND_ALIASES[key]
    if ABSENT_MARKER in description:
        return RecordKind.absent
    raise ValueError(f"Unknown schedule kind: {value!r}")


def parse_saved_at(value: object) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning("Ignoring unparseable saved_at value %r", value)
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_week_start(value: object) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        logger.warning("Ignoring unparseable week_start value %r", value)
        return None


def _parse_time_field(value: object) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return parse_hhmm(value)


def _first_present(row: Mapping, *keys: str) -> object:
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


def record_from_mapping(row: Mapping) -> ScheduleRecord:
    student_id = str(_first_present(row, "student_id", "studentId") or "").strip()
    if not student_id:
        raise ValueError("Schedule row has no student id")

    description = str(row.get("description") or "").strip()
    kind = normalize_kind(_first_present(row, "kind", "type"), description)
    if ABSENT_MARKER in description:
        kind = RecordKind.absent
    day = normalize_day(row.get("day"))

    start: int | None = None
    end: int | None = None
    if kind != RecordKind.absent:
        # Absent rows historically carried an 08:00-08:00 placeholder; times are void for them.
        start = _parse_time_field(row.get("start"))
        end = _parse_time_field(row.get("end"))
        if start is None or end is None or start >= end:
            raise ValueError(f"Invalid time range {row.get('start')!r}-{row.get('end')!r}")

    raw_sequence = row.get("sequence")
    sequence = int(raw_sequence) if raw_sequence not in (None, "") else None

    return ScheduleRecord(
        student_id=student_id,
        week_start=parse_week_start(_first_present(row, "week_start", "weekStart")),
        day=day,
        start=start,
        end=end,
        kind=kind,
        description=description,
        saved_at=parse_saved_at(_first_present(row, "saved_at", "savedAt", "updated_at", "created_at")),
        sequence=sequence,
    )


def canonicalize_records(rows: Iterable[ScheduleRecord | Mapping]) -> list[ScheduleRecord]:
    records: list[ScheduleRecord] = []
    for row in rows:
        if isinstance(row, ScheduleRecord):
            records.append(row)
            continue
        try:
            records.append(record_from_mapping(row))
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping malformed schedule row: %s", exc)
    return records


def detect_recency_tier(records: Iterable[ScheduleRecord]) -> RecencyTier:
    has_saved_at = False
    has_week_start = False
    for record in records:
        if record.sequence is not None:
            return RecencyTier.sequence
        has_saved_at = has_saved_at or record.saved_at is not None
        has_week_start = has_week_start or record.week_start is not None
    if has_saved_at:
        return RecencyTier.saved_at
    if has_week_start:
        return RecencyTier.week_start
    return RecencyTier.none


def recency_key(record: ScheduleRecord, tier: RecencyTier) -> tuple:
    saved_at = record.saved_at or _MIN_SAVED_AT
    week_start = record.week_start or date.min
    if tier == RecencyTier.sequence:
        return (-1 if record.sequence is None else record.sequence, saved_at, week_start)
    if tier == RecencyTier.saved_at:
        return (saved_at, week_start)
    if tier == RecencyTier.week_start:
        return (week_start,)
    return ()


def deduplicate(records: Iterable[ScheduleRecord]) -> list[ScheduleRecord]:
    seen: set[tuple] = set()
    unique: list[ScheduleRecord] = []
    for record in sorted(records, key=lambda item: item.content_key):
        if record.structural_key in seen:
            continue
        seen.add(record.structural_key)
        unique.append(record)
    return unique


def occlude_absent_days(records: Iterable[ScheduleRecord]) -> list[ScheduleRecord]:
    records = list(records)
    absent_days = {record.day for record in records if record.kind == RecordKind.absent}
    return [
        record
        for record in records
        if record.day not in absent_days or record.kind == RecordKind.absent
    ]


def assemble_days(records: Iterable[ScheduleRecord], window: BusinessWindow) -> tuple[DaySchedule, ...]:
    by_day: dict[DayOfWeek, list[ScheduleRecord]] = defaultdict(list)
    for record in records:
        by_day[record.day].append(record)

    days: list[DaySchedule] = []
    for day in DAYS_IN_ORDER:
        day_records = by_day.get(day, [])
        if not day_records:
            days.append(DaySchedule(day=day, gaps=compute_gaps((), window)))
            continue
        if any(record.kind == RecordKind.absent for record in day_records):
            days.append(DaySchedule(day=day, absent=True))
            continue
        busy = normalize_intervals(
            (record.interval for record in day_records if record.kind == RecordKind.center and record.interval),
            window,
        )
        labels = [
            GapInterval(record.interval, record.description)
            for record in day_records
            if record.kind == RecordKind.external and record.interval
        ]
        gaps = carry_over_labels(compute_gaps(busy, window), labels)
        days.append(DaySchedule(day=day, busy=busy, gaps=gaps))
    return tuple(days)


def _build_submission(
    student_id: str,
    week_start: date | None,
    records: list[ScheduleRecord],
    window: BusinessWindow,
) -> WeeklySubmission:
    canonical = occlude_absent_days(deduplicate(records))
    saved_values = [record.saved_at for record in canonical if record.saved_at is not None]
    sequences = [record.sequence for record in canonical if record.sequence is not None]
    if week_start is None:
        weeks = [record.week_start for record in canonical if record.week_start is not None]
        week_start = max(weeks) if weeks else None
    return WeeklySubmission(
        student_id=student_id,
        week_start=week_start,
        days=assemble_days(canonical, window),
        records=tuple(canonical),
        saved_at=max(saved_values) if saved_values else None,
        sequence=max(sequences) if sequences else None,
    )


def resolve_submissions(
    rows: Iterable[ScheduleRecord | Mapping],
    window: BusinessWindow,
    *,
    per_week: bool = True,
) -> list[WeeklySubmission]:
    records = canonicalize_records(rows)
    tier = detect_recency_tier(records)

    groups: dict[tuple[str, date | None], list[ScheduleRecord]] = defaultdict(list)
    for record in records:
        groups[(record.student_id, record.week_start if per_week else None)].append(record)

    submissions: list[WeeklySubmission] = []
    for (student_id, week_start), group in groups.items():
        if tier != RecencyTier.none:
            latest = max(recency_key(record, tier) for record in group)
            group = [record for record in group if recency_key(record, tier) == latest]
        submissions.append(_build_submission(student_id, week_start, group, window))

    submissions.sort(key=lambda item: (item.student_id, item.week_start or date.min))
    logger.debug("Resolved %d row(s) into %d submission(s) using %s recency", len(records), len(submissions), tier.value)
    return submissions


def resolve_submission(
    rows: Iterable[ScheduleRecord | Mapping],
    window: BusinessWindow,
    *,
    student_id: str,
    week_start: date | None = None,
) -> WeeklySubmission | None:
    matching = [
        record
        for record in canonicalize_records(rows)
        if record.student_id == student_id and (week_start is None or record.week_start == week_start)
    ]
    submissions = resolve_submissions(matching, window, per_week=week_start is not None)
    return submissions[0] if submissions else None
