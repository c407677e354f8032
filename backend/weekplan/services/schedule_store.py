from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from weekplan.core.exceptions import StorageError
from weekplan.models.schedule_record import ScheduleRecordRow
from weekplan.services.schedule_types import ScheduleRecord, format_minutes
from weekplan.services.versioner import canonicalize_records, parse_saved_at

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveReceipt:
    student_id: str
    week_start: date
    saved_at: datetime
    sequence: int
    record_count: int


@dataclass(frozen=True)
class SavedWeek:
    week_start: date
    saved_at: datetime | None
    sequence: int | None


def _row_mapping(row: ScheduleRecordRow) -> dict:
    return {
        "student_id": row.student_id,
        "week_start": row.week_start,
        "day": row.day,
        "start": row.start_time,
        "end": row.end_time,
        "kind": row.kind,
        "description": row.description,
        "saved_at": row.saved_at,
        "sequence": row.sequence,
    }


def _record_row(record: ScheduleRecord) -> ScheduleRecordRow:
    return ScheduleRecordRow(
        student_id=record.student_id,
        week_start=record.week_start,
        day=record.day.value,
        start_time=None if record.start is None else format_minutes(record.start),
        end_time=None if record.end is None else format_minutes(record.end),
        kind=record.kind,
        description=record.description,
        saved_at=record.saved_at,
        sequence=record.sequence,
    )


def fetch_records(
    db: Session,
    *,
    student_id: str | None = None,
    week_start: date | None = None,
) -> list[ScheduleRecord]:
    query = select(ScheduleRecordRow)
    if student_id is not None:
        query = query.where(ScheduleRecordRow.student_id == student_id)
    if week_start is not None:
        query = query.where(ScheduleRecordRow.week_start == week_start)
    rows = db.execute(query.order_by(ScheduleRecordRow.id.asc())).scalars().all()
    return canonicalize_records(_row_mapping(row) for row in rows)


def next_sequence(db: Session, student_id: str) -> int:
    current = db.execute(
        select(func.max(ScheduleRecordRow.sequence)).where(ScheduleRecordRow.student_id == student_id)
    ).scalar_one_or_none()
    return (current or 0) + 1


def replace_week(
    db: Session,
    *,
    student_id: str,
    week_start: date,
    records: Iterable[ScheduleRecord],
    now: datetime | None = None,
) -> SaveReceipt:
    """Replace every stored row of ``(student_id, week_start)`` with one new batch.

    The delete and the inserts share a single transaction; readers see either the
    previous batch or the new one, never a mix.
    """
    saved_at = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    try:
        sequence = next_sequence(db, student_id)
        db.execute(
            delete(ScheduleRecordRow).where(
                ScheduleRecordRow.student_id == student_id,
                ScheduleRecordRow.week_start == week_start,
            )
        )
        rows = [
            _record_row(
                ScheduleRecord(
                    student_id=student_id,
                    week_start=week_start,
                    day=record.day,
                    start=record.start,
                    end=record.end,
                    kind=record.kind,
                    description=record.description,
                    saved_at=saved_at,
                    sequence=sequence,
                )
            )
            for record in records
        ]
        db.add_all(rows)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to replace schedule for student %s week %s", student_id, week_start)
        raise StorageError(
            "Schedule could not be saved",
            details={"student_id": student_id, "week_start": week_start.isoformat()},
        ) from exc

    logger.info(
        "Saved %d record(s) for student %s week %s (sequence %d)",
        len(rows),
        student_id,
        week_start.isoformat(),
        sequence,
    )
    return SaveReceipt(
        student_id=student_id,
        week_start=week_start,
        saved_at=saved_at,
        sequence=sequence,
        record_count=len(rows),
    )


def recent_saves(db: Session, student_id: str, limit: int) -> list[SavedWeek]:
    rows = db.execute(
        select(
            ScheduleRecordRow.week_start,
            func.max(ScheduleRecordRow.saved_at),
            func.max(ScheduleRecordRow.sequence),
        )
        .where(ScheduleRecordRow.student_id == student_id, ScheduleRecordRow.week_start.is_not(None))
        .group_by(ScheduleRecordRow.week_start)
    ).all()
    weeks = [
        SavedWeek(week_start=week_start, saved_at=parse_saved_at(saved_at), sequence=sequence)
        for week_start, saved_at, sequence in rows
    ]
    weeks.sort(
        key=lambda item: (
            -1 if item.sequence is None else item.sequence,
            item.saved_at or datetime.min.replace(tzinfo=timezone.utc),
            item.week_start,
        ),
        reverse=True,
    )
    return weeks[: max(0, limit)]


def latest_saved_week(db: Session, student_id: str) -> date | None:
    weeks = recent_saves(db, student_id, 1)
    return weeks[0].week_start if weeks else None


def delete_student_records(db: Session, student_id: str) -> int:
    result = db.execute(delete(ScheduleRecordRow).where(ScheduleRecordRow.student_id == student_id))
    return result.rowcount or 0


def clear_all(db: Session) -> int:
    try:
        result = db.execute(delete(ScheduleRecordRow))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to clear schedule records")
        raise StorageError("Schedule records could not be cleared") from exc
    removed = result.rowcount or 0
    logger.warning("Cleared all schedule records (%d row(s))", removed)
    return removed
