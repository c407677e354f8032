from datetime import date, datetime, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from weekplan.core.exceptions import StorageError
from weekplan.models.schedule_record import ScheduleRecordRow
from weekplan.services import schedule_store
from weekplan.services.schedule_types import DayOfWeek, RecordKind, ScheduleRecord

WEEK = date(2025, 7, 14)


def _record(day: DayOfWeek, start: int | None, end: int | None, kind: RecordKind = RecordKind.center) -> ScheduleRecord:
    return ScheduleRecord(student_id="s1", week_start=WEEK, day=day, start=start, end=end, kind=kind)


def test_replace_week_stamps_batch(db_session):
    now = datetime(2025, 7, 16, 9, 30, tzinfo=timezone.utc)

    receipt = schedule_store.replace_week(
        db_session,
        student_id="s1",
        week_start=WEEK,
        records=[_record(DayOfWeek.mon, 480, 720), _record(DayOfWeek.tue, None, None, RecordKind.absent)],
        now=now,
    )

    assert receipt.sequence == 1
    assert receipt.record_count == 2
    stored = schedule_store.fetch_records(db_session, student_id="s1", week_start=WEEK)
    assert {record.sequence for record in stored} == {1}
    assert {record.saved_at for record in stored} == {now}
    assert stored[1].kind == RecordKind.absent
    assert stored[1].start is None


def test_replace_week_supersedes_only_its_own_key(db_session):
    schedule_store.replace_week(db_session, student_id="s1", week_start=WEEK, records=[_record(DayOfWeek.mon, 480, 720)])
    schedule_store.replace_week(
        db_session,
        student_id="s1",
        week_start=date(2025, 7, 7),
        records=[_record(DayOfWeek.wed, 600, 660)],
    )
    receipt = schedule_store.replace_week(
        db_session,
        student_id="s1",
        week_start=WEEK,
        records=[_record(DayOfWeek.fri, 540, 600)],
    )

    assert receipt.sequence == 3
    current = schedule_store.fetch_records(db_session, student_id="s1", week_start=WEEK)
    assert [record.day for record in current] == [DayOfWeek.fri]
    previous = schedule_store.fetch_records(db_session, student_id="s1", week_start=date(2025, 7, 7))
    assert [record.day for record in previous] == [DayOfWeek.wed]


def test_failed_replace_rolls_back(db_session, monkeypatch):
    schedule_store.replace_week(db_session, student_id="s1", week_start=WEEK, records=[_record(DayOfWeek.mon, 480, 720)])

    def broken_commit():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(db_session, "commit", broken_commit)
    with pytest.raises(StorageError):
        schedule_store.replace_week(
            db_session,
            student_id="s1",
            week_start=WEEK,
            records=[_record(DayOfWeek.thu, 480, 540)],
        )

    remaining = schedule_store.fetch_records(db_session, student_id="s1", week_start=WEEK)
    assert [record.day for record in remaining] == [DayOfWeek.mon]


def test_legacy_rows_are_read_through_the_alias_table(db_session):
    db_session.add_all(
        [
            ScheduleRecordRow(student_id="s1", week_start=WEEK, day="Tue", start_time="08:00", end_time="08:00", kind=RecordKind.absent, description="미등원"),
            ScheduleRecordRow(student_id="s1", week_start=WEEK, day="Mon", start_time="9:00", end_time="10:30", kind=RecordKind.center, description=""),
        ]
    )
    db_session.commit()

    records = schedule_store.fetch_records(db_session, student_id="s1")

    assert [(record.day, record.start, record.end) for record in records] == [
        (DayOfWeek.tue, None, None),
        (DayOfWeek.mon, 540, 630),
    ]
    assert schedule_store.next_sequence(db_session, "s1") == 1


def test_recent_saves_and_latest_week(db_session):
    assert schedule_store.latest_saved_week(db_session, "s1") is None
    for week_start in (date(2025, 7, 21), date(2025, 7, 7), date(2025, 7, 14)):
        schedule_store.replace_week(
            db_session,
            student_id="s1",
            week_start=week_start,
            records=[_record(DayOfWeek.mon, 480, 540)],
        )

    saves = schedule_store.recent_saves(db_session, "s1", 2)

    assert [item.week_start for item in saves] == [date(2025, 7, 14), date(2025, 7, 7)]
    assert schedule_store.latest_saved_week(db_session, "s1") == date(2025, 7, 14)


def test_clear_all(db_session):
    schedule_store.replace_week(db_session, student_id="s1", week_start=WEEK, records=[_record(DayOfWeek.mon, 480, 540)])

    assert schedule_store.clear_all(db_session) == 1
    assert schedule_store.fetch_records(db_session) == []
