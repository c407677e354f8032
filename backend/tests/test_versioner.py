from datetime import date, datetime, timezone
import itertools

import pytest

from weekplan.services.schedule_types import BusinessWindow, DayOfWeek, Interval, RecordKind, parse_hhmm
from weekplan.services.versioner import (
    RecencyTier,
    canonicalize_records,
    detect_recency_tier,
    normalize_day,
    normalize_kind,
    parse_saved_at,
    record_from_mapping,
    resolve_submission,
    resolve_submissions,
)

WINDOW = BusinessWindow()


def _row(day="Mon", start="08:00", end="12:00", kind="center", **extra) -> dict:
    return {"student_id": "s1", "week_start": "2025-07-14", "day": day, "start": start, "end": end, "kind": kind, **extra}


def test_latest_save_wins():
    rows = [
        _row(saved_at="2025-07-10T10:00:00Z"),
        _row(saved_at="2025-07-12T09:00:00Z"),
    ]

    (submission,) = resolve_submissions(rows, WINDOW)

    assert len(submission.records) == 1
    assert submission.records[0].saved_at == datetime(2025, 7, 12, 9, 0, tzinfo=timezone.utc)
    assert submission.day(DayOfWeek.mon).busy == (Interval(480, 720),)


def test_older_batch_is_never_mixed_in():
    rows = [
        _row(day="Mon", saved_at="2025-07-10T10:00:00Z"),
        _row(day="Tue", saved_at="2025-07-10T10:00:00Z"),
        _row(day="Wed", saved_at="2025-07-12T09:00:00Z"),
    ]

    (submission,) = resolve_submissions(rows, WINDOW)

    assert [record.day for record in submission.records] == [DayOfWeek.wed]
    assert submission.day(DayOfWeek.mon).busy == ()


def test_sequence_outranks_saved_at():
    rows = [
        _row(day="Mon", saved_at="2025-07-12T09:00:00Z", sequence=1),
        _row(day="Tue", saved_at="2025-07-10T09:00:00Z", sequence=2),
    ]

    (submission,) = resolve_submissions(rows, WINDOW)

    assert [record.day for record in submission.records] == [DayOfWeek.tue]
    assert submission.sequence == 2


def test_absent_record_occludes_stray_center_rows():
    rows = [
        _row(day="Tue", start="08:00", end="08:00", kind="미등원", saved_at="2025-07-12T09:00:00Z"),
        _row(day="Tue", start="10:00", end="12:00", kind="센터", saved_at="2025-07-12T09:00:00Z"),
    ]

    (submission,) = resolve_submissions(rows, WINDOW)
    tuesday = submission.day(DayOfWeek.tue)

    assert tuesday.absent
    assert tuesday.busy == ()
    assert [record.kind for record in submission.records] == [RecordKind.absent]


def test_absence_marker_in_description_overrides_center_kind():
    rows = [
        _row(day="화", start="08:00", end="08:00", kind="센터", description="미등원", saved_at="2025-07-12T09:00:00Z"),
        _row(day="화", start="10:00", end="12:00", kind="센터", saved_at="2025-07-12T09:00:00Z"),
    ]

    (submission,) = resolve_submissions(rows, WINDOW)
    tuesday = submission.day(DayOfWeek.tue)

    assert tuesday.absent
    assert tuesday.busy == ()
    assert [(record.kind, record.start) for record in submission.records] == [(RecordKind.absent, None)]


def test_every_present_day_tiles_the_business_window():
    rows = [
        _row(day="Mon", start="09:00", end="12:00", saved_at="2025-07-12T09:00:00Z"),
        _row(day="Tue", start="08:00", end="08:00", kind="absent", saved_at="2025-07-12T09:00:00Z"),
    ]

    (submission,) = resolve_submissions(rows, WINDOW)

    assert len(submission.days) == 7
    for schedule in submission.days:
        if schedule.absent:
            assert schedule.busy == () and schedule.gaps == ()
            continue
        pieces = sorted([*schedule.busy, *(gap.interval for gap in schedule.gaps)])
        cursor = WINDOW.start
        for piece in pieces:
            assert piece.start == cursor
            cursor = piece.end
        assert cursor == WINDOW.end
    assert [gap.interval for gap in submission.day(DayOfWeek.wed).gaps] == [Interval(480, 1380)]


def test_times_with_seconds_are_accepted():
    assert parse_hhmm("08:00:00") == 480
    assert parse_hhmm("23:00:59") == 1380
    assert parse_hhmm("08:00:60") is None
    assert parse_hhmm("24:00:01") is None

    record = record_from_mapping(_row(start="09:30:00", end="12:00:00"))

    assert (record.start, record.end) == (570, 720)


def test_structural_duplicates_are_removed():
    rows = [_row(), _row(), _row(kind="CENTER")]

    (submission,) = resolve_submissions(rows, WINDOW)

    assert len(submission.records) == 1


def test_degraded_mode_only_deduplicates():
    rows = [
        {"student_id": "s1", "day": "월", "start": "09:00", "end": "10:00", "kind": "center"},
        {"student_id": "s1", "day": "월", "start": "09:00", "end": "10:00", "kind": "센터"},
        {"student_id": "s1", "day": "화", "start": "13:00", "end": "14:00", "kind": "center"},
    ]

    assert detect_recency_tier(canonicalize_records(rows)) == RecencyTier.none
    (submission,) = resolve_submissions(rows, WINDOW)

    assert submission.week_start is None
    assert len(submission.records) == 2
    assert submission.day(DayOfWeek.tue).busy == (Interval(780, 840),)


def test_week_start_is_the_fallback_recency_signal():
    rows = [
        {"student_id": "s1", "week_start": "2025-07-07", "day": "Mon", "start": "09:00", "end": "10:00", "kind": "center"},
        {"student_id": "s1", "week_start": "2025-07-14", "day": "Tue", "start": "09:00", "end": "10:00", "kind": "center"},
    ]

    submission = resolve_submission(rows, WINDOW, student_id="s1")

    assert submission.week_start == date(2025, 7, 14)
    assert [record.day for record in submission.records] == [DayOfWeek.tue]


def test_per_week_grouping_keeps_each_week():
    rows = [
        _row(week_start="2025-07-07", saved_at="2025-07-05T09:00:00Z"),
        _row(week_start="2025-07-14", saved_at="2025-07-12T09:00:00Z"),
        {**_row(), "student_id": "s2", "saved_at": "2025-07-11T09:00:00Z"},
    ]

    submissions = resolve_submissions(rows, WINDOW)

    assert [(item.student_id, item.week_start) for item in submissions] == [
        ("s1", date(2025, 7, 7)),
        ("s1", date(2025, 7, 14)),
        ("s2", date(2025, 7, 14)),
    ]


def test_result_does_not_depend_on_input_order():
    rows = [
        _row(day="Mon", start="08:00", end="10:00", saved_at="2025-07-12T09:00:00Z"),
        _row(day="Mon", start="09:30", end="11:00", saved_at="2025-07-12T09:00:00Z"),
        _row(day="Mon", start="11:00", end="23:00", kind="external", description="home", saved_at="2025-07-12T09:00:00Z"),
        _row(day="Wed", kind="absent", start=None, end=None, saved_at="2025-07-12T09:00:00Z"),
        _row(day="Thu", saved_at="2025-07-01T09:00:00Z"),
    ]

    results = {
        tuple(resolve_submissions(list(permutation), WINDOW))
        for permutation in itertools.permutations(rows)
    }

    assert len(results) == 1


def test_resolution_is_idempotent():
    rows = [
        _row(day="Mon", saved_at="2025-07-12T09:00:00Z"),
        _row(day="Mon", start="12:00", end="23:00", kind="외부", description="school", saved_at="2025-07-12T09:00:00Z"),
        _row(day="Fri", kind="absent", saved_at="2025-07-12T09:00:00Z"),
    ]

    (first,) = resolve_submissions(rows, WINDOW)
    (second,) = resolve_submissions(first.records, WINDOW)

    assert second == first


def test_external_labels_attach_to_recomputed_gaps():
    rows = [
        _row(day="Mon", start="08:00", end="12:00", saved_at="2025-07-12T09:00:00Z"),
        _row(day="Mon", start="12:00", end="23:00", kind="external", description="school", saved_at="2025-07-12T09:00:00Z"),
    ]

    (submission,) = resolve_submissions(rows, WINDOW)

    assert [(gap.interval, gap.label) for gap in submission.day(DayOfWeek.mon).gaps] == [
        (Interval(720, 1380), "school")
    ]


def test_malformed_rows_are_skipped():
    rows = [
        _row(saved_at="2025-07-12T09:00:00Z"),
        _row(day="Someday"),
        _row(start="12:00", end="11:00"),
        {"day": "Mon", "start": "08:00", "end": "09:00", "kind": "center"},
        _row(kind="mystery"),
    ]

    assert len(canonicalize_records(rows)) == 1


def test_alias_normalization():
    assert normalize_day("월요일") == DayOfWeek.mon
    assert normalize_day(" SUNDAY ") == DayOfWeek.sun
    assert normalize_kind("원외") == RecordKind.external
    assert normalize_kind("빈구간") == RecordKind.external
    assert normalize_kind("", "미등원 (sick)") == RecordKind.absent
    with pytest.raises(ValueError):
        normalize_day("holiday")


def test_record_from_mapping_accepts_camel_case_and_voids_absent_times():
    record = record_from_mapping(
        {
            "studentId": "s9",
            "weekStart": "2025-07-14T00:00:00",
            "day": "tue",
            "start": "08:00",
            "end": "08:00",
            "type": "absent",
            "savedAt": "2025-07-12T18:00:00+09:00",
        }
    )

    assert record.student_id == "s9"
    assert record.week_start == date(2025, 7, 14)
    assert record.kind == RecordKind.absent
    assert record.start is None and record.end is None
    assert record.saved_at == datetime(2025, 7, 12, 9, 0, tzinfo=timezone.utc)


def test_parse_saved_at_handles_naive_and_garbage():
    assert parse_saved_at("2025-07-12 09:00:00") == datetime(2025, 7, 12, 9, 0, tzinfo=timezone.utc)
    assert parse_saved_at("yesterday") is None
    assert parse_saved_at(None) is None
