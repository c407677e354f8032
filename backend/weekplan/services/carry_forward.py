from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import date

from weekplan.services.schedule_types import WeeklySubmission
from weekplan.services.week_calendar import week_start_of


def copy_submission(source: WeeklySubmission, target_week_start: date) -> WeeklySubmission:
    target = week_start_of(target_week_start)
    return WeeklySubmission(
        student_id=source.student_id,
        week_start=target,
        days=source.days,
        records=tuple(
            replace(record, week_start=target, saved_at=None, sequence=None) for record in source.records
        ),
    )


def copy_week(submissions: Iterable[WeeklySubmission], target_week_start: date) -> list[WeeklySubmission]:
    return [copy_submission(submission, target_week_start) for submission in submissions]
