from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from weekplan.services.intervals import total_minutes
from weekplan.services.schedule_types import DAYS_IN_ORDER, WeeklySubmission, format_minutes

ABSENT_CELL = "absent"


@dataclass
class CenterSummaryRow:
    student_id: str
    name: str
    ranges: dict[str, str] = field(default_factory=dict)
    first_arrival: dict[str, str] = field(default_factory=dict)
    center_minutes: int = 0
    submitted: bool = False


def build_center_summary(
    students: Iterable[tuple[str, str]],
    submissions: Iterable[WeeklySubmission],
) -> list[CenterSummaryRow]:
    """One row per student: merged center ranges per day, absences and earliest arrival.

    ``students`` are ``(id, name)`` pairs; students without a submission still get an
    empty row so the roster stays complete.
    """
    by_student = {submission.student_id: submission for submission in submissions}
    rows: list[CenterSummaryRow] = []
    for student_id, name in students:
        row = CenterSummaryRow(student_id=student_id, name=name or student_id)
        submission = by_student.get(student_id)
        if submission is not None:
            row.submitted = True
            for schedule in submission.days:
                key = schedule.day.value
                if schedule.absent:
                    row.ranges[key] = ABSENT_CELL
                    row.first_arrival[key] = ABSENT_CELL
                    continue
                row.ranges[key] = ", ".join(interval.label for interval in schedule.busy)
                row.first_arrival[key] = format_minutes(schedule.busy[0].start) if schedule.busy else ""
                row.center_minutes += total_minutes(schedule.busy)
        else:
            for day in DAYS_IN_ORDER:
                row.ranges[day.value] = ""
                row.first_arrival[day.value] = ""
        rows.append(row)
    return rows
