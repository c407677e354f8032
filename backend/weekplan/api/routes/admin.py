import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from weekplan.api.deps import get_business_window, get_db
from weekplan.models.student import Student
from weekplan.schemas.schedule import CenterSummaryRowOut, CopyWeekIn, CopyWeekOut, WeeklySubmissionOut
from weekplan.services.carry_forward import copy_week
from weekplan.services.reporting import build_center_summary
from weekplan.services.schedule_store import clear_all, fetch_records, replace_week
from weekplan.services.schedule_types import BusinessWindow, WeeklySubmission
from weekplan.services.versioner import resolve_submissions
from weekplan.services.week_calendar import week_start_of

router = APIRouter()
logger = logging.getLogger(__name__)


def load_submissions(db: Session, window: BusinessWindow, week_start: date | None) -> list[WeeklySubmission]:
    """Canonical submissions for one week, or each student's latest save when no week is given."""
    if week_start is not None:
        records = fetch_records(db, week_start=week_start_of(week_start))
        return resolve_submissions(records, window, per_week=True)
    return resolve_submissions(fetch_records(db), window, per_week=False)


@router.get("/schedules", response_model=list[WeeklySubmissionOut])
def list_schedules(
    week_start: date | None = Query(default=None),
    db: Session = Depends(get_db),
    window: BusinessWindow = Depends(get_business_window),
) -> list[WeeklySubmissionOut]:
    return [WeeklySubmissionOut.from_submission(item) for item in load_submissions(db, window, week_start)]


@router.get("/summary", response_model=list[CenterSummaryRowOut])
def center_summary(
    week_start: date | None = Query(default=None),
    db: Session = Depends(get_db),
    window: BusinessWindow = Depends(get_business_window),
) -> list[CenterSummaryRowOut]:
    submissions = load_submissions(db, window, week_start)
    roster = [
        (student.id, student.name)
        for student in db.execute(select(Student).order_by(Student.name.asc(), Student.id.asc())).scalars()
    ]
    known = {student_id for student_id, _ in roster}
    roster.extend((item.student_id, item.student_id) for item in submissions if item.student_id not in known)
    return [CenterSummaryRowOut.model_validate(row) for row in build_center_summary(roster, submissions)]


@router.post("/schedules/copy-week", response_model=CopyWeekOut)
def copy_schedules_to_week(
    payload: CopyWeekIn,
    db: Session = Depends(get_db),
    window: BusinessWindow = Depends(get_business_window),
) -> CopyWeekOut:
    source_week = week_start_of(payload.source_week_start)
    target_week = week_start_of(payload.target_week_start)
    if source_week == target_week:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Source and target fall in the same week")

    copied = copy_week(load_submissions(db, window, source_week), target_week)
    for submission in copied:
        replace_week(db, student_id=submission.student_id, week_start=target_week, records=submission.records)
    logger.info("Copied %d schedule(s) from week %s to %s", len(copied), source_week, target_week)
    return CopyWeekOut(
        success=True,
        source_week_start=source_week,
        target_week_start=target_week,
        students=[submission.student_id for submission in copied],
    )


@router.delete("/schedules")
def clear_schedules(
    confirm: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> dict:
    if not confirm:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Pass confirm=true to clear all schedules")
    removed = clear_all(db)
    return {"success": True, "removed": removed}
