import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from weekplan.api.deps import get_business_window, get_db, get_student_or_404, get_today
from weekplan.core.config import get_settings
from weekplan.core.exceptions import ResourceNotFoundError, ScheduleValidationError
from weekplan.schemas.schedule import (
    CopyFromPreviousIn,
    DayScheduleOut,
    DefectOut,
    SavedWeekOut,
    SaveResultOut,
    TargetWeekOut,
    ValidationResultOut,
    WeeklyScheduleIn,
    WeeklySubmissionOut,
)
from weekplan.services.carry_forward import copy_submission
from weekplan.services.center_settings import build_target_week, get_settings_record, week_range_label
from weekplan.services.day_validator import build_records, validate_week
from weekplan.services.notifications import notify_admins_of_save
from weekplan.services.schedule_store import SaveReceipt, fetch_records, latest_saved_week, recent_saves, replace_week
from weekplan.services.schedule_types import BusinessWindow, ScheduleRecord, WeeklySubmission
from weekplan.services.versioner import resolve_submission
from weekplan.services.week_calendar import previous_week_start, resolve_target_week, week_start_of

router = APIRouter()
logger = logging.getLogger(__name__)
settings = get_settings()


def load_submission(
    db: Session,
    window: BusinessWindow,
    *,
    student_id: str,
    week_start: date,
) -> WeeklySubmission | None:
    records = fetch_records(db, student_id=student_id, week_start=week_start)
    return resolve_submission(records, window, student_id=student_id, week_start=week_start)


def store_week(
    db: Session,
    window: BusinessWindow,
    *,
    student_id: str,
    week_start: date,
    records: tuple[ScheduleRecord, ...],
) -> tuple[SaveReceipt, WeeklySubmission | None]:
    receipt = replace_week(db, student_id=student_id, week_start=week_start, records=records)
    return receipt, load_submission(db, window, student_id=student_id, week_start=week_start)


def build_save_result(
    receipt: SaveReceipt,
    submission: WeeklySubmission | None,
    *,
    message: str,
    notified: bool | None = None,
) -> SaveResultOut:
    if submission is None:
        submission = WeeklySubmission(student_id=receipt.student_id, week_start=receipt.week_start, days=())
    return SaveResultOut(
        success=True,
        message=message,
        week_start=receipt.week_start,
        saved_at=receipt.saved_at,
        sequence=receipt.sequence,
        record_count=receipt.record_count,
        notified=notified,
        submission=WeeklySubmissionOut.from_submission(submission),
    )


@router.get("/week", response_model=TargetWeekOut)
def get_target_week(
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
) -> TargetWeekOut:
    return build_target_week(week_range_label(db), today=today)


@router.post("/schedules/validate", response_model=ValidationResultOut)
def validate_schedule(
    payload: WeeklyScheduleIn,
    window: BusinessWindow = Depends(get_business_window),
) -> ValidationResultOut:
    result = validate_week(payload.to_day_inputs(), window)
    return ValidationResultOut(
        valid=result.ok,
        days=[DayScheduleOut.from_schedule(day) for day in result.days],
        defects=[DefectOut.from_defect(defect) for defect in result.defects],
    )


@router.post("/schedules", response_model=SaveResultOut)
def save_schedule(
    payload: WeeklyScheduleIn,
    db: Session = Depends(get_db),
    window: BusinessWindow = Depends(get_business_window),
    today: date = Depends(get_today),
) -> SaveResultOut:
    student = get_student_or_404(db, payload.student_id)
    result = validate_week(payload.to_day_inputs(), window)
    if not result.ok:
        raise ScheduleValidationError([defect.as_dict() for defect in result.defects])

    center = get_settings_record(db)
    label = center.week_range_text if center is not None else ""
    week_start = resolve_target_week(label, requested=payload.week_start, today=today)
    records = build_records(student.id, week_start, result.days)
    receipt, submission = store_week(db, window, student_id=student.id, week_start=week_start, records=records)

    notified = None
    if submission is not None:
        notified = notify_admins_of_save(
            submission,
            student_name=student.name,
            footer=center.notification_footer if center is not None else "",
        )
    return build_save_result(receipt, submission, message="Schedule saved", notified=notified)


@router.get("/schedules/{student_id}", response_model=WeeklySubmissionOut)
def get_student_schedule(
    student_id: str,
    week_start: date | None = Query(default=None),
    db: Session = Depends(get_db),
    window: BusinessWindow = Depends(get_business_window),
) -> WeeklySubmissionOut:
    target = week_start_of(week_start) if week_start is not None else latest_saved_week(db, student_id)
    if target is None:
        raise ResourceNotFoundError("Schedule", student_id)
    submission = load_submission(db, window, student_id=student_id, week_start=target)
    if submission is None:
        raise ResourceNotFoundError("Schedule", f"{student_id}@{target.isoformat()}")
    return WeeklySubmissionOut.from_submission(submission)


@router.get("/saves/{student_id}", response_model=list[SavedWeekOut])
def list_recent_saves(
    student_id: str,
    limit: int = Query(default=settings.recent_saves_default_limit, ge=1, le=settings.recent_saves_max_limit),
    db: Session = Depends(get_db),
) -> list[SavedWeekOut]:
    return [
        SavedWeekOut(week_start=item.week_start, saved_at=item.saved_at, sequence=item.sequence)
        for item in recent_saves(db, student_id, limit)
    ]


@router.post("/schedules/copy-from-previous", response_model=SaveResultOut)
def copy_from_previous_week(
    payload: CopyFromPreviousIn,
    db: Session = Depends(get_db),
    window: BusinessWindow = Depends(get_business_window),
    today: date = Depends(get_today),
) -> SaveResultOut:
    student = get_student_or_404(db, payload.student_id)
    target = resolve_target_week(week_range_label(db), requested=payload.week_start, today=today)
    source_week = (
        week_start_of(payload.previous_week_start)
        if payload.previous_week_start is not None
        else previous_week_start(target)
    )

    source = load_submission(db, window, student_id=student.id, week_start=source_week)
    if source is None:
        raise ResourceNotFoundError("Schedule", f"{student.id}@{source_week.isoformat()}")

    copied = copy_submission(source, target)
    receipt, submission = store_week(db, window, student_id=student.id, week_start=target, records=copied.records)
    logger.info("Copied schedule of student %s from %s to %s", student.id, source_week, target)
    return build_save_result(receipt, submission, message=f"Copied schedule from week of {source_week.isoformat()}")
