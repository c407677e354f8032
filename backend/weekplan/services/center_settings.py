from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from weekplan.models.center_settings import CenterSettings
from weekplan.schemas.schedule import TargetWeekOut, WeekDayOut
from weekplan.services.week_calendar import previous_week_start, resolve_target_week, week_days

SETTINGS_TEXT_FIELDS = (
    "week_range_text",
    "external_desc",
    "external_example",
    "center_desc",
    "center_example",
    "notification_footer",
)


def get_settings_record(db: Session) -> CenterSettings | None:
    return db.execute(select(CenterSettings).where(CenterSettings.id == 1)).scalar_one_or_none()


def build_default_settings_record() -> CenterSettings:
    return CenterSettings(id=1, **{name: "" for name in SETTINGS_TEXT_FIELDS})


def week_range_label(db: Session) -> str:
    record = get_settings_record(db)
    return record.week_range_text if record is not None else ""


def build_target_week(label: str, *, requested: date | None = None, today: date | None = None) -> TargetWeekOut:
    week_start = resolve_target_week(label, requested=requested, today=today)
    return TargetWeekOut(
        week_start=week_start,
        previous_week_start=previous_week_start(week_start),
        week_range_text=label,
        days=[WeekDayOut(day=day.value, calendar_date=value) for day, value in week_days(week_start)],
    )
