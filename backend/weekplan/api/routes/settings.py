import logging
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from weekplan.api.deps import get_db, get_today
from weekplan.models.center_settings import CenterSettings
from weekplan.schemas.settings import CenterSettingsOut, CenterSettingsPayload
from weekplan.services.center_settings import (
    SETTINGS_TEXT_FIELDS,
    build_default_settings_record,
    build_target_week,
    get_settings_record,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def build_settings_out(record: CenterSettings | None, today: date) -> CenterSettingsOut:
    values = {name: getattr(record, name) or "" if record is not None else "" for name in SETTINGS_TEXT_FIELDS}
    return CenterSettingsOut(
        **values,
        updated_at=record.updated_at if record is not None else None,
        target_week=build_target_week(values["week_range_text"], today=today),
    )


@router.get("/settings", response_model=CenterSettingsOut)
def get_center_settings(
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
) -> CenterSettingsOut:
    return build_settings_out(get_settings_record(db), today)


@router.put("/settings", response_model=CenterSettingsOut)
def update_center_settings(
    payload: CenterSettingsPayload,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
) -> CenterSettingsOut:
    record = get_settings_record(db)
    if record is None:
        record = build_default_settings_record()
        db.add(record)
    for name, value in payload.model_dump().items():
        setattr(record, name, value.strip())
    db.commit()
    db.refresh(record)
    logger.info("Center settings updated; week label %r", record.week_range_text)
    return build_settings_out(record, today)
