from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from weekplan.api.deps import get_business_window, get_db
from weekplan.core.config import get_settings
from weekplan.core.exceptions import ConfigurationError
from weekplan.db.bootstrap import find_missing_schema
from weekplan.models.schedule_record import ScheduleRecordRow
from weekplan.services.schedule_types import format_minutes

router = APIRouter()


def schedule_store_report(db: Session) -> dict:
    """Schema drift plus the size and most recent week of the schedule history."""
    try:
        missing = find_missing_schema(db.connection())
        if missing:
            return {"ok": False, "missing": missing, "records": None, "latest_week": None}
        records, latest_week = db.execute(
            select(func.count(ScheduleRecordRow.id), func.max(ScheduleRecordRow.week_start))
        ).one()
    except SQLAlchemyError as exc:
        return {"ok": False, "error": str(exc)}
    return {
        "ok": True,
        "missing": [],
        "records": records,
        "latest_week": latest_week.isoformat() if latest_week is not None else None,
    }


def business_window_report() -> dict:
    try:
        window = get_business_window()
    except ConfigurationError as exc:
        return {"ok": False, "error": exc.message}
    return {"ok": True, "start": format_minutes(window.start), "end": format_minutes(window.end)}


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/ready")
def health_ready(db: Session = Depends(get_db)) -> JSONResponse:
    settings = get_settings()
    checks = {
        "schedule_store": schedule_store_report(db),
        "business_window": business_window_report(),
    }
    ready = all(check["ok"] for check in checks.values())
    # Notifications are optional; a save still succeeds without them.
    checks["save_notifications"] = {
        "enabled": settings.smtp_configured and bool(settings.admin_notification_emails),
        "recipients": len(settings.admin_notification_emails),
    }
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "not_ready", "checks": checks},
    )
