from __future__ import annotations

import logging

from sqlalchemy import inspect, text

from weekplan import models  # noqa: F401
from weekplan.db.base import Base
from weekplan.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "students": {"id", "name"},
    "schedule_records": {
        "id",
        "student_id",
        "week_start",
        "day",
        "start_time",
        "end_time",
        "kind",
        "description",
        "saved_at",
        "sequence",
    },
    "center_settings": {"id", "week_range_text", "notification_footer"},
}


def _ensure_schedule_record_version_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "schedule_records" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("schedule_records")}
        timestamp_type = "TIMESTAMP WITH TIME ZONE" if connection.dialect.name == "postgresql" else "DATETIME"
        if "week_start" not in column_names:
            connection.execute(text("ALTER TABLE schedule_records ADD COLUMN week_start DATE"))
        if "saved_at" not in column_names:
            connection.execute(text(f"ALTER TABLE schedule_records ADD COLUMN saved_at {timestamp_type}"))
        if "sequence" not in column_names:
            connection.execute(text("ALTER TABLE schedule_records ADD COLUMN sequence INTEGER"))
            logger.info("Added version columns to legacy schedule_records table")


def _ensure_center_settings_footer_column() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "center_settings" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("center_settings")}
        if "notification_footer" in column_names:
            return
        connection.execute(
            text("ALTER TABLE center_settings ADD COLUMN notification_footer TEXT NOT NULL DEFAULT ''")
        )


def find_missing_schema(connection) -> list[str]:
    """Return missing tables and `table.column` entries required by the running code."""
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing: list[str] = []
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing.extend(f"{table_name}.{column_name}" for column_name in sorted(required - existing))
    return missing


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        missing = find_missing_schema(connection)
    if missing:
        raise RuntimeError(f"Missing required schema objects: {', '.join(missing)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _ensure_schedule_record_version_columns()
        _ensure_center_settings_footer_column()
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
