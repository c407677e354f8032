from collections.abc import Generator
from datetime import date

from sqlalchemy.orm import Session

from weekplan.core.config import get_settings
from weekplan.core.exceptions import ConfigurationError, ResourceNotFoundError
from weekplan.db.session import SessionLocal
from weekplan.models.student import Student
from weekplan.services.schedule_types import BusinessWindow


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_business_window() -> BusinessWindow:
    settings = get_settings()
    try:
        return BusinessWindow.from_hours(settings.business_day_start_hour, settings.business_day_end_hour)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid business window: {exc}") from exc


def get_today() -> date:
    return date.today()


def get_student_or_404(db: Session, student_id: str) -> Student:
    student = db.get(Student, student_id)
    if student is None:
        raise ResourceNotFoundError("Student", student_id)
    return student
