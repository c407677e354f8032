from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum as SAEnum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from weekplan.db.base import Base
from weekplan.services.schedule_types import RecordKind


class ScheduleRecordRow(Base):
    __tablename__ = "schedule_records"
    __table_args__ = (Index("ix_schedule_records_student_week", "student_id", "week_start"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    week_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    day: Mapped[str] = mapped_column(String(3), nullable=False)
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    kind: Mapped[RecordKind] = mapped_column(SAEnum(RecordKind, name="schedule_kind"), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    saved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sequence: Mapped[int | None] = mapped_column(Integer, nullable=True)
