from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from weekplan.db.base import Base


class CenterSettings(Base):
    __tablename__ = "center_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    week_range_text: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    external_desc: Mapped[str] = mapped_column(Text, nullable=False, default="")
    external_example: Mapped[str] = mapped_column(Text, nullable=False, default="")
    center_desc: Mapped[str] = mapped_column(Text, nullable=False, default="")
    center_example: Mapped[str] = mapped_column(Text, nullable=False, default="")
    notification_footer: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
