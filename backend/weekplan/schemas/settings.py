from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from weekplan.schemas.schedule import TargetWeekOut


class CenterSettingsPayload(BaseModel):
    week_range_text: str = Field(default="", max_length=200)
    external_desc: str = Field(default="", max_length=2000)
    external_example: str = Field(default="", max_length=2000)
    center_desc: str = Field(default="", max_length=2000)
    center_example: str = Field(default="", max_length=2000)
    notification_footer: str = Field(default="", max_length=2000)


class CenterSettingsOut(CenterSettingsPayload):
    updated_at: datetime | None = None
    target_week: TargetWeekOut
