from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class StudentBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    grade: str = Field(default="", max_length=50)
    student_phone: str = Field(default="", max_length=30)
    parent_phone: str = Field(default="", max_length=30)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("grade", "student_phone", "parent_phone")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()


class StudentCreate(StudentBase):
    id: str | None = Field(default=None, min_length=1, max_length=36)

    @field_validator("id")
    @classmethod
    def normalize_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class StudentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    grade: str | None = Field(default=None, max_length=50)
    student_phone: str | None = Field(default=None, max_length=30)
    parent_phone: str | None = Field(default=None, max_length=30)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed


class StudentOut(StudentBase):
    id: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
