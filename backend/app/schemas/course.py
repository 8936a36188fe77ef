"""
Course schemas.
"""
from datetime import datetime

from pydantic import BaseModel, field_validator


class CourseCreateRequest(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name must not be empty")
        if len(v) > 255:
            raise ValueError("name must be at most 255 characters")
        return v


class CourseResponse(BaseModel):
    id: str
    user_id: str
    name: str
    created_at: datetime | None = None


class CourseListResponse(BaseModel):
    items: list[CourseResponse]
    total: int
