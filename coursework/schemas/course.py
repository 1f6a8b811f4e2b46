from datetime import datetime

from pydantic import BaseModel, Field


class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    # admins may create a course on behalf of a teacher
    instructor_id: int | None = None


class CourseRead(BaseModel):
    id: int
    title: str
    description: str | None = None
    instructor_id: int
    created_at: datetime

    class Config:
        from_attributes = True
