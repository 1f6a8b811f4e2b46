from datetime import datetime
from typing import Literal

from pydantic import BaseModel

EnrollmentStatus = Literal["active", "inactive", "completed"]


class EnrollmentCreate(BaseModel):
    course_id: int


class EnrollmentStatusUpdate(BaseModel):
    status: EnrollmentStatus


class EnrollmentOut(BaseModel):
    id: int
    user_id: int
    course_id: int
    status: str
    created_at: datetime

    class Config:
        from_attributes = True
