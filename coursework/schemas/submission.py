from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class SubmissionCreate(BaseModel):
    answer_text: Optional[str] = None
    file_url: Optional[str] = None
    # False keeps the row as a pending draft
    submit: bool = True


class SubmissionUpdate(BaseModel):
    answer_text: Optional[str] = None
    file_url: Optional[str] = None
    submit: bool = False


class SubmissionGrade(BaseModel):
    # range is checked by the service so the violation carries the field name
    score: int
    feedback: Optional[str] = None
    status: Literal["graded", "returned"] = "graded"


class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    user_id: int
    submitted_at: Optional[datetime] = None
    file_url: Optional[str] = None
    answer_text: Optional[str] = None
    score: Optional[int] = None
    feedback: Optional[str] = None
    status: str
    graded_by: Optional[int] = None
    graded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
