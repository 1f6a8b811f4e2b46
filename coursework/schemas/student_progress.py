from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class StudentProgressRow(BaseModel):
    student_id: int
    student_name: Optional[str] = None
    student_email: str

    assignment_id: int
    assignment_title: str
    course_id: int
    due_date: datetime
    max_score: int

    submission_id: Optional[int] = None
    submission_status: Optional[str] = None
    score: Optional[int] = None
    submitted_at: Optional[datetime] = None
    graded_at: Optional[datetime] = None
    progress_status: str  # "not_submitted" | "late" | "graded" | "submitted"
