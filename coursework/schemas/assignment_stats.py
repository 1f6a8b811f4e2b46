from datetime import datetime

from pydantic import BaseModel


class AssignmentStatsRow(BaseModel):
    id: int
    title: str
    course_id: int
    course_title: str | None
    instructor_id: int | None
    type: str
    status: str
    due_date: datetime
    max_score: int
    total_submissions: int
    graded_submissions: int
    pending_submissions: int
    late_submissions: int
    average_score: float | None
    status_counts: dict[str, int]
