from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from coursework.core.current_user import Caller, get_caller
from coursework.core.deps import get_db
from coursework.schemas.assignment_stats import AssignmentStatsRow
from coursework.schemas.student_progress import StudentProgressRow
from coursework.services import views as service

router = APIRouter()


@router.get("/assignment-stats", response_model=list[AssignmentStatsRow])
def assignment_stats(
    course_id: Optional[int] = None,
    instructor_id: Optional[int] = None,
    sort: Literal["due_date", "title", "submissions", "pending"] = "due_date",
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return service.assignment_stats(
        db, caller, course_id=course_id, instructor_id=instructor_id, sort=sort
    )


@router.get("/student-progress", response_model=list[StudentProgressRow])
def student_progress(
    assignment_id: Optional[int] = None,
    course_id: Optional[int] = None,
    student_id: Optional[int] = None,
    status_filter: Optional[Literal["not_submitted", "late", "graded", "submitted"]] = Query(
        default=None, alias="status"
    ),
    search: Optional[str] = None,
    sort: Literal["name", "status", "score", "submitted"] = "name",
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return service.student_progress(
        db,
        caller,
        assignment_id=assignment_id,
        course_id=course_id,
        student_id=student_id,
        status=status_filter,
        search=search,
        sort=sort,
    )
