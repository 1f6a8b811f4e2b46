from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from coursework.core.current_user import Caller, get_caller
from coursework.core.deps import get_db
from coursework.schemas.submission import (
    SubmissionCreate,
    SubmissionGrade,
    SubmissionRead,
    SubmissionUpdate,
)
from coursework.services import submissions as service

router = APIRouter()

SubmissionStatus = Literal["pending", "submitted", "late", "graded", "returned"]


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Not enrolled, or assignment not published"},
        409: {"description": "Submission already exists for this assignment"},
    },
)
def submit_assignment(
    assignment_id: int,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    sub = service.create_submission(db, caller, assignment_id, payload)
    return service.present(sub, caller)


@router.get(
    "/assignments/{assignment_id}/submissions",
    response_model=list[SubmissionRead],
)
def list_submissions_for_assignment(
    assignment_id: int,
    status_filter: Optional[SubmissionStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    subs = service.list_submissions_for_assignment(db, caller, assignment_id, status=status_filter)
    return [service.present(s, caller) for s in subs]


@router.put(
    "/assignments/{assignment_id}/submissions/{student_id}/grade",
    response_model=SubmissionRead,
)
def record_grade(
    assignment_id: int,
    student_id: int,
    payload: SubmissionGrade,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    sub = service.record_grade(db, caller, assignment_id, student_id, payload)
    return service.present(sub, caller)


@router.get("/submissions/me", response_model=list[SubmissionRead])
def my_submissions(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return [service.present(s, caller) for s in service.list_my_submissions(db, caller)]


@router.get("/submissions/{submission_id}", response_model=SubmissionRead)
def get_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    sub = service.get_submission(db, caller, submission_id)
    return service.present(sub, caller)


@router.patch("/submissions/{submission_id}", response_model=SubmissionRead)
def update_submission(
    submission_id: int,
    payload: SubmissionUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    sub = service.update_own_submission(db, caller, submission_id, payload)
    return service.present(sub, caller)


@router.delete("/submissions/{submission_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    service.delete_submission(db, caller, submission_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/submissions/{submission_id}/grade", response_model=SubmissionRead)
def grade_submission(
    submission_id: int,
    payload: SubmissionGrade,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    sub = service.grade_submission(db, caller, submission_id, payload)
    return service.present(sub, caller)


@router.post("/submissions/{submission_id}/return", response_model=SubmissionRead)
def return_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    sub = service.return_submission(db, caller, submission_id)
    return service.present(sub, caller)
