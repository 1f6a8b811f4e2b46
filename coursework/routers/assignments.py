from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from coursework.core.current_user import Caller, get_caller
from coursework.core.deps import get_db
from coursework.schemas.assignment import (
    AssignmentCreate,
    AssignmentRead,
    AssignmentStatus,
    AssignmentType,
    AssignmentUpdate,
)
from coursework.services import assignments as service

router = APIRouter()

AssignmentSort = Literal["due_date", "title", "created"]


@router.get("/courses/{course_id}/assignments", response_model=list[AssignmentRead])
def list_course_assignments(
    course_id: int,
    status_filter: Optional[AssignmentStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    service.get_course(db, course_id)
    return service.list_assignments(db, caller, course_id=course_id, status=status_filter)


@router.post(
    "/courses/{course_id}/assignments",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_assignment(
    course_id: int,
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return service.create_assignment(db, caller, course_id, payload)


@router.get("/assignments", response_model=list[AssignmentRead])
def list_assignments(
    course_id: Optional[int] = None,
    status_filter: Optional[AssignmentStatus] = Query(default=None, alias="status"),
    assignment_type: Optional[AssignmentType] = Query(default=None, alias="type"),
    search: Optional[str] = None,
    sort: AssignmentSort = "due_date",
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return service.list_assignments(
        db,
        caller,
        course_id=course_id,
        status=status_filter,
        assignment_type=assignment_type,
        search=search,
        sort=sort,
    )


@router.get("/assignments/{assignment_id}", response_model=AssignmentRead)
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return service.get_assignment(db, caller, assignment_id)


@router.patch("/assignments/{assignment_id}", response_model=AssignmentRead)
def update_assignment(
    assignment_id: int,
    payload: AssignmentUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return service.update_assignment(db, caller, assignment_id, payload)


@router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    service.delete_assignment(db, caller, assignment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
