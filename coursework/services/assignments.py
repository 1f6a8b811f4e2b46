import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from coursework.core.current_user import Caller
from coursework.core.deps import commit_or_raise
from coursework.core.errors import NotFound, ValidationFailed
from coursework.core.permissions import (
    assignment_read_filter,
    can_read_assignment,
    can_write_assignment,
    ensure,
)
from coursework.core.timeutil import as_utc
from coursework.models.assignment import ASSIGNMENT_STATUSES, ASSIGNMENT_TYPES, Assignment
from coursework.models.course import Course
from coursework.models.enrollment import Enrollment
from coursework.schemas.assignment import AssignmentCreate, AssignmentUpdate

logger = logging.getLogger(__name__)

# forward-only lifecycle; index order is the allowed direction
_LIFECYCLE = {status: rank for rank, status in enumerate(ASSIGNMENT_STATUSES)}

SORT_OPTIONS = ("due_date", "title", "created")


def get_course(db: Session, course_id: int) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise NotFound("Course", course_id)
    return course


def get_enrollment(db: Session, user_id: int, course_id: int) -> Enrollment | None:
    return (
        db.query(Enrollment)
        .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
        .first()
    )


def check_transition(current: str, target: str) -> None:
    if target not in _LIFECYCLE:
        raise ValidationFailed("status", f"status must be one of {', '.join(ASSIGNMENT_STATUSES)}")
    if _LIFECYCLE[target] < _LIFECYCLE[current]:
        raise ValidationFailed("status", f"cannot move assignment from {current} back to {target}")


def _validate_fields(values: dict) -> None:
    if "type" in values and values["type"] not in ASSIGNMENT_TYPES:
        raise ValidationFailed("type", f"type must be one of {', '.join(ASSIGNMENT_TYPES)}")
    if "max_score" in values and (values["max_score"] is None or values["max_score"] <= 0):
        raise ValidationFailed("max_score", "max_score must be greater than 0")
    if "due_date" in values and values["due_date"] is None:
        raise ValidationFailed("due_date", "due_date is required")
    if "title" in values and not values["title"]:
        raise ValidationFailed("title", "title is required")


def create_assignment(db: Session, caller: Caller, course_id: int, payload: AssignmentCreate) -> Assignment:
    course = get_course(db, course_id)
    ensure(can_write_assignment(caller, course), caller, "create assignments in this course")

    values = payload.model_dump()
    _validate_fields(values)
    if values["status"] not in _LIFECYCLE:
        raise ValidationFailed("status", f"status must be one of {', '.join(ASSIGNMENT_STATUSES)}")
    values["due_date"] = as_utc(values["due_date"])

    assignment = Assignment(course_id=course.id, **values)
    db.add(assignment)
    commit_or_raise(db)
    db.refresh(assignment)

    logger.info("assignment %s created in course %s by user %s", assignment.id, course.id, caller.id)
    return assignment


def get_assignment(db: Session, caller: Caller, assignment_id: int) -> Assignment:
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFound("Assignment", assignment_id)

    course = db.get(Course, assignment.course_id)
    enrollment = get_enrollment(db, caller.id, assignment.course_id)
    ensure(can_read_assignment(caller, assignment, course, enrollment), caller, "view this assignment")
    return assignment


def list_assignments(
    db: Session,
    caller: Caller,
    course_id: int | None = None,
    status: str | None = None,
    assignment_type: str | None = None,
    search: str | None = None,
    sort: str = "due_date",
) -> list[Assignment]:
    if sort not in SORT_OPTIONS:
        raise ValidationFailed("sort", f"sort must be one of {', '.join(SORT_OPTIONS)}")

    stmt = (
        select(Assignment)
        .join(Course, Course.id == Assignment.course_id)
        .where(assignment_read_filter(caller))
    )
    if course_id is not None:
        stmt = stmt.where(Assignment.course_id == course_id)
    if status is not None:
        stmt = stmt.where(Assignment.status == status)
    if assignment_type is not None:
        stmt = stmt.where(Assignment.type == assignment_type)
    if search:
        pattern = f"%{search.lower()}%"
        stmt = stmt.where(
            func.lower(Assignment.title).like(pattern)
            | func.lower(Course.title).like(pattern)
        )

    if sort == "title":
        stmt = stmt.order_by(Assignment.title.asc(), Assignment.id.asc())
    elif sort == "created":
        stmt = stmt.order_by(Assignment.created_at.desc(), Assignment.id.desc())
    else:
        stmt = stmt.order_by(Assignment.due_date.asc(), Assignment.id.asc())

    return list(db.scalars(stmt).all())


def _load_for_write(db: Session, caller: Caller, assignment_id: int, action: str) -> Assignment:
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFound("Assignment", assignment_id)
    course = db.get(Course, assignment.course_id)
    ensure(can_write_assignment(caller, course), caller, action)
    return assignment


def update_assignment(db: Session, caller: Caller, assignment_id: int, payload: AssignmentUpdate) -> Assignment:
    assignment = _load_for_write(db, caller, assignment_id, "update this assignment")

    changes = payload.model_dump(exclude_unset=True)
    _validate_fields(changes)
    if "status" in changes:
        if changes["status"] is None:
            raise ValidationFailed("status", "status cannot be null")
        check_transition(assignment.status, changes["status"])
    if "due_date" in changes:
        changes["due_date"] = as_utc(changes["due_date"])

    for field, value in changes.items():
        setattr(assignment, field, value)

    commit_or_raise(db)
    db.refresh(assignment)

    logger.info("assignment %s updated by user %s: %s", assignment.id, caller.id, sorted(changes))
    return assignment


def delete_assignment(db: Session, caller: Caller, assignment_id: int) -> None:
    assignment = _load_for_write(db, caller, assignment_id, "delete this assignment")
    db.delete(assignment)
    commit_or_raise(db)
    logger.info("assignment %s deleted by user %s", assignment_id, caller.id)
