"""Row-level authorization policies.

Every predicate is a pure function of the caller, the target row and the
parent rows joined to it (course, the caller's enrollment). Nothing here
touches the database: the service layer loads the rows and asks. The
``*_read_filter`` helpers express the read predicates as SQL clauses so list
queries drop unreadable rows in the database instead of in Python.
"""
import logging

from fastapi import Depends
from sqlalchemy import and_, exists, or_, select, true
from sqlalchemy.orm import aliased

from coursework.core.config import ROLE_TEACHER
from coursework.core.current_user import Caller, get_caller
from coursework.core.errors import AuthorizationDenied
from coursework.models.assignment import Assignment
from coursework.models.course import Course
from coursework.models.enrollment import Enrollment
from coursework.models.submission import PRE_GRADING_STATUSES, Submission

logger = logging.getLogger(__name__)


def is_admin(caller: Caller) -> bool:
    return caller.is_admin


def is_instructor(caller: Caller, course: Course | None) -> bool:
    return course is not None and course.instructor_id == caller.id


def is_actively_enrolled(caller: Caller, enrollment: Enrollment | None) -> bool:
    return (
        enrollment is not None
        and enrollment.user_id == caller.id
        and enrollment.status == "active"
    )


def can_manage_course(caller: Caller, course: Course | None) -> bool:
    return is_admin(caller) or is_instructor(caller, course)


# Assignments


def can_read_assignment(
    caller: Caller,
    assignment: Assignment,
    course: Course | None,
    enrollment: Enrollment | None,
) -> bool:
    if can_manage_course(caller, course):
        return True
    return assignment.status == "published" and is_actively_enrolled(caller, enrollment)


def can_write_assignment(caller: Caller, course: Course | None) -> bool:
    """Create, update and delete share one rule."""
    return can_manage_course(caller, course)


# Submissions


def can_read_submission(caller: Caller, submission: Submission, course: Course | None) -> bool:
    return submission.user_id == caller.id or can_manage_course(caller, course)


def can_create_submission(
    caller: Caller,
    owner_id: int,
    assignment: Assignment,
    enrollment: Enrollment | None,
) -> bool:
    return (
        owner_id == caller.id
        and is_actively_enrolled(caller, enrollment)
        and assignment.status == "published"
    )


def can_update_submission(caller: Caller, submission: Submission, course: Course | None) -> bool:
    if can_manage_course(caller, course):
        return True
    return submission.user_id == caller.id and submission.status in PRE_GRADING_STATUSES


def can_grade_submission(caller: Caller, course: Course | None) -> bool:
    return can_manage_course(caller, course)


def can_delete_submission(caller: Caller, course: Course | None) -> bool:
    return can_manage_course(caller, course)


def can_see_grade(caller: Caller, submission: Submission, course: Course | None) -> bool:
    """Owners see score and feedback only once the grade is released."""
    if can_manage_course(caller, course):
        return True
    return submission.user_id == caller.id and submission.status == "returned"


def ensure(allowed: bool, caller: Caller, action: str) -> None:
    if not allowed:
        logger.warning("denied: user=%s role=%s action=%s", caller.id, caller.role, action)
        raise AuthorizationDenied(action)


# SQL forms of the read predicates


# aliased so the subquery keeps its own FROM when the outer query joins Course
def _instructs(caller: Caller, course_id_column):
    taught = aliased(Course)
    return exists(
        select(taught.id).where(
            taught.id == course_id_column,
            taught.instructor_id == caller.id,
        )
    )


def _actively_enrolled(caller: Caller, course_id_column):
    enrolled = aliased(Enrollment)
    return exists(
        select(enrolled.id).where(
            enrolled.course_id == course_id_column,
            enrolled.user_id == caller.id,
            enrolled.status == "active",
        )
    )


def assignment_read_filter(caller: Caller):
    if is_admin(caller):
        return true()
    return or_(
        _instructs(caller, Assignment.course_id),
        and_(
            Assignment.status == "published",
            _actively_enrolled(caller, Assignment.course_id),
        ),
    )


def submission_read_filter(caller: Caller):
    """Assumes the query already joins Assignment on Submission.assignment_id."""
    if is_admin(caller):
        return true()
    return or_(
        Submission.user_id == caller.id,
        _instructs(caller, Assignment.course_id),
    )


def managed_assignments_filter(caller: Caller):
    if is_admin(caller):
        return true()
    return _instructs(caller, Assignment.course_id)


def require_staff(caller: Caller = Depends(get_caller)) -> Caller:
    """Course creation is limited to teachers and admins."""
    ensure(caller.role == ROLE_TEACHER or is_admin(caller), caller, "manage courses")
    return caller


def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    ensure(is_admin(caller), caller, "administer users")
    return caller
