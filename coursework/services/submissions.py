import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from coursework.core.config import SCORE_MAX, SCORE_MIN
from coursework.core.current_user import Caller
from coursework.core.deps import commit_or_raise
from coursework.core.errors import NotFound, ValidationFailed
from coursework.core.permissions import (
    can_create_submission,
    can_delete_submission,
    can_grade_submission,
    can_read_submission,
    can_see_grade,
    can_update_submission,
    ensure,
    is_admin,
    submission_read_filter,
)
from coursework.core.timeutil import is_after, utcnow
from coursework.models.assignment import Assignment
from coursework.models.course import Course
from coursework.models.submission import GRADED_STATUSES, SUBMISSION_STATUSES, Submission
from coursework.schemas.submission import (
    SubmissionCreate,
    SubmissionGrade,
    SubmissionRead,
    SubmissionUpdate,
)
from coursework.services.assignments import get_enrollment

logger = logging.getLogger(__name__)

UNIQUE_FIELD = "assignment_id,user_id"


def _load_assignment(db: Session, assignment_id: int) -> tuple[Assignment, Course | None]:
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFound("Assignment", assignment_id)
    return assignment, db.get(Course, assignment.course_id)


def _load_submission(db: Session, submission_id: int) -> tuple[Submission, Assignment, Course | None]:
    sub = db.get(Submission, submission_id)
    if sub is None:
        raise NotFound("Submission", submission_id)
    assignment, course = _load_assignment(db, sub.assignment_id)
    return sub, assignment, course


def _stamp_submitted(sub: Submission, assignment: Assignment, now: datetime) -> None:
    """Record the hand-in time and store `late` when it is past the due date."""
    sub.submitted_at = now
    sub.status = "late" if is_after(now, assignment.due_date) else "submitted"


def _validate_score(score: int | None) -> None:
    if score is None or score < SCORE_MIN or score > SCORE_MAX:
        raise ValidationFailed("score", f"score must be between {SCORE_MIN} and {SCORE_MAX}")


def present(sub: Submission, caller: Caller) -> SubmissionRead:
    """Serialize a row for the caller, hiding unreleased grading fields."""
    out = SubmissionRead.model_validate(sub)
    if can_see_grade(caller, sub, sub.assignment.course):
        return out
    return out.model_copy(
        update={"score": None, "feedback": None, "graded_by": None, "graded_at": None}
    )


def create_submission(
    db: Session,
    caller: Caller,
    assignment_id: int,
    payload: SubmissionCreate,
    now: datetime | None = None,
) -> Submission:
    assignment, _course = _load_assignment(db, assignment_id)
    enrollment = get_enrollment(db, caller.id, assignment.course_id)
    ensure(
        can_create_submission(caller, caller.id, assignment, enrollment),
        caller,
        "submit to this assignment",
    )

    sub = Submission(
        assignment_id=assignment.id,
        user_id=caller.id,
        answer_text=payload.answer_text,
        file_url=payload.file_url,
        status="pending",
    )
    if payload.submit:
        _stamp_submitted(sub, assignment, now or utcnow())

    db.add(sub)
    # a concurrent or repeated insert for the same pair fails here
    commit_or_raise(db, unique_field=UNIQUE_FIELD)
    db.refresh(sub)

    logger.info("submission %s created for assignment %s by user %s (%s)", sub.id, assignment.id, caller.id, sub.status)
    return sub


def update_own_submission(
    db: Session,
    caller: Caller,
    submission_id: int,
    payload: SubmissionUpdate,
    now: datetime | None = None,
) -> Submission:
    sub, assignment, course = _load_submission(db, submission_id)
    ensure(can_update_submission(caller, sub, course), caller, "edit this submission")
    if payload.submit and sub.status in GRADED_STATUSES:
        # hand-in stamps never overwrite a grading decision
        raise ValidationFailed("status", f"cannot resubmit a submission that is already {sub.status}")

    changes = payload.model_dump(exclude_unset=True, exclude={"submit"})
    for field, value in changes.items():
        setattr(sub, field, value)
    if payload.submit:
        _stamp_submitted(sub, assignment, now or utcnow())

    commit_or_raise(db, unique_field=UNIQUE_FIELD)
    db.refresh(sub)
    return sub


def get_submission(db: Session, caller: Caller, submission_id: int) -> Submission:
    sub, _assignment, course = _load_submission(db, submission_id)
    ensure(can_read_submission(caller, sub, course), caller, "view this submission")
    return sub


def list_submissions_for_assignment(
    db: Session,
    caller: Caller,
    assignment_id: int,
    status: str | None = None,
) -> list[Submission]:
    assignment, course = _load_assignment(db, assignment_id)
    ensure(can_grade_submission(caller, course), caller, "view submissions for this assignment")

    if status is not None and status not in SUBMISSION_STATUSES:
        raise ValidationFailed("status", f"status must be one of {', '.join(SUBMISSION_STATUSES)}")

    q = db.query(Submission).filter(Submission.assignment_id == assignment.id)
    if status is not None:
        q = q.filter(Submission.status == status)
    return q.order_by(Submission.submitted_at.is_(None), Submission.submitted_at.asc(), Submission.id.asc()).all()


def list_my_submissions(db: Session, caller: Caller) -> list[Submission]:
    stmt = (
        select(Submission)
        .join(Assignment, Assignment.id == Submission.assignment_id)
        .where(Submission.user_id == caller.id)
        .where(submission_read_filter(caller))
        .order_by(Assignment.due_date.asc(), Submission.id.asc())
    )
    return list(db.scalars(stmt).all())


def _apply_grade(sub: Submission, caller: Caller, payload: SubmissionGrade, now: datetime) -> None:
    # one row write: all grading fields change together
    sub.score = payload.score
    sub.feedback = payload.feedback
    sub.status = payload.status
    sub.graded_by = caller.id
    sub.graded_at = now


def grade_submission(
    db: Session,
    caller: Caller,
    submission_id: int,
    payload: SubmissionGrade,
    now: datetime | None = None,
) -> Submission:
    sub, _assignment, course = _load_submission(db, submission_id)
    ensure(can_grade_submission(caller, course), caller, "grade this submission")
    _validate_score(payload.score)

    _apply_grade(sub, caller, payload, now or utcnow())
    commit_or_raise(db, unique_field=UNIQUE_FIELD)
    db.refresh(sub)

    logger.info("submission %s graded %s (%s) by user %s", sub.id, sub.score, sub.status, caller.id)
    return sub


def record_grade(
    db: Session,
    caller: Caller,
    assignment_id: int,
    student_id: int,
    payload: SubmissionGrade,
    now: datetime | None = None,
) -> Submission:
    """Grade a student's work, creating the row if they never handed anything in."""
    assignment, course = _load_assignment(db, assignment_id)
    ensure(can_grade_submission(caller, course), caller, "grade this assignment")
    _validate_score(payload.score)

    sub = (
        db.query(Submission)
        .filter(Submission.assignment_id == assignment.id, Submission.user_id == student_id)
        .first()
    )
    if sub is None:
        enrollment = get_enrollment(db, student_id, assignment.course_id)
        if enrollment is None or enrollment.status != "active":
            raise ValidationFailed("user_id", "student is not actively enrolled in this course")
        sub = Submission(assignment_id=assignment.id, user_id=student_id)
        db.add(sub)

    _apply_grade(sub, caller, payload, now or utcnow())
    commit_or_raise(db, unique_field=UNIQUE_FIELD)
    db.refresh(sub)

    logger.info("submission %s graded %s (%s) by user %s", sub.id, sub.score, sub.status, caller.id)
    return sub


def return_submission(db: Session, caller: Caller, submission_id: int) -> Submission:
    """Release a saved grade to the student (graded -> returned)."""
    sub, _assignment, course = _load_submission(db, submission_id)
    ensure(can_grade_submission(caller, course), caller, "return this submission")

    if sub.status == "returned":
        return sub
    if sub.status != "graded":
        raise ValidationFailed("status", f"only graded submissions can be returned, not {sub.status}")

    sub.status = "returned"
    commit_or_raise(db, unique_field=UNIQUE_FIELD)
    db.refresh(sub)

    logger.info("submission %s returned by user %s", sub.id, caller.id)
    return sub


def delete_submission(db: Session, caller: Caller, submission_id: int) -> None:
    sub, _assignment, course = _load_submission(db, submission_id)
    ensure(can_delete_submission(caller, course), caller, "delete this submission")

    db.delete(sub)
    commit_or_raise(db)
    logger.info(
        "submission %s deleted by user %s%s",
        submission_id,
        caller.id,
        " (admin)" if is_admin(caller) else "",
    )
