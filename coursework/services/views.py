"""Read-only projections over assignments and submissions.

Both views are recomputed from the base tables on every call; nothing is
cached or materialized, so two reads with no write in between agree.
"""
from sqlalchemy import and_, case, func, select
from sqlalchemy.orm import Session

from coursework.core.current_user import Caller
from coursework.core.errors import ValidationFailed
from coursework.core.permissions import is_admin, managed_assignments_filter
from coursework.core.timeutil import is_after
from coursework.models.assignment import Assignment
from coursework.models.course import Course
from coursework.models.enrollment import Enrollment
from coursework.models.submission import SUBMISSION_STATUSES, Submission
from coursework.models.user import User
from coursework.schemas.assignment_stats import AssignmentStatsRow
from coursework.schemas.student_progress import StudentProgressRow

STATS_SORT_OPTIONS = ("due_date", "title", "submissions", "pending")
PROGRESS_SORT_OPTIONS = ("name", "status", "score", "submitted")
PROGRESS_STATUSES = ("not_submitted", "late", "graded", "submitted")


def progress_status(submitted_at, due_date, score) -> str:
    """Derived status shown in the progress view.

    A scored row reads as ``graded`` even when it was handed in late.
    """
    if submitted_at is None:
        return "not_submitted"
    if score is not None:
        return "graded"
    if is_after(submitted_at, due_date):
        return "late"
    return "submitted"


def _count_status(*statuses):
    return func.count(case((Submission.status.in_(statuses), 1)))


def assignment_stats(
    db: Session,
    caller: Caller,
    course_id: int | None = None,
    instructor_id: int | None = None,
    sort: str = "due_date",
) -> list[AssignmentStatsRow]:
    if sort not in STATS_SORT_OPTIONS:
        raise ValidationFailed("sort", f"sort must be one of {', '.join(STATS_SORT_OPTIONS)}")

    status_columns = [_count_status(s).label(f"n_{s}") for s in SUBMISSION_STATUSES]
    stmt = (
        select(
            Assignment.id,
            Assignment.title,
            Assignment.course_id,
            Assignment.type,
            Assignment.status,
            Assignment.due_date,
            Assignment.max_score,
            Course.title.label("course_title"),
            Course.instructor_id,
            func.count(Submission.id).label("total_submissions"),
            _count_status("graded", "returned").label("graded_submissions"),
            _count_status("submitted", "late").label("pending_submissions"),
            func.avg(Submission.score).label("average_score"),
            func.count(case((Submission.submitted_at > Assignment.due_date, 1))).label("late_submissions"),
            *status_columns,
        )
        .select_from(Assignment)
        .outerjoin(Course, Course.id == Assignment.course_id)
        .outerjoin(Submission, Submission.assignment_id == Assignment.id)
        .where(managed_assignments_filter(caller))
        .group_by(
            Assignment.id,
            Assignment.title,
            Assignment.course_id,
            Assignment.type,
            Assignment.status,
            Assignment.due_date,
            Assignment.max_score,
            Course.title,
            Course.instructor_id,
        )
    )
    if course_id is not None:
        stmt = stmt.where(Assignment.course_id == course_id)
    if instructor_id is not None:
        stmt = stmt.where(Course.instructor_id == instructor_id)

    rows = []
    for r in db.execute(stmt).all():
        avg = round(float(r.average_score), 1) if r.average_score is not None else None
        rows.append(
            AssignmentStatsRow(
                id=r.id,
                title=r.title,
                course_id=r.course_id,
                course_title=r.course_title,
                instructor_id=r.instructor_id,
                type=r.type,
                status=r.status,
                due_date=r.due_date,
                max_score=r.max_score,
                total_submissions=int(r.total_submissions or 0),
                graded_submissions=int(r.graded_submissions or 0),
                pending_submissions=int(r.pending_submissions or 0),
                late_submissions=int(r.late_submissions or 0),
                average_score=avg,
                status_counts={s: int(getattr(r, f"n_{s}") or 0) for s in SUBMISSION_STATUSES},
            )
        )

    if sort == "title":
        rows.sort(key=lambda row: (row.title.lower(), row.id))
    elif sort == "submissions":
        rows.sort(key=lambda row: (-row.total_submissions, row.id))
    elif sort == "pending":
        rows.sort(key=lambda row: (-row.pending_submissions, row.id))
    else:
        rows.sort(key=lambda row: (row.due_date, row.id))
    return rows


def _progress_sort_key(sort: str):
    if sort == "status":
        return lambda row: (row.progress_status, row.student_email)
    if sort == "score":
        # highest first, unscored last
        return lambda row: (row.score is None, -(row.score or 0), row.student_email)
    if sort == "submitted":
        # newest first, never-submitted last
        return lambda row: (
            row.submitted_at is None,
            -(row.submitted_at.timestamp() if row.submitted_at else 0),
            row.student_email,
        )
    return lambda row: ((row.student_name or row.student_email).lower(), row.student_email)


def student_progress(
    db: Session,
    caller: Caller,
    assignment_id: int | None = None,
    course_id: int | None = None,
    student_id: int | None = None,
    status: str | None = None,
    search: str | None = None,
    sort: str = "name",
) -> list[StudentProgressRow]:
    if sort not in PROGRESS_SORT_OPTIONS:
        raise ValidationFailed("sort", f"sort must be one of {', '.join(PROGRESS_SORT_OPTIONS)}")
    if status is not None and status not in PROGRESS_STATUSES:
        raise ValidationFailed("status", f"status must be one of {', '.join(PROGRESS_STATUSES)}")

    # one row per actively enrolled student per published assignment
    stmt = (
        select(
            User.id.label("student_id"),
            User.full_name.label("student_name"),
            User.email.label("student_email"),
            Assignment.id.label("assignment_id"),
            Assignment.title.label("assignment_title"),
            Assignment.course_id,
            Assignment.due_date,
            Assignment.max_score,
            Course.instructor_id,
            Submission.id.label("submission_id"),
            Submission.status.label("submission_status"),
            Submission.score,
            Submission.submitted_at,
            Submission.graded_at,
        )
        .select_from(Enrollment)
        .join(User, User.id == Enrollment.user_id)
        .join(Assignment, Assignment.course_id == Enrollment.course_id)
        .join(Course, Course.id == Assignment.course_id)
        .outerjoin(
            Submission,
            and_(
                Submission.assignment_id == Assignment.id,
                Submission.user_id == User.id,
            ),
        )
        .where(
            User.role == "student",
            Enrollment.status == "active",
            Assignment.status == "published",
        )
    )
    if not is_admin(caller):
        stmt = stmt.where((User.id == caller.id) | (Course.instructor_id == caller.id))
    if assignment_id is not None:
        stmt = stmt.where(Assignment.id == assignment_id)
    if course_id is not None:
        stmt = stmt.where(Assignment.course_id == course_id)
    if student_id is not None:
        stmt = stmt.where(User.id == student_id)
    if search:
        pattern = f"%{search.lower()}%"
        stmt = stmt.where(
            func.lower(func.coalesce(User.full_name, "")).like(pattern)
            | func.lower(User.email).like(pattern)
        )

    rows = []
    for r in db.execute(stmt).all():
        derived = progress_status(r.submitted_at, r.due_date, r.score)
        if status is not None and derived != status:
            continue

        score = r.score
        own_row = r.student_id == caller.id and r.instructor_id != caller.id
        if own_row and not is_admin(caller) and r.submission_status != "returned":
            score = None

        rows.append(
            StudentProgressRow(
                student_id=r.student_id,
                student_name=r.student_name,
                student_email=r.student_email,
                assignment_id=r.assignment_id,
                assignment_title=r.assignment_title,
                course_id=r.course_id,
                due_date=r.due_date,
                max_score=r.max_score,
                submission_id=r.submission_id,
                submission_status=r.submission_status,
                score=score,
                submitted_at=r.submitted_at,
                graded_at=r.graded_at if score is not None else None,
                progress_status=derived,
            )
        )

    rows.sort(key=_progress_sort_key(sort))
    return rows
