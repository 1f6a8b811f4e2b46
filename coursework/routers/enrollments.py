import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from coursework.core.current_user import Caller, get_caller
from coursework.core.deps import commit_or_raise, get_db
from coursework.core.errors import NotFound
from coursework.core.permissions import can_manage_course, ensure
from coursework.models.course import Course
from coursework.models.enrollment import Enrollment
from coursework.schemas.enrollment import EnrollmentCreate, EnrollmentOut, EnrollmentStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def enroll_me(
    payload: EnrollmentCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    course = db.get(Course, payload.course_id)
    if not course:
        raise NotFound("Course", payload.course_id)

    enrollment = Enrollment(user_id=caller.id, course_id=course.id, status="active")
    db.add(enrollment)
    commit_or_raise(db, unique_field="user_id,course_id")

    db.refresh(enrollment)
    return enrollment


@router.get("/me", response_model=list[EnrollmentOut])
def my_enrollments(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return db.query(Enrollment).filter(Enrollment.user_id == caller.id).all()


@router.patch("/{enrollment_id}", response_model=EnrollmentOut)
def set_enrollment_status(
    enrollment_id: int,
    payload: EnrollmentStatusUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    enrollment = db.get(Enrollment, enrollment_id)
    if enrollment is None:
        raise NotFound("Enrollment", enrollment_id)

    course = db.get(Course, enrollment.course_id)
    # students may leave a course on their own; anything else is staff only
    own_withdrawal = enrollment.user_id == caller.id and payload.status == "inactive"
    ensure(own_withdrawal or can_manage_course(caller, course), caller, "change this enrollment")

    enrollment.status = payload.status
    commit_or_raise(db)
    db.refresh(enrollment)

    logger.info("enrollment %s set to %s by user %s", enrollment.id, enrollment.status, caller.id)
    return enrollment
