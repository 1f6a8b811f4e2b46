from fastapi import APIRouter, Depends, status
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from coursework.core.current_user import Caller, get_caller
from coursework.core.deps import commit_or_raise, get_db
from coursework.core.errors import NotFound, ValidationFailed
from coursework.core.permissions import ensure, is_admin, require_staff
from coursework.models.course import Course
from coursework.models.enrollment import Enrollment
from coursework.models.user import User
from coursework.schemas.course import CourseCreate, CourseRead

router = APIRouter()


@router.get("", response_model=list[CourseRead])
def list_courses(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return db.query(Course).order_by(Course.id.asc()).all()


@router.post("", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    instructor_id = caller.id
    if payload.instructor_id is not None and payload.instructor_id != caller.id:
        ensure(is_admin(caller), caller, "create courses for another instructor")
        instructor = db.get(User, payload.instructor_id)
        if instructor is None:
            raise NotFound("User", payload.instructor_id)
        if instructor.role not in ("teacher", "admin"):
            raise ValidationFailed("instructor_id", "instructor must be a teacher or admin")
        instructor_id = instructor.id

    course = Course(
        title=payload.title,
        description=payload.description,
        instructor_id=instructor_id,
    )
    db.add(course)
    commit_or_raise(db)
    db.refresh(course)
    return course


@router.get("/me", response_model=list[CourseRead])
def my_courses(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    """Courses the caller teaches or is actively enrolled in."""
    return (
        db.query(Course)
        .outerjoin(
            Enrollment,
            and_(
                Enrollment.course_id == Course.id,
                Enrollment.user_id == caller.id,
                Enrollment.status == "active",
            ),
        )
        .filter(or_(Course.instructor_id == caller.id, Enrollment.id.is_not(None)))
        .order_by(Course.id.asc())
        .all()
    )
