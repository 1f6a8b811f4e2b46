import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

TEST_DB_FILE = "test_coursework.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# must be set before coursework.db.session builds its engine
os.environ["COURSEWORK_DATABASE_URL"] = TEST_DB_URL

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from coursework.core.current_user import Caller  # noqa: E402
from coursework.core.deps import get_db  # noqa: E402
from coursework.core.security import create_access_token, hash_password  # noqa: E402
from coursework.db.base import Base  # noqa: E402
from coursework.db.session import SessionLocal, engine  # noqa: E402
from coursework.main import app  # noqa: E402
from coursework.models.assignment import Assignment  # noqa: E402
from coursework.models.course import Course  # noqa: E402
from coursework.models.enrollment import Enrollment  # noqa: E402
from coursework.models.submission import Submission  # noqa: E402
from coursework.models.user import User  # noqa: E402

TestingSessionLocal = SessionLocal

PASSWORD = "password123"
# hashing is slow on purpose; do it once for every seeded user
PASSWORD_HASH = hash_password(PASSWORD)

PAST_DUE = datetime(2025, 1, 10, tzinfo=timezone.utc)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed():
    """Seed a clean dataset for each test and return the ids."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        db.query(Submission).delete()
        db.query(Assignment).delete()
        db.query(Enrollment).delete()
        db.query(Course).delete()
        db.query(User).delete()
        db.commit()

        def user(email, full_name, role):
            u = User(email=email, full_name=full_name, role=role, hashed_password=PASSWORD_HASH)
            db.add(u)
            return u

        student = user("student1@example.com", "Student One", "student")
        outsider = user("student2@example.com", "Student Two", "student")
        dropped = user("student3@example.com", "Student Three", "student")
        teacher = user("teacher1@example.com", "Teacher One", "teacher")
        other_teacher = user("teacher2@example.com", "Teacher Two", "teacher")
        admin = user("admin@example.com", "Admin", "admin")
        db.commit()

        course = Course(title="CS5004", instructor_id=teacher.id)
        other_course = Course(title="MATH101", instructor_id=other_teacher.id)
        db.add_all([course, other_course])
        db.commit()

        db.add_all(
            [
                Enrollment(course_id=course.id, user_id=student.id, status="active"),
                Enrollment(course_id=course.id, user_id=dropped.id, status="inactive"),
            ]
        )

        now = datetime.now(timezone.utc)
        hw1 = Assignment(
            course_id=course.id,
            title="HW1",
            type="assignment",
            due_date=now + timedelta(days=1),
            max_score=100,
            status="published",
        )
        draft = Assignment(
            course_id=course.id,
            title="Midterm",
            type="exam",
            due_date=now + timedelta(days=7),
            max_score=50,
            status="draft",
        )
        past = Assignment(
            course_id=course.id,
            title="Essay",
            type="assignment",
            due_date=PAST_DUE,
            max_score=20,
            status="published",
        )
        other = Assignment(
            course_id=other_course.id,
            title="Algebra quiz",
            type="quiz",
            due_date=now + timedelta(days=3),
            max_score=10,
            status="published",
        )
        db.add_all([hw1, draft, past, other])
        db.commit()

        yield SimpleNamespace(
            student=student.id,
            outsider=outsider.id,
            dropped=dropped.id,
            teacher=teacher.id,
            other_teacher=other_teacher.id,
            admin=admin.id,
            course=course.id,
            other_course=other_course.id,
            hw1=hw1.id,
            draft=draft.id,
            past=past.id,
            other=other.id,
        )
    finally:
        db.close()


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client():
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def caller_for(db, user_id: int) -> Caller:
    return Caller.from_user(db.get(User, user_id))


def auth_header(user_id: int) -> dict:
    token = create_access_token(data={"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}
