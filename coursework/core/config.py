import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

DATABASE_URL = os.getenv("COURSEWORK_DATABASE_URL", f"sqlite:///{BASE_DIR}/coursework.db")

# DEV default only: set COURSEWORK_SECRET_KEY in any shared deployment.
SECRET_KEY = os.getenv("COURSEWORK_SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("COURSEWORK_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE = timedelta(minutes=int(os.getenv("COURSEWORK_TOKEN_MINUTES", "60")))

LOG_LEVEL = os.getenv("COURSEWORK_LOG_LEVEL", "INFO")

# Roles
ROLE_STUDENT = "student"
ROLE_TEACHER = "teacher"
ROLE_ADMIN = "admin"
ROLES = (ROLE_STUDENT, ROLE_TEACHER, ROLE_ADMIN)

# Grades are stored on a percentage scale regardless of max_score
SCORE_MIN = 0
SCORE_MAX = 100
