import logging

from fastapi import FastAPI

from coursework.core.config import LOG_LEVEL
from coursework.core.errors import register_error_handlers
from coursework.core.logging_middleware import LoggingMiddleware
from coursework.db.init_db import init_db
from coursework.routers.admin import router as admin_router
from coursework.routers.assignments import router as assignments_router
from coursework.routers.auth import router as auth_router
from coursework.routers.courses import router as courses_router
from coursework.routers.enrollments import router as enrollments_router
from coursework.routers.submissions import router as submissions_router
from coursework.routers.views import router as views_router

logging.basicConfig(level=LOG_LEVEL)

app = FastAPI(title="Coursework")

# Middleware
app.add_middleware(LoggingMiddleware)

# Error taxonomy -> HTTP responses
register_error_handlers(app)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])
app.include_router(courses_router, prefix="/courses", tags=["courses"])
app.include_router(enrollments_router, prefix="/enrollments", tags=["enrollments"])
app.include_router(assignments_router, tags=["assignments"])
app.include_router(submissions_router, tags=["submissions"])
app.include_router(views_router, prefix="/views", tags=["views"])
