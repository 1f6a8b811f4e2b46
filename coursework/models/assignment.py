from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from coursework.db.base_class import Base

ASSIGNMENT_TYPES = ("quiz", "assignment", "exam")
ASSIGNMENT_STATUSES = ("draft", "published", "archived")


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    # quizzes live outside this service; the id is an opaque link
    quiz_id = Column(Integer, nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default="assignment", server_default="assignment", index=True)
    due_date = Column(DateTime(timezone=True), nullable=False, index=True)
    max_score = Column(Integer, nullable=False, default=100, server_default="100")
    instructions = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="draft", server_default="draft", index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("type IN ('quiz', 'assignment', 'exam')", name="assignments_type_check"),
        CheckConstraint("status IN ('draft', 'published', 'archived')", name="assignments_status_check"),
        CheckConstraint("max_score > 0", name="assignments_max_score_check"),
    )

    course = relationship("Course", back_populates="assignments")

    submissions = relationship(
        "Submission",
        back_populates="assignment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
