from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from coursework.db.base_class import Base

SUBMISSION_STATUSES = ("pending", "submitted", "late", "graded", "returned")
# the owning student may still edit in these states
PRE_GRADING_STATUSES = ("pending", "submitted", "late")
GRADED_STATUSES = ("graded", "returned")


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    submitted_at = Column(DateTime(timezone=True), nullable=True, index=True)
    file_url = Column(Text, nullable=True)
    answer_text = Column(Text, nullable=True)

    # Grading fields (null until graded)
    score = Column(Integer, nullable=True)
    feedback = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending", server_default="pending", index=True)
    graded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("assignment_id", "user_id", name="submissions_unique_user_assignment"),
        CheckConstraint(
            "status IN ('pending', 'submitted', 'late', 'graded', 'returned')",
            name="submissions_status_check",
        ),
        CheckConstraint(
            "score IS NULL OR (score >= 0 AND score <= 100)",
            name="submissions_score_check",
        ),
    )

    assignment = relationship("Assignment", back_populates="submissions")
    user = relationship("User", back_populates="submissions", foreign_keys=[user_id])
    grader = relationship("User", foreign_keys=[graded_by])
