from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

AssignmentType = Literal["quiz", "assignment", "exam"]
AssignmentStatus = Literal["draft", "published", "archived"]


class AssignmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    type: AssignmentType = "assignment"
    due_date: datetime
    max_score: int = Field(default=100, gt=0)
    instructions: Optional[str] = None
    quiz_id: Optional[int] = None
    status: AssignmentStatus = "draft"


class AssignmentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[AssignmentType] = None
    due_date: Optional[datetime] = None
    max_score: Optional[int] = Field(default=None, gt=0)
    instructions: Optional[str] = None
    quiz_id: Optional[int] = None
    status: Optional[AssignmentStatus] = None


class AssignmentRead(BaseModel):
    id: int
    course_id: int
    quiz_id: Optional[int]
    title: str
    description: Optional[str]
    type: str
    due_date: datetime
    max_score: int
    instructions: Optional[str]
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
