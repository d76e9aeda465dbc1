from pydantic import BaseModel, field_validator
from typing import Optional, List
from uuid import UUID

from .question_schema import QuestionData


class AssessmentCreate(BaseModel):
    title: str
    subject: Optional[str] = None
    unit: Optional[str] = None
    duration_minutes: int
    # The order in the list defines the question order
    questions: List[QuestionData] = []

    @field_validator("duration_minutes")
    @classmethod
    def duration_must_be_positive(cls, v):
        if v is None or v <= 0:
            raise ValueError("duration_minutes must be a positive integer (minutes)")
        return v


class AssessmentRead(BaseModel):
    id: UUID
    faculty_id: Optional[UUID] = None
    subject: Optional[str] = None
    unit: Optional[str] = None
    title: str
    duration_minutes: int
    question_count: int = 0
