from timed_assessment.db import Base
from sqlalchemy import String


"""
Assessments and Questions (read-only to the session core)
| Column | Type | Notes |
| :--- | :--- | :--- |
| `id` | UUID | Primary Key |
| `faculty_id` | UUID | FK -> users |
| `subject` | VARCHAR | |
| `unit` | VARCHAR | |
| `title` | VARCHAR | |
| `duration_minutes` | INTEGER | Snapshotted into each test session |

### Questions
| Column | Type | Notes |
| :--- | :--- | :--- |
| `assessment_id` | UUID | FK -> assessments |
| `type` | ENUM | objective / free_response |
| `options` | JSON | objective only |
| `correct_answer` | VARCHAR | objective only, never sent to students |
| `marks` | INTEGER | |
| `position` | INTEGER | To maintain sequence in the assessment |
"""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, JSON, Uuid, Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid
import enum


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class QuestionType(str, enum.Enum):
    OBJECTIVE = "objective"
    FREE_RESPONSE = "free_response"


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    faculty_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    subject = Column(String, nullable=True)
    unit = Column(String, nullable=True)
    title = Column(String, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=_utcnow)

    questions = relationship(
        "Question",
        back_populates="assessment",
        order_by="Question.position",
        passive_deletes=True,
    )


class Question(Base):
    __tablename__ = "questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    assessment_id = Column(Uuid, ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SAEnum(QuestionType, name="question_type"), nullable=False)
    question_text = Column(String, nullable=False)
    options = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    correct_answer = Column(String, nullable=True)
    marks = Column(Integer, nullable=False, default=1)
    position = Column(Integer, nullable=False, default=0)

    assessment = relationship("Assessment", back_populates="questions")
