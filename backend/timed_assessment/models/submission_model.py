from timed_assessment.db import Base
from sqlalchemy import Column, Integer, Float, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
import uuid
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Submission(Base):
    __tablename__ = "submissions"
    # one submission per session; a second insert for the pair is how a
    # duplicate submit is detected
    __table_args__ = (UniqueConstraint("assessment_id", "student_id", name="uq_submission_assessment_student"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    assessment_id = Column(Uuid, ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid, ForeignKey("users.id"), nullable=False)

    answers = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    question_scores = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True, default=dict)
    mcq_score = Column(Float, nullable=False, default=0)
    # null until free-response answers are marked by a person
    theory_score = Column(Float, nullable=True)
    total_score = Column(Integer, nullable=False, default=0)
    is_late = Column(Boolean, nullable=False, default=False)
    submitted_at = Column(DateTime, nullable=False, default=_utcnow)
