from timed_assessment.db import Base
from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, Uuid, event, inspect
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TestSession(Base):
    """One student's attempt window for one assessment.

    started_at and duration_minutes are fixed when the row is inserted; the
    assessment's duration is copied in so later edits to the assessment do not
    move the expiry of an attempt already running.
    """
    __tablename__ = "test_sessions"
    __table_args__ = (UniqueConstraint("assessment_id", "student_id", name="uq_test_session_assessment_student"),)
    __test__ = False  # not a pytest class

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    assessment_id = Column(Uuid, ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid, ForeignKey("users.id"), nullable=False)

    started_at = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    submitted_at = Column(DateTime, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=_utcnow)

    assessment = relationship("Assessment")


IMMUTABLE_COLUMNS = ("started_at", "duration_minutes")


@event.listens_for(TestSession, "before_update")
def _reject_window_changes(mapper, connection, target):
    state = inspect(target)
    for name in IMMUTABLE_COLUMNS:
        if state.attrs[name].history.has_changes():
            raise ValueError(f"TestSession.{name} cannot be changed once the session exists")
