import logging

from ..errors import PersistenceFailure
from ..models.assessment_model import Question
from ..models.session_model import TestSession
from .store import InsertOutcome, SessionStore
from .timer_service import Clock, utc_now

logger = logging.getLogger(__name__)


class SessionManager:
    """Creates or returns the single TestSession for an (assessment, student) pair.

    The unique constraint on the table decides who created the row first. A
    caller that loses that race re-reads and returns the winner's row, so all
    concurrent callers see the same started_at.
    """

    def __init__(self, store: SessionStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    async def get_or_create(self, assessment_id, principal, duration_minutes: int) -> TestSession:
        student_id = principal.id

        existing = await self.store.get(assessment_id, student_id)
        if existing is not None:
            if not existing.is_completed:
                logger.info("Resuming test session %s for student_id=%s", existing.id, student_id)
            return existing

        new_session = TestSession(
            assessment_id=assessment_id,
            student_id=student_id,
            started_at=self.clock(),
            duration_minutes=duration_minutes,
            is_completed=False,
        )
        outcome = await self.store.insert(new_session)
        if outcome is InsertOutcome.INSERTED:
            logger.info("Created test session %s for assessment_id=%s student_id=%s", new_session.id, assessment_id, student_id)
            return new_session

        # concurrent first access: another request inserted the row
        logger.warning("Race lost creating session for assessment_id=%s student_id=%s, re-reading", assessment_id, student_id)
        winner = await self.store.get(assessment_id, student_id)
        if winner is None:
            raise PersistenceFailure("Failed to create or retrieve test session")
        return winner


def _sanitize_question(q: Question):
    # remove correct_answer field to prevent leaking
    return {
        'id': q.id,
        'type': getattr(q.type, 'value', q.type),
        'question_text': q.question_text,
        'options': q.options,
        'marks': q.marks,
    }
