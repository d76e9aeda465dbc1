import asyncio
import logging
from typing import Any, Dict, List

from .. import config
from ..errors import NotFound, PersistenceFailure
from ..models.session_model import TestSession
from ..models.submission_model import Submission
from .grading_service import grade_submission
from .store import AssessmentSource, InsertOutcome, SessionStore, SubmissionStore
from .timer_service import Clock, TimerReconciler, utc_now

logger = logging.getLogger(__name__)


def _clean_answers(answers: Dict[Any, Any] | None) -> Dict[str, str]:
    # JSON keys must be strings; answers are stored as text
    safe_answers = {}
    for k, v in (answers or {}).items():
        if v is None:
            continue
        safe_answers[str(k)] = v if isinstance(v, str) else str(v)
    return safe_answers


async def load_attempt(assessments: AssessmentSource, sessions: SessionStore, assessment_id, student_id):
    """Fetch the session, assessment and ordered questions a submit needs."""
    existing = await sessions.get(assessment_id, student_id)
    if existing is None:
        raise NotFound("Session not found")
    assessment = await assessments.get_assessment(assessment_id)
    if assessment is None:
        raise NotFound("Assessment not found")
    questions = await assessments.get_questions(assessment_id)
    return existing, assessment, questions


class SubmissionCoordinator:
    """Grades a session and closes it.

    Manual submit and expiry auto-submit both come through submit(). The
    submission row is written first, then the session is marked completed;
    the completion write is retried because a stored submission against an
    open session would let a second submit through.
    """

    def __init__(
        self,
        sessions: SessionStore,
        submissions: SubmissionStore,
        clock: Clock = utc_now,
        completion_attempts: int | None = None,
        retry_delay: float | None = None,
        grace_seconds: int | None = None,
    ):
        self.sessions = sessions
        self.submissions = submissions
        self.clock = clock
        self.timer = TimerReconciler(clock)
        self.completion_attempts = completion_attempts if completion_attempts is not None else config.SUBMIT_COMPLETION_ATTEMPTS
        self.retry_delay = retry_delay if retry_delay is not None else config.SUBMIT_RETRY_DELAY_SECONDS
        self.grace_seconds = grace_seconds if grace_seconds is not None else config.SUBMIT_GRACE_SECONDS

    async def submit(self, session: TestSession, assessment, questions: List[Any], answers: Dict[str, Any]) -> Submission:
        # a rollback inside the store expires loaded rows, so read what we need up front
        session_id = session.id
        assessment_id = session.assessment_id
        student_id = session.student_id

        if session.is_completed:
            existing = await self.submissions.get(assessment_id, student_id)
            if existing is None:
                logger.error("Completed session %s has no submission", session_id)
                raise PersistenceFailure("Completed session has no submission on file")
            logger.info("Session %s already completed, returning submission %s", session_id, existing.id)
            return existing

        now = self.clock()
        late_by = self.timer.seconds_past_expiry(session)
        if late_by > 0:
            logger.info("Session %s submitted %.0fs after expiry", session_id, late_by)

        safe_answers = _clean_answers(answers)
        result = grade_submission(safe_answers, questions)
        logger.info(
            "Grading session %s for '%s': %s/%s marks, total_score=%s",
            session_id, getattr(assessment, "title", assessment_id), result.mcq_score, result.total_marks, result.total_score,
        )

        submission = Submission(
            assessment_id=assessment_id,
            student_id=student_id,
            answers=safe_answers,
            question_scores=result.question_scores,
            mcq_score=result.mcq_score,
            theory_score=None,
            total_score=result.total_score,
            is_late=late_by > self.grace_seconds,
            submitted_at=now,
        )
        outcome = await self.submissions.insert(submission)
        if outcome is InsertOutcome.ALREADY_EXISTS:
            # a competing submit for this session got there first
            submission = await self.submissions.get(assessment_id, student_id)
            if submission is None:
                raise PersistenceFailure("Failed to create or retrieve submission")
            logger.warning("Duplicate submit for session %s, using submission %s", session_id, submission.id)

        # the session closes at the stored submission's time, which is not ours when we lost the race
        submitted_at = submission.submitted_at
        await self._complete(session_id, submission.id, submitted_at)
        await self.sessions.refresh(session)
        await self.submissions.refresh(submission)
        return submission

    async def _complete(self, session_id, submission_id, submitted_at):
        last_error = None
        for attempt in range(1, self.completion_attempts + 1):
            try:
                flipped = await self.sessions.mark_completed(session_id, submitted_at)
            except PersistenceFailure as e:
                last_error = e
                logger.warning(
                    "Marking session %s completed failed (attempt %d/%d): %s",
                    session_id, attempt, self.completion_attempts, e,
                )
                if attempt < self.completion_attempts:
                    await asyncio.sleep(self.retry_delay)
                continue
            if not flipped:
                logger.info("Session %s was already marked completed", session_id)
            return

        logger.error("Submission %s stored but session %s is still open", submission_id, session_id)
        raise PersistenceFailure(
            "Submission saved but the session could not be closed",
            submission_id=submission_id,
        ) from last_error
