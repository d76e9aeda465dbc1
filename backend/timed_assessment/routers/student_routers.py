from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..db import get_async_session
from ..dependencies import current_student, get_clock
from ..errors import AccessDenied, AssessmentError, AuthenticationRequired, NotFound, PersistenceFailure
from ..security import current_optional_user

logger = logging.getLogger(__name__)


from ..schemas.session_schema import (
    AccessDecisionRead, SessionCreateResponse, SessionRead, SubmitPayload, SubmitResponse, TimerStatus,
)
from ..services.access_service import AccessValidator
from ..services.assessment_service import _session_to_dict
from ..services.session_service import SessionManager, _sanitize_question
from ..services.store import AssessmentSource, SessionStore, SubmissionStore
from ..services.submission_service import SubmissionCoordinator, load_attempt
from ..services.timer_service import TimerReconciler

router = APIRouter()


def _http_error(e: AssessmentError, failure_detail) -> HTTPException:
    # map core errors onto status codes
    if isinstance(e, AuthenticationRequired):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    if isinstance(e, NotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, AccessDenied):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.reason)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_detail)


@router.get("/assessments/{assessment_id}/access", response_model=AccessDecisionRead)
async def check_access(assessment_id: UUID, user = Depends(current_optional_user), session: AsyncSession = Depends(get_async_session)):
    decision = await AccessValidator(AssessmentSource(session), SessionStore(session)).validate(assessment_id, user)
    return {'allowed': decision.allowed, 'reason': decision.reason}


@router.post("/assessments/{assessment_id}/session", response_model=SessionCreateResponse)
async def start_session(assessment_id: UUID, user = Depends(current_student), session: AsyncSession = Depends(get_async_session), clock = Depends(get_clock)):
    assessments = AssessmentSource(session)
    sessions = SessionStore(session)

    try:
        await AccessValidator(assessments, sessions).require(assessment_id, user)

        assessment = await assessments.get_assessment(assessment_id)
        if assessment is None:
            raise NotFound("Assessment not found")
        duration = assessment.duration_minutes

        # fetch questions (without correct_answer) before the insert; a lost race rolls back and expires loaded rows
        questions = await assessments.get_questions(assessment_id)
        sanitized_questions = [_sanitize_question(q) for q in questions]

        test_session = await SessionManager(sessions, clock).get_or_create(assessment_id, user, duration)
    except PersistenceFailure as e:
        logger.exception("Failed to create session for assessment_id=%s: %s", str(assessment_id), e)
        raise _http_error(e, "Failed to create or retrieve test session")
    except AssessmentError as e:
        raise _http_error(e, "Failed to create or retrieve test session")

    timer = TimerReconciler(clock)
    out = _session_to_dict(test_session, timer.remaining_seconds(test_session))
    out['questions'] = sanitized_questions
    return out


@router.get("/assessments/{assessment_id}/session/timer", response_model=TimerStatus)
async def session_timer(assessment_id: UUID, user = Depends(current_student), session: AsyncSession = Depends(get_async_session), clock = Depends(get_clock)):
    existing = await SessionStore(session).get(assessment_id, user.id)
    if not existing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")

    timer = TimerReconciler(clock)
    return {
        'session_id': existing.id,
        'remaining_seconds': timer.remaining_seconds(existing),
        'is_expired': timer.is_expired(existing),
        'is_completed': existing.is_completed,
        'expires_at': timer.expires_at(existing),
        'server_time': clock(),
    }


@router.post("/assessments/{assessment_id}/submit", response_model=SubmitResponse)
async def submit_assessment(assessment_id: UUID, payload: SubmitPayload, user = Depends(current_student), session: AsyncSession = Depends(get_async_session), clock = Depends(get_clock)):
    student_id = user.id
    failure_detail = {'message': "Submission failed, please retry"}
    try:
        sessions = SessionStore(session)
        existing, assessment, questions = await load_attempt(AssessmentSource(session), sessions, assessment_id, student_id)

        coordinator = SubmissionCoordinator(sessions, SubmissionStore(session), clock)
        submission = await coordinator.submit(existing, assessment, questions, payload.answers or {})

        return {
            'submission_id': submission.id,
            'mcq_score': submission.mcq_score,
            'total_score': submission.total_score,
            'is_late': submission.is_late,
        }
    except PersistenceFailure as e:
        logger.exception("Error while submitting session for assessment_id=%s student_id=%s: %s", str(assessment_id), str(student_id), e)
        if e.submission_id is not None:
            failure_detail['submission_id'] = str(e.submission_id)
        raise _http_error(e, failure_detail)
    except AssessmentError as e:
        raise _http_error(e, failure_detail)
    except Exception as e:
        logger.exception("Error while submitting session for assessment_id=%s student_id=%s: %s", str(assessment_id), str(student_id), e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_detail)


@router.get("/student/sessions", response_model=List[SessionRead])
async def my_sessions(user = Depends(current_student), session: AsyncSession = Depends(get_async_session), clock = Depends(get_clock)):
    timer = TimerReconciler(clock)
    rows = await SessionStore(session).list_for_student(user.id)
    return [_session_to_dict(r, 0 if r.is_completed else timer.remaining_seconds(r)) for r in rows]
