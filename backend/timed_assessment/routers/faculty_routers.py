from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession


from ..db import get_async_session
from ..models.assessment_model import Assessment, Question, QuestionType
from ..schemas.assessment_schema import AssessmentCreate, AssessmentRead
from ..schemas.session_schema import SessionRead, SessionStats
from ..services.assessment_service import _assessment_to_read_dict, _session_to_dict, session_stats
from ..services.store import AssessmentSource, SessionStore
from ..services.timer_service import TimerReconciler
from ..dependencies import current_faculty, get_clock

router = APIRouter(prefix="/assessments", tags=["Faculty"])


@router.post("/", response_model=AssessmentRead, status_code=status.HTTP_201_CREATED)
async def create_assessment(payload: AssessmentCreate, session: AsyncSession = Depends(get_async_session), user = Depends(current_faculty)):
    # create assessment and its questions in the order provided
    assessment = Assessment(
        faculty_id=user.id,
        subject=payload.subject,
        unit=payload.unit,
        title=payload.title,
        duration_minutes=payload.duration_minutes,
    )
    session.add(assessment)
    await session.flush()

    for idx, q in enumerate(payload.questions):
        objective = q.type.value == QuestionType.OBJECTIVE.value
        session.add(Question(
            assessment_id=assessment.id,
            type=QuestionType(q.type.value),
            question_text=q.question_text,
            options=q.options if objective else None,
            correct_answer=q.correct_answer if objective else None,
            marks=q.marks,
            position=idx,
        ))

    await session.commit()
    await session.refresh(assessment)
    return _assessment_to_read_dict(assessment, len(payload.questions))


async def _require_assessment(session: AsyncSession, assessment_id: UUID):
    assessment = await AssessmentSource(session).get_assessment(assessment_id)
    if not assessment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assessment not found")
    return assessment


@router.get("/{assessment_id}/sessions", response_model=List[SessionRead], dependencies=[Depends(current_faculty)])
async def list_assessment_sessions(assessment_id: UUID, session: AsyncSession = Depends(get_async_session), clock = Depends(get_clock)):
    await _require_assessment(session, assessment_id)
    timer = TimerReconciler(clock)
    rows = await SessionStore(session).list_for_assessment(assessment_id)
    return [_session_to_dict(r, 0 if r.is_completed else timer.remaining_seconds(r)) for r in rows]


# declared before /{student_id} so "stats" is not parsed as a UUID
@router.get("/{assessment_id}/sessions/stats", response_model=SessionStats, dependencies=[Depends(current_faculty)])
async def assessment_session_stats(assessment_id: UUID, session: AsyncSession = Depends(get_async_session)):
    await _require_assessment(session, assessment_id)
    rows = await SessionStore(session).list_for_assessment(assessment_id)
    return session_stats(rows)


@router.get("/{assessment_id}/sessions/{student_id}", response_model=SessionRead, dependencies=[Depends(current_faculty)])
async def get_student_session(assessment_id: UUID, student_id: UUID, session: AsyncSession = Depends(get_async_session), clock = Depends(get_clock)):
    existing = await SessionStore(session).get(assessment_id, student_id)
    if not existing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    remaining = 0 if existing.is_completed else TimerReconciler(clock).remaining_seconds(existing)
    return _session_to_dict(existing, remaining)
