from pydantic import BaseModel
from typing import Optional, Dict, List
from uuid import UUID
from datetime import datetime

from .question_schema import QuestionPublic


class AccessDecisionRead(BaseModel):
    allowed: bool
    reason: str


class SessionRead(BaseModel):
    id: UUID
    assessment_id: UUID
    student_id: UUID
    started_at: datetime
    duration_minutes: int
    submitted_at: Optional[datetime] = None
    is_completed: bool
    remaining_seconds: int


class SessionCreateResponse(SessionRead):
    questions: List[QuestionPublic] = []


class TimerStatus(BaseModel):
    session_id: UUID
    remaining_seconds: int
    is_expired: bool
    is_completed: bool
    expires_at: datetime
    server_time: datetime


class SubmitPayload(BaseModel):
    # question_id -> answer text; total_score is never accepted from a client
    answers: Optional[Dict[str, Optional[str]]] = None


class SubmitResponse(BaseModel):
    submission_id: UUID
    mcq_score: float
    total_score: int
    is_late: bool


class SubmissionResult(BaseModel):
    id: UUID
    assessment_id: UUID
    student_id: UUID
    answers: Dict[str, str]
    question_scores: Dict[str, Optional[float]]
    mcq_score: float
    theory_score: Optional[float]
    total_score: int
    is_late: bool
    submitted_at: datetime


class SessionStats(BaseModel):
    total_sessions: int
    completed_sessions: int
    pending_sessions: int
    average_submission_time: str
