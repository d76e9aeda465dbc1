from typing import List

from ..models.assessment_model import Assessment
from .timer_service import _to_naive_utc, format_time_display


def _assessment_to_read_dict(assessment: Assessment, question_count: int) -> dict:
    return {
        "id": assessment.id,
        "faculty_id": assessment.faculty_id,
        "subject": assessment.subject,
        "unit": assessment.unit,
        "title": assessment.title,
        "duration_minutes": assessment.duration_minutes,
        "question_count": question_count,
    }


def session_stats(sessions: List) -> dict:
    """Totals for a faculty view of one assessment's sessions.

    averageSubmissionTime is the mean of (submitted_at - started_at) over
    completed sessions, formatted like '1h 1m 5s', or '—' when none finished.
    """
    total = len(sessions)
    completed = [s for s in sessions if s.is_completed]
    submitted = [s for s in completed if s.submitted_at is not None]

    average = "—"
    if submitted:
        elapsed = sum(
            (_to_naive_utc(s.submitted_at) - _to_naive_utc(s.started_at)).total_seconds()
            for s in submitted
        )
        average = format_time_display(int(elapsed // len(submitted)))

    return {
        "total_sessions": total,
        "completed_sessions": len(completed),
        "pending_sessions": total - len(completed),
        "average_submission_time": average,
    }


def _session_to_dict(s, remaining_seconds: int) -> dict:
    return {
        "id": s.id,
        "assessment_id": s.assessment_id,
        "student_id": s.student_id,
        "started_at": s.started_at,
        "duration_minutes": s.duration_minutes,
        "submitted_at": s.submitted_at,
        "is_completed": s.is_completed,
        "remaining_seconds": remaining_seconds,
    }


def _submission_to_dict(sub) -> dict:
    return {
        "id": sub.id,
        "assessment_id": sub.assessment_id,
        "student_id": sub.student_id,
        "answers": sub.answers or {},
        "question_scores": sub.question_scores or {},
        "mcq_score": sub.mcq_score,
        "theory_score": sub.theory_score,
        "total_score": sub.total_score,
        "is_late": sub.is_late,
        "submitted_at": sub.submitted_at,
    }
