# filepath: backend/timed_assessment/routers/result_routers.py
from fastapi import APIRouter, Depends, HTTPException, status
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session
from ..models.user_model import UserRole
from ..security import current_active_user
from ..schemas.session_schema import SubmissionResult
from ..services.assessment_service import _submission_to_dict
from ..services.store import SubmissionStore

router = APIRouter()


@router.get('/submissions/{submission_id}', response_model=SubmissionResult)
async def get_submission(submission_id: UUID, session: AsyncSession = Depends(get_async_session), user = Depends(current_active_user)):
    """
    Results view for one submission.
    - Students may only read their own submission.
    - Faculty may read any submission.
    """
    submission = await SubmissionStore(session).get_by_id(submission_id)
    if not submission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Submission not found')

    if user.role != UserRole.FACULTY and submission.student_id != user.id:
        # same answer as a missing row so ids cannot be probed
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Submission not found')

    return _submission_to_dict(submission)
