from typing import List, Optional
from uuid import UUID
from datetime import datetime
import enum
import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import PersistenceFailure
from ..models.assessment_model import Assessment, Question
from ..models.session_model import TestSession
from ..models.submission_model import Submission

logger = logging.getLogger(__name__)


class InsertOutcome(str, enum.Enum):
    INSERTED = "inserted"
    # the unique (assessment_id, student_id) key is already taken
    ALREADY_EXISTS = "already_exists"


class AssessmentSource:
    """Read-only access to assessments and their questions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_assessment(self, assessment_id) -> Optional[Assessment]:
        res = await self.session.execute(select(Assessment).where(Assessment.id == assessment_id))
        return res.scalar_one_or_none()

    async def get_questions(self, assessment_id) -> List[Question]:
        stmt = select(Question).where(Question.assessment_id == assessment_id).order_by(Question.position)
        res = await self.session.execute(stmt)
        return list(res.scalars().all())


async def _insert(session: AsyncSession, row, what: str, key_taken) -> InsertOutcome:
    # key_taken: coroutine function that checks whether a row already holds the unique key
    session.add(row)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        if await key_taken():
            return InsertOutcome.ALREADY_EXISTS
        # foreign key, NOT NULL and the like: nothing to re-read
        logger.exception("Integrity error while inserting %s: %s", what, e)
        raise PersistenceFailure(f"Database error while saving {what}") from e
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("DB error while inserting %s: %s", what, e)
        raise PersistenceFailure(f"Database error while saving {what}") from e
    await session.refresh(row)
    return InsertOutcome.INSERTED


class SessionStore:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, assessment_id, student_id) -> Optional[TestSession]:
        try:
            res = await self.session.execute(
                select(TestSession).where(TestSession.assessment_id == assessment_id, TestSession.student_id == student_id)
            )
            return res.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.exception("DB error while reading session for assessment_id=%s student_id=%s", assessment_id, student_id)
            raise PersistenceFailure("Database error while reading session") from e

    async def insert(self, row: TestSession) -> InsertOutcome:
        # read the key before the commit; a rollback expires the row
        assessment_id, student_id = row.assessment_id, row.student_id

        async def key_taken():
            return await self.get(assessment_id, student_id) is not None

        return await _insert(self.session, row, "test session", key_taken)

    async def refresh(self, row: TestSession):
        await self.session.refresh(row)

    async def mark_completed(self, session_id, submitted_at: datetime) -> bool:
        """Flip is_completed once. Returns False when it was already set."""
        stmt = (
            update(TestSession)
            .where(TestSession.id == session_id, TestSession.is_completed == False)  # noqa: E712
            .values(is_completed=True, submitted_at=submitted_at)
        )
        try:
            res = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceFailure("Database error while completing session") from e
        return res.rowcount == 1

    async def list_for_assessment(self, assessment_id) -> List[TestSession]:
        stmt = select(TestSession).where(TestSession.assessment_id == assessment_id).order_by(TestSession.created_at.desc())
        res = await self.session.execute(stmt)
        return list(res.scalars().all())

    async def list_for_student(self, student_id) -> List[TestSession]:
        stmt = select(TestSession).where(TestSession.student_id == student_id).order_by(TestSession.created_at.desc())
        res = await self.session.execute(stmt)
        return list(res.scalars().all())


class SubmissionStore:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, assessment_id, student_id) -> Optional[Submission]:
        res = await self.session.execute(
            select(Submission).where(Submission.assessment_id == assessment_id, Submission.student_id == student_id)
        )
        return res.scalar_one_or_none()

    async def get_by_id(self, submission_id: UUID) -> Optional[Submission]:
        res = await self.session.execute(select(Submission).where(Submission.id == submission_id))
        return res.scalar_one_or_none()

    async def insert(self, row: Submission) -> InsertOutcome:
        assessment_id, student_id = row.assessment_id, row.student_id

        async def key_taken():
            return await self.get(assessment_id, student_id) is not None

        return await _insert(self.session, row, "submission", key_taken)

    async def refresh(self, row: Submission):
        await self.session.refresh(row)
