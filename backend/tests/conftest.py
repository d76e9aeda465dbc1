import asyncio
import uuid
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from timed_assessment.db import create_db_and_tables
from timed_assessment.models.assessment_model import Assessment, Question, QuestionType
from timed_assessment.models.user_model import UserRole


T0 = datetime(2025, 3, 1, 9, 0, 0)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_maker(tmp_path):
    # a file database so concurrent sessions get their own connections
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(create_db_and_tables(engine))
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


class FailingCommitSession(AsyncSession):
    """AsyncSession whose commits fail once `healthy_commits` have gone through."""

    def __init__(self, *args, healthy_commits=0, **kwargs):
        super().__init__(*args, **kwargs)
        self.healthy_commits = healthy_commits

    async def commit(self):
        if self.healthy_commits <= 0:
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))
        self.healthy_commits -= 1
        await super().commit()


def failing_session(session_maker, healthy_commits=0):
    return FailingCommitSession(bind=session_maker.kw["bind"], expire_on_commit=False, healthy_commits=healthy_commits)


def make_student():
    return SimpleNamespace(id=uuid.uuid4(), role=UserRole.STUDENT, is_active=True)


def make_faculty():
    return SimpleNamespace(id=uuid.uuid4(), role=UserRole.FACULTY, is_active=True)


@pytest.fixture
def student():
    return make_student()


async def add_assessment(session_maker, duration_minutes=10, questions=None):
    """Insert an assessment with (type, correct_answer, marks) question specs."""
    if questions is None:
        questions = [
            (QuestionType.OBJECTIVE, "4", 1),
            (QuestionType.OBJECTIVE, "Paris", 1),
            (QuestionType.FREE_RESPONSE, None, 3),
        ]
    async with session_maker() as db:
        assessment = Assessment(title="Unit test", subject="Maths", unit="1", duration_minutes=duration_minutes)
        db.add(assessment)
        await db.flush()
        for idx, (qtype, correct, marks) in enumerate(questions):
            db.add(Question(
                assessment_id=assessment.id,
                type=qtype,
                question_text=f"Question {idx + 1}",
                options=[correct, "other"] if qtype == QuestionType.OBJECTIVE else None,
                correct_answer=correct,
                marks=marks,
                position=idx,
            ))
        await db.commit()
        return assessment.id
