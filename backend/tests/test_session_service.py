import asyncio
import uuid

import pytest
from sqlalchemy import func, select

from timed_assessment.errors import PersistenceFailure
from timed_assessment.models.session_model import TestSession
from timed_assessment.services.session_service import SessionManager
from timed_assessment.services.store import InsertOutcome, SessionStore

from conftest import T0, add_assessment, failing_session


class RecordingStore(SessionStore):
    """SessionStore that records insert outcomes and can hide the first read."""

    def __init__(self, session, miss_first_read=False):
        super().__init__(session)
        self.outcomes = []
        self.miss_first_read = miss_first_read

    async def get(self, assessment_id, student_id):
        if self.miss_first_read:
            # behave as if the competing insert had not landed yet
            self.miss_first_read = False
            return None
        return await super().get(assessment_id, student_id)

    async def insert(self, row):
        outcome = await super().insert(row)
        self.outcomes.append(outcome)
        return outcome


async def _count_sessions(session_maker, assessment_id):
    async with session_maker() as db:
        res = await db.execute(select(func.count()).select_from(TestSession).where(TestSession.assessment_id == assessment_id))
        return res.scalar_one()


def test_creates_session_with_snapshotted_duration(session_maker, student, clock):
    async def run():
        assessment_id = await add_assessment(session_maker, duration_minutes=45)
        async with session_maker() as db:
            created = await SessionManager(SessionStore(db), clock).get_or_create(assessment_id, student, 45)
        return created

    created = asyncio.run(run())
    assert created.started_at == clock()
    assert created.duration_minutes == 45
    assert created.is_completed is False
    assert created.submitted_at is None


def test_resume_does_not_reset_timer(session_maker, student, clock):
    async def run():
        assessment_id = await add_assessment(session_maker)
        async with session_maker() as db:
            first = await SessionManager(SessionStore(db), clock).get_or_create(assessment_id, student, 10)
        clock.advance(minutes=3)
        async with session_maker() as db:
            # a later duration edit on the assessment must not leak into the running attempt
            second = await SessionManager(SessionStore(db), clock).get_or_create(assessment_id, student, 90)
        return first, second, await _count_sessions(session_maker, assessment_id)

    first, second, count = asyncio.run(run())
    assert second.id == first.id
    assert second.started_at == first.started_at
    assert second.duration_minutes == 10
    assert count == 1


def test_concurrent_get_or_create_creates_one_row(session_maker, student, clock):
    async def one_call(assessment_id):
        async with session_maker() as db:
            s = await SessionManager(SessionStore(db), clock).get_or_create(assessment_id, student, 10)
            return s.id, s.started_at

    async def run():
        assessment_id = await add_assessment(session_maker)
        results = await asyncio.gather(*[one_call(assessment_id) for _ in range(8)])
        return results, await _count_sessions(session_maker, assessment_id)

    results, count = asyncio.run(run())
    assert count == 1
    assert len({r[0] for r in results}) == 1
    assert len({r[1] for r in results}) == 1


def test_two_tabs_race_resolves_to_same_session(session_maker, student, clock):
    async def run():
        assessment_id = await add_assessment(session_maker)
        async with session_maker() as db:
            first_store = RecordingStore(db)
            first = await SessionManager(first_store, clock).get_or_create(assessment_id, student, 10)
            first_id = first.id

        clock.advance(seconds=1)
        async with session_maker() as db:
            second_store = RecordingStore(db, miss_first_read=True)
            second = await SessionManager(second_store, clock).get_or_create(assessment_id, student, 10)
            return first_id, first_store.outcomes, second.id, second.started_at, second_store.outcomes

    first_id, first_outcomes, second_id, second_started, second_outcomes = asyncio.run(run())
    assert first_outcomes == [InsertOutcome.INSERTED]
    assert second_outcomes == [InsertOutcome.ALREADY_EXISTS]
    assert second_id == first_id
    # the loser sees the winner's start time, not its own clock reading
    assert second_started == T0


def test_started_at_cannot_be_changed(session_maker, student, clock):
    async def run():
        assessment_id = await add_assessment(session_maker)
        async with session_maker() as db:
            s = await SessionManager(SessionStore(db), clock).get_or_create(assessment_id, student, 10)
            s.duration_minutes = 60
            try:
                await db.commit()
            except ValueError as e:
                await db.rollback()
                return str(e)
        return None

    error = asyncio.run(run())
    assert error is not None
    assert "duration_minutes" in error


def test_storage_failure_on_insert_is_persistence_failure(session_maker, student, clock):
    async def run():
        assessment_id = await add_assessment(session_maker)
        async with failing_session(session_maker) as db:
            with pytest.raises(PersistenceFailure):
                await SessionManager(SessionStore(db), clock).get_or_create(assessment_id, student, 10)
        return await _count_sessions(session_maker, assessment_id)

    assert asyncio.run(run()) == 0


def test_integrity_error_without_existing_row_is_not_a_race(session_maker, clock):
    async def run():
        assessment_id = await add_assessment(session_maker)
        async with session_maker() as db:
            # student_id is NOT NULL; nothing holds the unique key
            row = TestSession(assessment_id=assessment_id, student_id=None, started_at=clock(), duration_minutes=10)
            with pytest.raises(PersistenceFailure):
                await SessionStore(db).insert(row)
            # a genuine duplicate still reports the tagged outcome
            student_id = uuid.uuid4()
            first = await SessionStore(db).insert(TestSession(assessment_id=assessment_id, student_id=student_id, started_at=clock(), duration_minutes=10))
            second = await SessionStore(db).insert(TestSession(assessment_id=assessment_id, student_id=student_id, started_at=clock(), duration_minutes=10))
        return first, second

    first, second = asyncio.run(run())
    assert first is InsertOutcome.INSERTED
    assert second is InsertOutcome.ALREADY_EXISTS
