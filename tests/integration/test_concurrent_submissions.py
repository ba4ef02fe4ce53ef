"""
Integration tests for submissions that lose a race on the unique constraint.

A competing submission is committed from a second session after the
service's duplicate pre-check but before its own flush. The database runs
from a file so that the two sessions hold separate connections.
"""

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.orm import sessionmaker

from ielts_center.db.database import create_db_engine, drop_db, init_db
from ielts_center.db.models import IeltsSubmission, QuizSubmission, WritingSubmission
from ielts_center.exceptions import SubmissionConflictError
from ielts_center.schemas import QuizCreate, TestCreate, WritingTestCreate
from ielts_center.services import IeltsService, QuizService, WritingService

TEACHER = 1
STUDENT = 2


@pytest.fixture
def file_factory(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'race.db'}")
    init_db(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    drop_db(bind=engine)
    engine.dispose()


@pytest.fixture
def session(file_factory):
    session = file_factory()
    yield session
    session.close()


def commit_before_next_flush(session, factory, row_factory):
    """Commit row_factory() from another session just before `session` flushes."""

    def compete(flushing_session, flush_context, instances):
        other = factory()
        try:
            other.add(row_factory())
            other.commit()
        finally:
            other.close()

    event.listen(session, "before_flush", compete, once=True)


def stored(factory, model, *criteria):
    with factory() as check:
        return list(check.scalars(select(model).where(*criteria)))


class TestIeltsSubmissionRace:

    def test_lost_race_conflicts(self, session, file_factory, reading_test_payload):
        """Should raise a conflict and keep the competing submission's score."""
        service = IeltsService(session)
        test = service.create_test(TestCreate(**reading_test_payload), TEACHER)
        commit_before_next_flush(
            session,
            file_factory,
            lambda: IeltsSubmission(test_id=test.id, user_id=STUDENT, answers={}, score=4.5),
        )

        with pytest.raises(SubmissionConflictError):
            service.submit(test.id, STUDENT, {})

        rows = stored(file_factory, IeltsSubmission, IeltsSubmission.test_id == test.id)
        assert [(r.user_id, r.score) for r in rows] == [(STUDENT, 4.5)]


class TestQuizSubmissionRace:

    def test_lost_race_conflicts(self, session, file_factory):
        service = QuizService(session)
        quiz = service.create_quiz(
            QuizCreate(
                title="Race",
                status="ACTIVE",
                questions=[{"question": "1 + 1 = ?", "type": "FILL_BLANK", "correct_answer": "2"}],
            ),
            TEACHER,
        )
        commit_before_next_flush(
            session,
            file_factory,
            lambda: QuizSubmission(quiz_id=quiz.id, user_id=STUDENT, score=1.0, total_points=1.0),
        )

        with pytest.raises(SubmissionConflictError):
            service.submit(quiz.id, STUDENT, {})

        rows = stored(file_factory, QuizSubmission, QuizSubmission.quiz_id == quiz.id)
        assert [r.score for r in rows] == [1.0]


class TestWritingSubmissionRace:

    def test_concurrent_first_submission_conflicts(self, session, file_factory, sample_essay):
        """Should not overwrite an essay that was inserted concurrently."""
        service = WritingService(session)
        task = service.create_test(
            WritingTestCreate(
                title="Transport",
                prompt="Discuss public transport funding.",
                type="IELTS_TASK2",
                level="ADVANCED",
            ),
            TEACHER,
        )
        commit_before_next_flush(
            session,
            file_factory,
            lambda: WritingSubmission(test_id=task.id, user_id=STUDENT, content="First draft", word_count=2),
        )

        with pytest.raises(SubmissionConflictError):
            service.submit(task.id, STUDENT, sample_essay)

        rows = stored(file_factory, WritingSubmission, WritingSubmission.test_id == task.id)
        assert [r.content for r in rows] == ["First draft"]

    def test_resubmit_after_conflict(self, session, file_factory, sample_essay):
        """Should update the stored essay when the candidate retries."""
        service = WritingService(session)
        task = service.create_test(
            WritingTestCreate(title="Chart", prompt="Describe the chart.", type="IELTS_TASK1", level="BEGINNER"),
            TEACHER,
        )
        commit_before_next_flush(
            session,
            file_factory,
            lambda: WritingSubmission(test_id=task.id, user_id=STUDENT, content="First draft", word_count=2),
        )
        with pytest.raises(SubmissionConflictError):
            service.submit(task.id, STUDENT, sample_essay)

        retried = service.submit(task.id, STUDENT, sample_essay)

        assert retried.word_count == 322
        with file_factory() as check:
            assert check.scalar(select(func.count(WritingSubmission.id))) == 1
