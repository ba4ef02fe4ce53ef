"""
Integration tests for engine setup and the session helpers.
"""

import pytest
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import IntegrityError

from ielts_center.db.database import drop_db, get_engine, init_db, session_scope
from ielts_center.db.models import IeltsSubmission, IeltsTest, Quiz, QuizSubmission


@pytest.fixture
def default_db():
    """Tables on the module-level engine used by session_scope()."""
    init_db()
    yield get_engine()
    drop_db()


class TestSchema:

    def test_all_tables_created(self, engine):
        tables = set(inspect(engine).get_table_names())

        assert {
            "ielts_tests",
            "ielts_sections",
            "ielts_questions",
            "ielts_submissions",
            "ielts_answers",
            "writing_tests",
            "writing_submissions",
            "quizzes",
            "quiz_questions",
            "quiz_submissions",
            "quiz_answers",
        } <= tables

    def test_unique_submission_per_user(self, db_session):
        """Should enforce one quiz submission per (quiz, user) in the database."""
        quiz = Quiz(title="Constraint check", created_by=1)
        db_session.add(quiz)
        db_session.commit()

        db_session.add_all([
            QuizSubmission(quiz_id=quiz.id, user_id=2),
            QuizSubmission(quiz_id=quiz.id, user_id=2),
        ])
        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_unique_ielts_submission_per_user(self, db_session):
        """Should enforce one IELTS submission per (test, user) in the database."""
        test = IeltsTest(title="Constraint check", skill="READING", level="BEGINNER", created_by=1)
        db_session.add(test)
        db_session.commit()

        db_session.add_all([
            IeltsSubmission(test_id=test.id, user_id=2, answers={}),
            IeltsSubmission(test_id=test.id, user_id=2, answers={}),
        ])
        with pytest.raises(IntegrityError):
            db_session.commit()


class TestSessionScope:

    def test_commits_on_success(self, default_db):
        with session_scope() as session:
            session.add(Quiz(title="Committed", created_by=1))

        with session_scope() as session:
            assert session.scalar(select(func.count(Quiz.id))) == 1

    def test_rolls_back_on_error(self, default_db):
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(Quiz(title="Rolled back", created_by=1))
                session.flush()
                raise RuntimeError("abort")

        with session_scope() as session:
            assert session.scalar(select(func.count(Quiz.id))) == 0
