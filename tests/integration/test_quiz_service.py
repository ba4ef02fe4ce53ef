"""
Integration tests for QuizService.
"""

from datetime import datetime, timedelta, timezone

import pytest

from ielts_center.exceptions import (
    BusinessRuleError,
    PermissionDeniedError,
    SubmissionConflictError,
)
from ielts_center.schemas import QuizCreate, QuizStatus
from ielts_center.services import QuizService

TEACHER = 1
STUDENT = 2
OTHER_STUDENT = 3


def quiz_payload(**overrides) -> dict:
    payload = {
        "title": "Week 3 review",
        "status": "ACTIVE",
        "questions": [
            {"question": "2 + 2 = ?", "type": "MULTIPLE_CHOICE", "options": ["3", "4"], "correct_answer": "4", "points": 2},
            {"question": "Water boils at 100C at sea level.", "type": "TRUE_FALSE", "correct_answer": "true"},
            {"question": "The capital of France is ___.", "type": "FILL_BLANK", "correct_answer": "Paris"},
            {"question": "Describe your favourite book.", "type": "ESSAY", "points": 5},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def service(db_session, notifier):
    return QuizService(db_session, notifier=notifier)


@pytest.fixture
def quiz(service):
    return service.create_quiz(QuizCreate(**quiz_payload()), TEACHER)


def answers_for(quiz, *values):
    return {str(q.id): value for q, value in zip(quiz.questions, values)}


class TestQuizLifecycle:

    def test_create(self, quiz):
        assert quiz.status == "ACTIVE"
        assert [q.order for q in quiz.questions] == [0, 1, 2, 3]
        assert quiz.total_points == 9

    def test_active_quiz_needs_questions(self, service):
        with pytest.raises(BusinessRuleError):
            service.create_quiz(QuizCreate(title="Empty", status="ACTIVE"), TEACHER)

    def test_cannot_create_closed(self, service):
        with pytest.raises(BusinessRuleError):
            service.create_quiz(QuizCreate(**quiz_payload(status="CLOSED")), TEACHER)

    def test_status_transitions(self, service):
        draft = service.create_quiz(QuizCreate(**quiz_payload(status="DRAFT")), TEACHER)

        with pytest.raises(BusinessRuleError):
            service.update_status(draft.id, QuizStatus.CLOSED, TEACHER)

        assert service.update_status(draft.id, QuizStatus.ACTIVE, TEACHER).status == "ACTIVE"
        assert service.update_status(draft.id, QuizStatus.CLOSED, TEACHER).status == "CLOSED"
        assert service.update_status(draft.id, QuizStatus.ACTIVE, TEACHER).status == "ACTIVE"

    def test_status_change_creator_only(self, service, quiz):
        with pytest.raises(PermissionDeniedError):
            service.update_status(quiz.id, QuizStatus.CLOSED, STUDENT)

    def test_list_by_status(self, service, quiz):
        service.create_quiz(QuizCreate(**quiz_payload(status="DRAFT", title="Draft")), TEACHER)

        assert [q.title for q in service.list_quizzes(status="ACTIVE")] == ["Week 3 review"]
        assert len(service.list_quizzes(created_by=TEACHER)) == 2


class TestQuizSubmission:

    def test_grades_answers(self, service, quiz):
        submission, result = service.submit(quiz.id, STUDENT, answers_for(quiz, "4", "false", " paris ", "My book"), 300)

        assert submission.score == 3.0
        assert submission.total_points == 9.0
        assert submission.time_spent == 300
        assert [a.is_correct for a in submission.answers] == [True, False, True, False]
        assert result.needs_manual_grading is True

    def test_updates_statistics(self, service, quiz):
        service.submit(quiz.id, STUDENT, answers_for(quiz, "4"))
        service.submit(quiz.id, OTHER_STUDENT, answers_for(quiz, "3"))

        assert quiz.total_submissions == 2
        assert quiz.average_score == pytest.approx(1.0)

    def test_duplicate_submission_conflicts(self, service, quiz):
        first, _ = service.submit(quiz.id, STUDENT, answers_for(quiz, "4"))

        with pytest.raises(SubmissionConflictError):
            service.submit(quiz.id, STUDENT, answers_for(quiz, "3"))

        assert service.get_submission(first.id, STUDENT).score == 2.0
        assert quiz.total_submissions == 1

    def test_inactive_quiz_rejected(self, service, quiz):
        service.update_status(quiz.id, QuizStatus.CLOSED, TEACHER)

        with pytest.raises(BusinessRuleError, match="not active"):
            service.submit(quiz.id, STUDENT, {})

    def test_deadline_passed(self, service):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        quiz = service.create_quiz(QuizCreate(**quiz_payload(deadline=past)), TEACHER)

        with pytest.raises(BusinessRuleError, match="deadline"):
            service.submit(quiz.id, STUDENT, {})

    def test_future_deadline_accepted(self, service):
        future = datetime.now(timezone.utc) + timedelta(days=1)
        quiz = service.create_quiz(QuizCreate(**quiz_payload(deadline=future)), TEACHER)

        submission, _ = service.submit(quiz.id, STUDENT, {})

        assert submission.score == 0.0

    def test_submission_visibility(self, service, quiz):
        submission, _ = service.submit(quiz.id, STUDENT, {})

        assert service.get_submission(submission.id, TEACHER) is submission
        with pytest.raises(PermissionDeniedError):
            service.get_submission(submission.id, OTHER_STUDENT)


class TestQuizGrading:

    def test_teacher_sets_final_score(self, service, quiz):
        submission, _ = service.submit(quiz.id, STUDENT, answers_for(quiz, "4", "true", "Paris", "My book"))

        graded = service.grade_submission(submission.id, 8.0, "Essay was thoughtful", TEACHER)

        assert graded.status == "GRADED"
        assert graded.score == 8.0
        assert quiz.average_score == pytest.approx(8.0)

    def test_score_above_total_rejected(self, service, quiz):
        submission, _ = service.submit(quiz.id, STUDENT, {})

        with pytest.raises(BusinessRuleError, match="between 0 and 9"):
            service.grade_submission(submission.id, 10.0, None, TEACHER)

    def test_grading_creator_only(self, service, quiz):
        submission, _ = service.submit(quiz.id, STUDENT, {})

        with pytest.raises(PermissionDeniedError):
            service.grade_submission(submission.id, 5.0, None, STUDENT)
