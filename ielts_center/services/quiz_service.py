"""
Quiz service.

Quizzes accept one attempt per user while ACTIVE and before their deadline.
Answers are graded on submission; essay questions wait for the teacher, who
can set the final score.
"""
from __future__ import annotations

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ielts_center.db.models import Quiz, QuizAnswer, QuizQuestion, QuizSubmission
from ielts_center.events import ChangeAction, ChangeNotifier
from ielts_center.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    SubmissionConflictError,
)
from ielts_center.grading import EXACT, MatchPolicy
from ielts_center.schemas import QuizCreate, QuizStatus, SubmissionStatus
from ielts_center.scoring import QuestionDefinition, QuizResult, aggregate_quiz

from .base import BaseService, ensure_utc, utcnow

QUIZ = "quiz"
SUBMISSION = "quiz_submission"

# Allowed status changes
TRANSITIONS: dict[str, set[str]] = {
    QuizStatus.DRAFT.value: {QuizStatus.ACTIVE.value},
    QuizStatus.ACTIVE.value: {QuizStatus.CLOSED.value},
    QuizStatus.CLOSED.value: {QuizStatus.ACTIVE.value},
}


class QuizService(BaseService):
    """Service for quizzes and quiz attempts."""

    def __init__(
        self,
        db: Session,
        notifier: ChangeNotifier | None = None,
        policy: MatchPolicy = EXACT,
    ):
        super().__init__(db, notifier)
        self.policy = policy

    # ========================================
    # Quizzes
    # ========================================

    def create_quiz(self, data: QuizCreate, user_id: int) -> Quiz:
        if data.status == QuizStatus.CLOSED:
            raise BusinessRuleError("A quiz cannot be created closed")
        if data.status == QuizStatus.ACTIVE and not data.questions:
            raise BusinessRuleError("A quiz needs at least one question to be active")

        quiz = Quiz(
            title=data.title,
            description=data.description,
            status=data.status.value,
            deadline=data.deadline,
            time_limit=data.time_limit,
            created_by=user_id,
        )
        for index, question in enumerate(data.questions):
            quiz.questions.append(QuizQuestion(
                question=question.question,
                type=question.type.value,
                options=list(question.options),
                correct_answer=question.correct_answer,
                points=question.points,
                explanation=question.explanation,
                order=question.order or index,
            ))

        self.db.add(quiz)
        self.db.commit()
        logger.info(f"Created quiz {quiz.id} with {len(quiz.questions)} questions")
        self.notifier.notify(QUIZ, quiz.id, ChangeAction.CREATED)
        return quiz

    def get_quiz(self, quiz_id: int) -> Quiz:
        quiz = self.db.scalar(
            select(Quiz).options(selectinload(Quiz.questions)).where(Quiz.id == quiz_id)
        )
        if quiz is None:
            raise NotFoundError("Quiz", quiz_id)
        return quiz

    def get_quiz_with_answers(self, quiz_id: int, user_id: int) -> Quiz:
        quiz = self.get_quiz(quiz_id)
        self._require_owner(quiz.created_by, user_id, "view correct answers")
        return quiz

    def list_quizzes(
        self,
        status: str | None = None,
        created_by: int | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Quiz]:
        query = select(Quiz)
        if status:
            query = query.where(Quiz.status == status)
        if created_by is not None:
            query = query.where(Quiz.created_by == created_by)
        query = query.order_by(Quiz.created_at.desc(), Quiz.id.desc())
        return list(self.db.scalars(query.limit(limit).offset(offset)))

    def update_status(self, quiz_id: int, status: QuizStatus, user_id: int) -> Quiz:
        quiz = self.get_quiz(quiz_id)
        self._require_owner(quiz.created_by, user_id, "change the quiz status")

        if status.value == quiz.status:
            return quiz
        if status.value not in TRANSITIONS.get(quiz.status, set()):
            raise BusinessRuleError(f"Cannot change quiz status from {quiz.status} to {status.value}")
        if status == QuizStatus.ACTIVE and not quiz.questions:
            raise BusinessRuleError("A quiz needs at least one question to be active")

        quiz.status = status.value
        self.db.commit()
        logger.info(f"Quiz {quiz_id} is now {quiz.status}")
        self.notifier.notify(QUIZ, quiz.id, ChangeAction.UPDATED)
        return quiz

    def delete_quiz(self, quiz_id: int, user_id: int) -> None:
        quiz = self.get_quiz(quiz_id)
        self._require_owner(quiz.created_by, user_id, "delete this quiz")
        self.db.delete(quiz)
        self.db.commit()
        self.notifier.notify(QUIZ, quiz_id, ChangeAction.DELETED)

    # ========================================
    # Attempts
    # ========================================

    def _check_open(self, quiz: Quiz) -> None:
        if quiz.status != QuizStatus.ACTIVE.value:
            raise BusinessRuleError(f"Quiz {quiz.id} is not active")
        if quiz.deadline is not None and utcnow() > ensure_utc(quiz.deadline):
            raise BusinessRuleError(f"Quiz {quiz.id} deadline has passed")

    def submit(
        self,
        quiz_id: int,
        user_id: int,
        answers: dict[str, str | None],
        time_spent: int | None = None,
    ) -> tuple[QuizSubmission, QuizResult]:
        """
        Grade and store a quiz attempt.

        Raises:
            BusinessRuleError: Quiz is not active or its deadline has passed
            SubmissionConflictError: The user already submitted this quiz
        """
        quiz = self.get_quiz(quiz_id)
        self._check_open(quiz)

        existing = self.db.scalar(
            select(QuizSubmission.id).where(
                QuizSubmission.quiz_id == quiz_id,
                QuizSubmission.user_id == user_id,
            )
        )
        if existing is not None:
            raise SubmissionConflictError(f"User {user_id} has already submitted quiz {quiz_id}")

        result = aggregate_quiz(
            [QuestionDefinition.from_quiz_model(q) for q in quiz.questions],
            answers,
            self.policy,
        )
        submission = QuizSubmission(
            quiz_id=quiz_id,
            user_id=user_id,
            score=result.score,
            total_points=result.total_points,
            time_spent=time_spent,
            status=SubmissionStatus.SUBMITTED.value,
            submitted_at=utcnow(),
        )
        for answer in result.answers:
            submission.answers.append(QuizAnswer(
                question_id=answer.question_id,
                user_answer=answer.user_answer,
                is_correct=answer.is_correct,
                points_earned=answer.points_earned,
                needs_manual_grading=answer.needs_manual_grading,
            ))

        self.db.add(submission)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise SubmissionConflictError(
                f"User {user_id} has already submitted quiz {quiz_id}"
            ) from e

        self._refresh_statistics(quiz)
        self.db.commit()

        logger.info(
            f"Quiz submission {submission.id}: quiz {quiz_id}, user {user_id}, "
            f"{result.score:g}/{result.total_points:g} points"
        )
        self.notifier.notify(SUBMISSION, submission.id, ChangeAction.SUBMITTED, (QUIZ, quiz_id))
        return submission, result

    def _refresh_statistics(self, quiz: Quiz) -> None:
        count, average = self.db.execute(
            select(func.count(QuizSubmission.id), func.avg(QuizSubmission.score))
            .where(QuizSubmission.quiz_id == quiz.id)
        ).one()
        quiz.total_submissions = count
        quiz.average_score = float(average or 0.0)

    def get_submission(self, submission_id: int, user_id: int) -> QuizSubmission:
        submission = self.db.scalar(
            select(QuizSubmission)
            .options(selectinload(QuizSubmission.answers))
            .where(QuizSubmission.id == submission_id)
        )
        if submission is None:
            raise NotFoundError("Quiz submission", submission_id)
        if user_id not in (submission.user_id, submission.quiz.created_by):
            raise PermissionDeniedError("Only the candidate or the quiz creator can view this submission")
        return submission

    def list_submissions(self, quiz_id: int, user_id: int) -> list[QuizSubmission]:
        quiz = self.get_quiz(quiz_id)
        self._require_owner(quiz.created_by, user_id, "view submissions")
        return list(self.db.scalars(
            select(QuizSubmission)
            .options(selectinload(QuizSubmission.answers))
            .where(QuizSubmission.quiz_id == quiz_id)
            .order_by(QuizSubmission.submitted_at.desc(), QuizSubmission.id.desc())
        ))

    def grade_submission(
        self,
        submission_id: int,
        score: float,
        feedback: str | None,
        user_id: int,
    ) -> QuizSubmission:
        """Teacher sets the final score, e.g. after reading essay answers."""
        submission = self.get_submission(submission_id, user_id)
        self._require_owner(submission.quiz.created_by, user_id, "grade quiz submissions")
        if not 0 <= score <= submission.total_points:
            raise BusinessRuleError(
                f"Score must be between 0 and {submission.total_points:g}, got {score:g}"
            )

        submission.score = score
        submission.feedback = feedback
        submission.status = SubmissionStatus.GRADED.value
        submission.graded_at = utcnow()
        self.db.flush()
        self._refresh_statistics(submission.quiz)
        self.db.commit()

        logger.info(f"Quiz submission {submission_id} graded by {user_id}: {score:g}")
        self.notifier.notify(SUBMISSION, submission.id, ChangeAction.GRADED, (QUIZ, submission.quiz_id))
        return submission
