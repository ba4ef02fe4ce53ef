"""
IELTS reading/listening test service.

Handles:
- Test, section and question authoring (creator only)
- Submissions: grading through the aggregator, one attempt per user
- Teacher re-grading
- Submission review for the candidate or the test creator
"""
from __future__ import annotations

from typing import Any

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ielts_center.db.models import (
    IeltsAnswer,
    IeltsQuestion,
    IeltsSection,
    IeltsSubmission,
    IeltsTest,
)
from ielts_center.events import ChangeAction, ChangeNotifier
from ielts_center.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    SubmissionConflictError,
)
from ielts_center.grading import EXACT, MatchPolicy, encode_answer
from ielts_center.schemas import (
    QuestionCreate,
    QuestionUpdate,
    SectionCreate,
    SectionUpdate,
    Skill,
    SubmissionStatus,
    TestCreate,
    TestUpdate,
    question_errors,
)
from ielts_center.scoring import SubmissionResult, TestDefinition, aggregate

from .base import BaseService, utcnow

TEST = "ielts_test"
SECTION = "ielts_section"
QUESTION = "ielts_question"
SUBMISSION = "ielts_submission"

NULLABLE_SECTION_FIELDS = {"passage_text", "audio_url", "image_url"}

# Skills whose band comes from counting correct answers
AUTO_SCORED_SKILLS = {Skill.READING.value, Skill.LISTENING.value}


class IeltsService(BaseService):
    """Service for IELTS tests and their submissions."""

    def __init__(
        self,
        db: Session,
        notifier: ChangeNotifier | None = None,
        policy: MatchPolicy = EXACT,
    ):
        super().__init__(db, notifier)
        self.policy = policy

    # ========================================
    # Tests
    # ========================================

    def create_test(self, data: TestCreate, user_id: int) -> IeltsTest:
        """
        Create a test with its nested sections and question groups.

        Args:
            data: Validated test definition
            user_id: Creator

        Returns:
            Created IeltsTest
        """
        test = IeltsTest(
            title=data.title,
            description=data.description,
            instructions=data.instructions,
            skill=data.skill.value,
            level=data.level.value,
            time_limit=data.time_limit,
            created_by=user_id,
        )
        for section_data in data.sections:
            test.sections.append(self._build_section(section_data))

        self.db.add(test)
        self.db.commit()
        logger.info(f"Created IELTS test {test.id} ({test.skill}) with {len(test.sections)} sections")
        self.notifier.notify(TEST, test.id, ChangeAction.CREATED)
        return test

    def list_tests(
        self,
        skill: str | None = None,
        level: str | None = None,
        search: str | None = None,
        created_by: int | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[IeltsTest]:
        query = select(IeltsTest)
        if skill:
            query = query.where(IeltsTest.skill == skill)
        if level:
            query = query.where(IeltsTest.level == level)
        if created_by is not None:
            query = query.where(IeltsTest.created_by == created_by)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(IeltsTest.title.ilike(pattern), IeltsTest.description.ilike(pattern))
            )
        query = query.order_by(IeltsTest.created_at.desc(), IeltsTest.id.desc())
        return list(self.db.scalars(query.limit(limit).offset(offset)))

    def get_test(self, test_id: int) -> IeltsTest:
        test = self.db.scalar(
            select(IeltsTest)
            .options(selectinload(IeltsTest.sections).selectinload(IeltsSection.questions))
            .where(IeltsTest.id == test_id)
        )
        if test is None:
            raise NotFoundError("Test", test_id)
        return test

    def get_test_with_answers(self, test_id: int, user_id: int) -> IeltsTest:
        test = self.get_test(test_id)
        self._require_owner(test.created_by, user_id, "view correct answers")
        return test

    def update_test(self, test_id: int, data: TestUpdate, user_id: int) -> IeltsTest:
        test = self.get_test(test_id)
        self._require_owner(test.created_by, user_id, "update this test")

        for field, value in data.model_dump(exclude_unset=True, mode="json").items():
            if value is not None:
                setattr(test, field, value)

        self.db.commit()
        self.notifier.notify(TEST, test.id, ChangeAction.UPDATED)
        return test

    def delete_test(self, test_id: int, user_id: int) -> None:
        test = self.get_test(test_id)
        self._require_owner(test.created_by, user_id, "delete this test")
        self.db.delete(test)
        self.db.commit()
        logger.info(f"Deleted IELTS test {test_id}")
        self.notifier.notify(TEST, test_id, ChangeAction.DELETED)

    # ========================================
    # Sections
    # ========================================

    def _build_section(self, data: SectionCreate) -> IeltsSection:
        section = IeltsSection(
            title=data.title,
            instructions=data.instructions,
            order=data.order,
            passage_text=data.passage_text,
            audio_url=data.audio_url,
            image_url=data.image_url,
            time_limit=data.time_limit,
        )
        for question_data in data.questions:
            section.questions.append(self._build_question(question_data))
        return section

    def _get_section(self, section_id: int) -> IeltsSection:
        section = self.db.get(IeltsSection, section_id)
        if section is None:
            raise NotFoundError("Section", section_id)
        return section

    def add_section(self, test_id: int, data: SectionCreate, user_id: int) -> IeltsSection:
        test = self.get_test(test_id)
        self._require_owner(test.created_by, user_id, "add sections")

        section = self._build_section(data)
        test.sections.append(section)
        self.db.commit()
        self.notifier.notify(SECTION, section.id, ChangeAction.CREATED, (TEST, test.id))
        return section

    def update_section(self, section_id: int, data: SectionUpdate, user_id: int) -> IeltsSection:
        section = self._get_section(section_id)
        self._require_owner(section.test.created_by, user_id, "update sections")

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field not in NULLABLE_SECTION_FIELDS:
                continue
            setattr(section, field, value)

        self.db.commit()
        self.notifier.notify(SECTION, section.id, ChangeAction.UPDATED, (TEST, section.test_id))
        return section

    def delete_section(self, section_id: int, user_id: int) -> None:
        section = self._get_section(section_id)
        test_id = section.test_id
        self._require_owner(section.test.created_by, user_id, "delete sections")

        # delete-orphan removes the row and keeps the loaded collection in sync
        section.test.sections.remove(section)
        self.db.commit()
        self.notifier.notify(SECTION, section_id, ChangeAction.DELETED, (TEST, test_id))

    # ========================================
    # Question groups
    # ========================================

    def _build_question(self, data: QuestionCreate) -> IeltsQuestion:
        return IeltsQuestion(
            question=data.question,
            type=data.type.value,
            sub_questions=list(data.sub_questions),
            options=list(data.options),
            correct_answers=list(data.correct_answers),
            points=data.points,
            explanation=data.explanation,
            order=data.order,
        )

    def _get_question(self, question_id: int) -> IeltsQuestion:
        question = self.db.get(IeltsQuestion, question_id)
        if question is None:
            raise NotFoundError("Question", question_id)
        return question

    def _question_parents(self, question: IeltsQuestion) -> tuple[tuple[str, int], ...]:
        return ((SECTION, question.section_id), (TEST, question.section.test_id))

    def add_question(self, section_id: int, data: QuestionCreate, user_id: int) -> IeltsQuestion:
        section = self._get_section(section_id)
        self._require_owner(section.test.created_by, user_id, "add questions")

        question = self._build_question(data)
        section.questions.append(question)
        self.db.commit()
        self.notifier.notify(QUESTION, question.id, ChangeAction.CREATED, *self._question_parents(question))
        return question

    def update_question(self, question_id: int, data: QuestionUpdate, user_id: int) -> IeltsQuestion:
        question = self._get_question(question_id)
        self._require_owner(question.section.test.created_by, user_id, "update questions")

        for field, value in data.model_dump(exclude_unset=True, mode="json").items():
            if value is None and field != "explanation":
                continue
            setattr(question, field, value)

        # The merged question must still be a valid group
        errors = question_errors(question)
        if errors:
            self.db.rollback()
            raise BusinessRuleError("; ".join(errors))

        self.db.commit()
        self.notifier.notify(QUESTION, question.id, ChangeAction.UPDATED, *self._question_parents(question))
        return question

    def delete_question(self, question_id: int, user_id: int) -> None:
        question = self._get_question(question_id)
        self._require_owner(question.section.test.created_by, user_id, "delete questions")
        parents = self._question_parents(question)

        question.section.questions.remove(question)
        self.db.commit()
        self.notifier.notify(QUESTION, question_id, ChangeAction.DELETED, *parents)

    # ========================================
    # Submissions
    # ========================================

    def submit(
        self,
        test_id: int,
        user_id: int,
        answers: dict[str, Any],
    ) -> tuple[IeltsSubmission, SubmissionResult]:
        """
        Grade and store a user's answers.

        Each user gets one attempt per test. A second attempt raises
        SubmissionConflictError and leaves the first submission untouched.

        Returns:
            Tuple of (stored submission, aggregated result)

        Raises:
            BusinessRuleError: The test is a writing or speaking test
            SubmissionConflictError: The user already submitted this test
        """
        test = self.get_test(test_id)
        if test.skill not in AUTO_SCORED_SKILLS:
            raise BusinessRuleError(
                f"{test.skill} tests are not scored by answer matching"
            )

        existing = self.db.scalar(
            select(IeltsSubmission.id).where(
                IeltsSubmission.test_id == test_id,
                IeltsSubmission.user_id == user_id,
            )
        )
        if existing is not None:
            raise SubmissionConflictError(f"User {user_id} has already submitted test {test_id}")

        definition = TestDefinition.from_model(test)
        grouped = {str(q.id): q.is_grouped for q in definition.questions()}
        stored_answers = {
            str(key): encode_answer(value, grouped=grouped.get(str(key), True))
            for key, value in answers.items()
        }
        result = aggregate(definition, stored_answers, self.policy)

        submission = IeltsSubmission(
            test_id=test_id,
            user_id=user_id,
            answers=stored_answers,
            score=result.score,
            detailed_scores=result.detailed_scores,
            feedback=result.feedback,
            status=SubmissionStatus.SUBMITTED.value,
            submitted_at=utcnow(),
        )
        for review in result.question_reviews():
            submission.answer_details.append(IeltsAnswer(
                question_id=review.question_id,
                user_answer=review.raw_answer,
                is_correct=review.correct_count == review.question_count,
                sub_results=review.is_correct if isinstance(review.is_correct, list) else None,
                points_earned=review.points_earned,
            ))

        self.db.add(submission)
        try:
            self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent submission for the same pair
            self.db.rollback()
            raise SubmissionConflictError(
                f"User {user_id} has already submitted test {test_id}"
            ) from e

        logger.info(
            f"Submission {submission.id}: test {test_id}, user {user_id}, "
            f"{result.correct_count}/{result.total_question_count} correct, band {result.score:.2f}"
        )
        self.notifier.notify(SUBMISSION, submission.id, ChangeAction.SUBMITTED, (TEST, test_id))
        return submission, result

    def _get_submission(self, submission_id: int) -> IeltsSubmission:
        submission = self.db.get(IeltsSubmission, submission_id)
        if submission is None:
            raise NotFoundError("Submission", submission_id)
        return submission

    def regrade(
        self,
        submission_id: int,
        score: float,
        feedback: str | None,
        user_id: int,
    ) -> IeltsSubmission:
        """Teacher override of the computed band. Re-grading stays in GRADED."""
        submission = self._get_submission(submission_id)
        self._require_owner(submission.test.created_by, user_id, "grade submissions")
        if not 0 <= score <= 9:
            raise BusinessRuleError(f"Band score must be between 0 and 9, got {score}")

        submission.score = score
        if feedback is not None:
            submission.feedback = feedback
        submission.status = SubmissionStatus.GRADED.value
        submission.graded_at = utcnow()
        self.db.commit()

        logger.info(f"Submission {submission_id} graded by {user_id}: band {score}")
        self.notifier.notify(SUBMISSION, submission.id, ChangeAction.GRADED, (TEST, submission.test_id))
        return submission

    def list_submissions(self, test_id: int, user_id: int) -> list[IeltsSubmission]:
        test = self.get_test(test_id)
        self._require_owner(test.created_by, user_id, "view submissions")
        return list(self.db.scalars(
            select(IeltsSubmission)
            .where(IeltsSubmission.test_id == test_id)
            .order_by(IeltsSubmission.submitted_at.desc(), IeltsSubmission.id.desc())
        ))

    def my_submissions(self, user_id: int) -> list[IeltsSubmission]:
        return list(self.db.scalars(
            select(IeltsSubmission)
            .where(IeltsSubmission.user_id == user_id)
            .order_by(IeltsSubmission.submitted_at.desc(), IeltsSubmission.id.desc())
        ))

    def submission_detail(self, submission_id: int, user_id: int) -> dict[str, Any]:
        """
        Full review of a submission.

        Correctness flags are recomputed from the stored raw answers; the
        displayed score and feedback are the stored ones, which include any
        teacher re-grade.
        """
        submission = self._get_submission(submission_id)
        test = self.get_test(submission.test_id)
        if user_id not in (submission.user_id, test.created_by):
            raise PermissionDeniedError("Only the candidate or the test creator can view this submission")

        result = aggregate(TestDefinition.from_model(test), submission.answers, self.policy)
        review = result.to_dict()
        review.update({
            "submission_id": submission.id,
            "user_id": submission.user_id,
            "status": submission.status,
            "score": submission.score,
            "feedback": submission.feedback,
            "submitted_at": submission.submitted_at.isoformat() if submission.submitted_at else None,
            "graded_at": submission.graded_at.isoformat() if submission.graded_at else None,
        })
        return review
