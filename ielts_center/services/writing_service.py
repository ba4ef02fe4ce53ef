"""
IELTS writing service.

A candidate may resubmit: the essay is replaced in place and any previous
scores are cleared. Teachers grade against the four-criterion rubric; the
automated assessor can score the same submission without overwriting the
teacher's score.
"""
from __future__ import annotations

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import Settings, get_settings
from ielts_center.db.models import WritingSubmission, WritingTest
from ielts_center.events import ChangeAction, ChangeNotifier
from ielts_center.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    SubmissionConflictError,
)
from ielts_center.schemas import SubmissionStatus, WritingTestCreate
from ielts_center.scoring import (
    HeuristicWritingAssessor,
    RubricScore,
    WritingAssessor,
    WritingFeedback,
    WritingReview,
    count_words,
    review_writing,
)

from .base import BaseService, utcnow

TEST = "writing_test"
SUBMISSION = "writing_submission"


class WritingService(BaseService):
    """Service for writing tasks, essays and their grading."""

    def __init__(
        self,
        db: Session,
        notifier: ChangeNotifier | None = None,
        assessor: WritingAssessor | None = None,
        settings: Settings | None = None,
    ):
        super().__init__(db, notifier)
        self.assessor = assessor or HeuristicWritingAssessor()
        self.settings = settings or get_settings()

    # ========================================
    # Tests
    # ========================================

    def create_test(self, data: WritingTestCreate, user_id: int) -> WritingTest:
        test = WritingTest(
            title=data.title,
            prompt=data.prompt,
            type=data.type.value,
            level=data.level.value,
            image_url=data.image_url,
            time_limit=data.time_limit,
            created_by=user_id,
        )
        self.db.add(test)
        self.db.commit()
        logger.info(f"Created writing test {test.id} ({test.type})")
        self.notifier.notify(TEST, test.id, ChangeAction.CREATED)
        return test

    def list_tests(
        self,
        type: str | None = None,
        level: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[WritingTest]:
        query = select(WritingTest)
        if type:
            query = query.where(WritingTest.type == type)
        if level:
            query = query.where(WritingTest.level == level)
        query = query.order_by(WritingTest.created_at.desc(), WritingTest.id.desc())
        return list(self.db.scalars(query.limit(limit).offset(offset)))

    def get_test(self, test_id: int) -> WritingTest:
        test = self.db.get(WritingTest, test_id)
        if test is None:
            raise NotFoundError("Writing test", test_id)
        return test

    def delete_test(self, test_id: int, user_id: int) -> None:
        test = self.get_test(test_id)
        self._require_owner(test.created_by, user_id, "delete this writing test")
        self.db.delete(test)
        self.db.commit()
        self.notifier.notify(TEST, test_id, ChangeAction.DELETED)

    # ========================================
    # Submissions
    # ========================================

    def submit(self, test_id: int, user_id: int, content: str) -> WritingSubmission:
        """
        Create or replace the user's essay for a writing test.

        Resubmitting keeps the same row, resets it to SUBMITTED and clears
        both scores, since they graded the previous text.

        Raises:
            SubmissionConflictError: Another first submission for the same
                test and user was inserted concurrently
        """
        self.get_test(test_id)
        submission = self.db.scalar(
            select(WritingSubmission).where(
                WritingSubmission.test_id == test_id,
                WritingSubmission.user_id == user_id,
            )
        )
        if submission is None:
            submission = WritingSubmission(test_id=test_id, user_id=user_id, content=content)
            self.db.add(submission)
            action = ChangeAction.SUBMITTED
        else:
            action = ChangeAction.UPDATED

        submission.content = content
        submission.word_count = count_words(content)
        submission.status = SubmissionStatus.SUBMITTED.value
        submission.submitted_at = utcnow()
        submission.graded_at = None
        submission.human_score = None
        submission.human_feedback = None
        submission.ai_score = None
        submission.ai_feedback = None
        try:
            self.db.commit()
        except IntegrityError as e:
            # A concurrent first submission for the same pair won the insert
            self.db.rollback()
            raise SubmissionConflictError(
                f"User {user_id} submitted writing test {test_id} concurrently"
            ) from e

        logger.info(f"Writing submission {submission.id} ({action.value}): {submission.word_count} words")
        self.notifier.notify(SUBMISSION, submission.id, action, (TEST, test_id))
        return submission

    def get_submission(self, submission_id: int) -> WritingSubmission:
        submission = self.db.get(WritingSubmission, submission_id)
        if submission is None:
            raise NotFoundError("Writing submission", submission_id)
        return submission

    def _require_participant(self, submission: WritingSubmission, user_id: int) -> None:
        if user_id not in (submission.user_id, submission.test.created_by):
            raise PermissionDeniedError("Only the candidate or the test creator can access this submission")

    def list_submissions(self, test_id: int, user_id: int) -> list[WritingSubmission]:
        test = self.get_test(test_id)
        self._require_owner(test.created_by, user_id, "view submissions")
        return list(self.db.scalars(
            select(WritingSubmission)
            .where(WritingSubmission.test_id == test_id)
            .order_by(WritingSubmission.submitted_at.desc(), WritingSubmission.id.desc())
        ))

    def my_submissions(self, user_id: int) -> list[WritingSubmission]:
        return list(self.db.scalars(
            select(WritingSubmission)
            .where(WritingSubmission.user_id == user_id)
            .order_by(WritingSubmission.submitted_at.desc(), WritingSubmission.id.desc())
        ))

    # ========================================
    # Grading
    # ========================================

    def grade(
        self,
        submission_id: int,
        score: RubricScore,
        feedback: WritingFeedback,
        user_id: int,
    ) -> WritingSubmission:
        """Record the teacher's rubric score. Grading again replaces it."""
        submission = self.get_submission(submission_id)
        self._require_owner(submission.test.created_by, user_id, "grade writing submissions")

        submission.human_score = score.to_dict()
        submission.human_feedback = feedback.to_dict()
        submission.status = SubmissionStatus.GRADED.value
        submission.graded_at = utcnow()
        self.db.commit()

        logger.info(f"Writing submission {submission_id} graded by {user_id}: overall {score.overall:.1f}")
        self.notifier.notify(SUBMISSION, submission.id, ChangeAction.GRADED, (TEST, submission.test_id))
        return submission

    def auto_grade(self, submission_id: int, user_id: int) -> WritingSubmission:
        """Score the essay with the automated assessor, next to any teacher score."""
        submission = self.get_submission(submission_id)
        self._require_participant(submission, user_id)

        min_words = self.settings.min_words_for(submission.test.type)
        assessment = self.assessor.assess(submission.content, min_words)

        submission.ai_score = assessment.score.to_dict()
        submission.ai_feedback = assessment.feedback.to_dict()
        submission.status = SubmissionStatus.GRADED.value
        if submission.graded_at is None:
            submission.graded_at = utcnow()
        self.db.commit()

        logger.info(
            f"Writing submission {submission_id} auto-graded: overall {assessment.score.overall:.1f}"
        )
        self.notifier.notify(SUBMISSION, submission.id, ChangeAction.GRADED, (TEST, submission.test_id))
        return submission

    def get_review(self, submission_id: int, user_id: int) -> tuple[WritingSubmission, WritingReview]:
        submission = self.get_submission(submission_id)
        self._require_participant(submission, user_id)
        return submission, review_writing(submission)
