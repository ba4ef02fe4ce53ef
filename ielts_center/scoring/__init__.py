"""
Scoring: aggregate graded answers into results.

- aggregator: band score, feedback and review for IELTS submissions; quiz totals
- writing: rubric scores and the automated writing assessor
"""

from .aggregator import aggregate, aggregate_quiz, band_score
from .feedback import band_label, generate_feedback
from .models import QuestionDefinition, SectionDefinition, TestDefinition
from .results import (
    QuestionReview,
    QuizAnswerResult,
    QuizResult,
    SectionReview,
    SubmissionResult,
)
from .writing import (
    HeuristicWritingAssessor,
    RubricScore,
    WritingAssessment,
    WritingAssessor,
    WritingFeedback,
    WritingReview,
    count_words,
    review_writing,
)

__all__ = [
    "HeuristicWritingAssessor",
    "QuestionDefinition",
    "QuestionReview",
    "QuizAnswerResult",
    "QuizResult",
    "RubricScore",
    "SectionDefinition",
    "SectionReview",
    "SubmissionResult",
    "TestDefinition",
    "WritingAssessment",
    "WritingAssessor",
    "WritingFeedback",
    "WritingReview",
    "aggregate",
    "aggregate_quiz",
    "band_label",
    "band_score",
    "count_words",
    "generate_feedback",
    "review_writing",
]
