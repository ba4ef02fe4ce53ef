"""
Answer graders for IELTS and quiz question types.

Each question type has a grader registered under its type tag with:
- validate(): Check authoring constraints for the type
- check(): Grade a decoded answer under a match policy

`grade()` is the single entry point: it decodes the raw stored answer once,
according to the question shape, and dispatches to the registered grader.
"""

from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from .base import AnswerGrader, GradableQuestion, GradeResult, MatchPolicy


class QuestionType(str, Enum):
    """Supported question types."""
    # IELTS reading / listening
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    IDENTIFYING_INFORMATION = "IDENTIFYING_INFORMATION"
    MATCHING = "MATCHING"
    COMPLETION = "COMPLETION"
    SHORT_ANSWER = "SHORT_ANSWER"
    # Quiz
    TRUE_FALSE = "TRUE_FALSE"
    FILL_BLANK = "FILL_BLANK"
    ESSAY = "ESSAY"


IELTS_QUESTION_TYPES = frozenset({
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.IDENTIFYING_INFORMATION,
    QuestionType.MATCHING,
    QuestionType.COMPLETION,
    QuestionType.SHORT_ANSWER,
})

QUIZ_QUESTION_TYPES = frozenset({
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.TRUE_FALSE,
    QuestionType.FILL_BLANK,
    QuestionType.ESSAY,
})


# Grader registry - populated by @register decorator
GRADERS: dict[QuestionType, "AnswerGrader"] = {}


def register(question_type: QuestionType):
    """Decorator to register an answer grader."""
    def decorator(cls):
        GRADERS[question_type] = cls()
        return cls
    return decorator


def get_grader(question_type: "str | QuestionType") -> "AnswerGrader | None":
    """Get the grader for a question type."""
    if isinstance(question_type, str) and not isinstance(question_type, QuestionType):
        try:
            question_type = QuestionType(question_type.upper())
        except ValueError:
            return None
    return GRADERS.get(question_type)


def grade(
    question: "GradableQuestion",
    raw_answer: "str | Mapping[Any, Any] | None",
    policy: "MatchPolicy | None" = None,
) -> "GradeResult":
    """
    Grade one question group against a raw stored answer.

    Never raises for answer-shape problems: missing or malformed answers
    grade as incorrect.
    """
    grouped = bool(question.sub_questions)
    answer = decode_answer(raw_answer, grouped=grouped)

    grader = get_grader(question.type)
    if grader is None:
        logger.warning(f"No grader registered for question type {question.type!r}, using exact match")
        grader = _FALLBACK
    return grader.check(question, answer, policy or EXACT)


# Import graders to trigger registration
from .answers import GroupedAnswer, SingleAnswer, decode_answer, encode_answer
from .base import EXACT, LENIENT, GradeResult, MatchPolicy
from . import ielts
from . import quiz

_FALLBACK = ielts.ExactAnswerGrader()

__all__ = [
    "EXACT",
    "GRADERS",
    "IELTS_QUESTION_TYPES",
    "LENIENT",
    "QUIZ_QUESTION_TYPES",
    "GradeResult",
    "GroupedAnswer",
    "MatchPolicy",
    "QuestionType",
    "SingleAnswer",
    "decode_answer",
    "encode_answer",
    "get_grader",
    "grade",
    "register",
]
