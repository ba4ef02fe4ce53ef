"""
Quiz graders.

Quiz questions carry a single correct answer. Multiple choice and true/false
compare exactly, fill-in-the-blank ignores surrounding whitespace and case,
and essays are never auto-graded.
"""

from __future__ import annotations

from . import QuestionType, register
from .answers import DecodedAnswer
from .base import LENIENT, GradableQuestion, GradeResult, MatchPolicy, single_answer
from .ielts import ExactAnswerGrader


@register(QuestionType.TRUE_FALSE)
class TrueFalseGrader(ExactAnswerGrader):
    """'true' / 'false' answers."""

    def validate(self, question: GradableQuestion) -> list[str]:
        errors = super().validate(question)
        for answer in question.correct_answers or []:
            if answer.lower() not in ("true", "false"):
                errors.append(f"True/false answer must be 'true' or 'false', got {answer!r}")
        return errors


@register(QuestionType.FILL_BLANK)
class FillBlankGrader(ExactAnswerGrader):
    def check(
        self,
        question: GradableQuestion,
        answer: DecodedAnswer,
        policy: MatchPolicy,
    ) -> GradeResult:
        return super().check(question, answer, LENIENT)


@register(QuestionType.ESSAY)
class EssayGrader:
    """Essays are recorded as incorrect until a teacher grades them."""

    def validate(self, question: GradableQuestion) -> list[str]:
        return []

    def check(
        self,
        question: GradableQuestion,
        answer: DecodedAnswer,
        policy: MatchPolicy,
    ) -> GradeResult:
        return GradeResult(
            verdicts=[False],
            grouped=False,
            answer=single_answer(answer),
            points_earned=0.0,
            needs_manual_grading=True,
        )
