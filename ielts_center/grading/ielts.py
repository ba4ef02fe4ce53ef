"""
IELTS reading/listening graders.

- Single-answer questions: exact comparison against the sole correct answer.
  When several correct answers are authored ("choose TWO"), the user answer
  is compared as an order-insensitive comma-separated set.
- Grouped questions: one verdict per sub-question, each comparing the
  answer at that index with the index-aligned correct answer.
"""

from __future__ import annotations

from . import QuestionType, register
from .answers import DecodedAnswer, GroupedAnswer
from .base import (
    GradableQuestion,
    GradeResult,
    MatchPolicy,
    alignment_errors,
    single_answer,
)


def _split_choices(text: str, policy: MatchPolicy) -> set[str]:
    return {policy.normalize(part.strip()) for part in text.split(",") if part.strip()}


class ExactAnswerGrader:
    """Shared grading for every type that compares strings."""

    def validate(self, question: GradableQuestion) -> list[str]:
        return alignment_errors(question)

    def check(
        self,
        question: GradableQuestion,
        answer: DecodedAnswer,
        policy: MatchPolicy,
    ) -> GradeResult:
        if question.sub_questions:
            return self._check_grouped(question, answer, policy)
        return self._check_single(question, answer, policy)

    def _check_single(
        self,
        question: GradableQuestion,
        answer: DecodedAnswer,
        policy: MatchPolicy,
    ) -> GradeResult:
        decoded = single_answer(answer)
        expected = list(question.correct_answers or [])

        if len(expected) > 1:
            correct = decoded.text is not None and (
                _split_choices(decoded.text, policy)
                == {policy.normalize(e.strip()) for e in expected}
            )
        elif expected:
            correct = policy.matches(decoded.text, expected[0])
        else:
            correct = False

        return GradeResult(
            verdicts=[correct],
            grouped=False,
            answer=decoded,
            points_earned=float(question.points) if correct else 0.0,
        )

    def _check_grouped(
        self,
        question: GradableQuestion,
        answer: DecodedAnswer,
        policy: MatchPolicy,
    ) -> GradeResult:
        if not isinstance(answer, GroupedAnswer):
            answer = GroupedAnswer(malformed=True)

        expected = list(question.correct_answers or [])
        count = len(question.sub_questions)
        verdicts = []
        for index in range(count):
            if answer.malformed or index >= len(expected):
                verdicts.append(False)
                continue
            verdicts.append(policy.matches(answer.at(index), expected[index]))

        notes = ["Answer could not be decoded"] if answer.malformed else []
        return GradeResult(verdicts=verdicts, grouped=True, answer=answer, notes=notes)


@register(QuestionType.MULTIPLE_CHOICE)
class SingleChoiceGrader(ExactAnswerGrader):
    """Single-choice: the answer is the text of one option."""

    def validate(self, question: GradableQuestion) -> list[str]:
        errors = super().validate(question)
        options = list(question.options or [])
        if len(options) < 2:
            errors.append("Multiple choice questions need at least 2 options")
        return errors


@register(QuestionType.IDENTIFYING_INFORMATION)
class TrueFalseNotGivenGrader(ExactAnswerGrader):
    """TRUE / FALSE / NOT GIVEN (or YES / NO / NOT GIVEN) statements."""


class _GroupedOnlyGrader(ExactAnswerGrader):
    label = "This question type"

    def validate(self, question: GradableQuestion) -> list[str]:
        errors = super().validate(question)
        if not question.sub_questions:
            errors.append(f"{self.label} questions need at least one sub-question")
        return errors


@register(QuestionType.MATCHING)
class MatchingGrader(_GroupedOnlyGrader):
    """Match each sub-question to an option label."""
    label = "Matching"


@register(QuestionType.COMPLETION)
class CompletionGrader(_GroupedOnlyGrader):
    """Sentence / table / note completion, one gap per sub-question."""
    label = "Completion"


@register(QuestionType.SHORT_ANSWER)
class ShortAnswerGrader(ExactAnswerGrader):
    """Short answers, either a single prompt or a list of sub-questions."""
