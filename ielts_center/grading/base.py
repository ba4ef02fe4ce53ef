"""
Base protocol and types for answer graders.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from .answers import DecodedAnswer, GroupedAnswer, SingleAnswer


class GradableQuestion(Protocol):
    """Anything carrying what a grader needs (ORM row or definition)."""

    type: str
    correct_answers: Sequence[str]
    sub_questions: Sequence[str]
    options: Sequence[str]
    points: float


@dataclass(frozen=True)
class MatchPolicy:
    """How a user answer is compared to a correct answer."""

    case_sensitive: bool = True
    strip_whitespace: bool = False

    def normalize(self, text: str) -> str:
        if self.strip_whitespace:
            text = text.strip()
        if not self.case_sensitive:
            text = text.casefold()
        return text

    def matches(self, user_answer: str | None, expected: str | None) -> bool:
        if user_answer is None or expected is None:
            return False
        return self.normalize(user_answer) == self.normalize(expected)

    @classmethod
    def from_name(cls, name: str) -> MatchPolicy:
        """Resolve a configured policy name ('exact' or 'lenient')."""
        if name == "lenient":
            return LENIENT
        if name == "exact":
            return EXACT
        raise ValueError(f"Unknown answer matching policy: {name}")


EXACT = MatchPolicy()
LENIENT = MatchPolicy(case_sensitive=False, strip_whitespace=True)


@dataclass
class GradeResult:
    """
    Verdict for one question group.

    `verdicts` has one entry per sub-question (or a single entry for
    single-answer questions). `points_earned` is only set for single-answer
    questions; grouped awards are computed by the aggregator.
    """

    verdicts: list[bool]
    grouped: bool
    answer: DecodedAnswer
    points_earned: float | None = None
    needs_manual_grading: bool = False
    notes: list[str] = field(default_factory=list)

    @property
    def is_correct(self) -> bool | list[bool]:
        if self.grouped:
            return list(self.verdicts)
        return self.verdicts[0]

    @property
    def correct_count(self) -> int:
        return sum(1 for verdict in self.verdicts if verdict)

    @property
    def all_correct(self) -> bool:
        return bool(self.verdicts) and all(self.verdicts)

    @property
    def malformed(self) -> bool:
        return isinstance(self.answer, GroupedAnswer) and self.answer.malformed

    @property
    def user_answers(self) -> list[str | None]:
        """User answer re-attached per sub-question position."""
        if isinstance(self.answer, GroupedAnswer):
            return self.answer.positions_for(len(self.verdicts))
        return self.answer.positions


class AnswerGrader(Protocol):
    """Protocol for question type graders."""

    def validate(self, question: GradableQuestion) -> list[str]:
        """Check authoring constraints for this type. Returns error messages."""
        ...

    def check(
        self,
        question: GradableQuestion,
        answer: DecodedAnswer,
        policy: MatchPolicy,
    ) -> GradeResult:
        """Grade a decoded answer."""
        ...


def alignment_errors(question: GradableQuestion) -> list[str]:
    """Correct answers must be index-aligned to sub-questions."""
    sub_questions = list(question.sub_questions or [])
    correct_answers = list(question.correct_answers or [])
    if sub_questions:
        if len(correct_answers) != len(sub_questions):
            return [
                f"Expected {len(sub_questions)} correct answers "
                f"(one per sub-question), got {len(correct_answers)}"
            ]
        return []
    if not correct_answers:
        return ["At least one correct answer is required"]
    return []


def single_answer(answer: DecodedAnswer) -> SingleAnswer:
    if isinstance(answer, SingleAnswer):
        return answer
    return SingleAnswer(text=None)
