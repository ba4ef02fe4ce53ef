"""
Aggregated results.

The submission review nests test metadata, sections (with their passage and
audio material) and per-question reviews, so a client can render a result
page without another lookup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# IELTS
# =============================================================================


@dataclass
class QuestionReview:
    question_id: int
    type: str
    question: str
    sub_questions: list[str]
    options: list[str]
    correct_answers: list[str]
    explanation: str | None

    # Answer
    raw_answer: str | None
    user_answers: list[str | None]
    is_correct: bool | list[bool]
    malformed: bool = False

    # Scoring
    correct_count: int = 0
    question_count: int = 1
    points: float = 1.0
    points_earned: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "type": self.type,
            "question": self.question,
            "sub_questions": self.sub_questions,
            "options": self.options,
            "correct_answers": self.correct_answers,
            "explanation": self.explanation,
            "raw_answer": self.raw_answer,
            "user_answers": self.user_answers,
            "is_correct": self.is_correct,
            "malformed": self.malformed,
            "correct_count": self.correct_count,
            "question_count": self.question_count,
            "points": self.points,
            "points_earned": self.points_earned,
        }


@dataclass
class SectionReview:
    section_id: int
    title: str
    order: int
    instructions: str = ""
    passage_text: str | None = None
    audio_url: str | None = None
    image_url: str | None = None
    questions: list[QuestionReview] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "section_id": self.section_id,
            "title": self.title,
            "order": self.order,
            "instructions": self.instructions,
            "passage_text": self.passage_text,
            "audio_url": self.audio_url,
            "image_url": self.image_url,
            "questions": [q.to_dict() for q in self.questions],
        }


@dataclass
class SubmissionResult:
    """
    Outcome of aggregating one submission.

    `score` is the band (0-9) derived from the ratio of correct positions.
    """

    test_id: int
    test_title: str
    skill: str
    level: str

    correct_count: int
    total_question_count: int
    score: float
    percentage: float
    points_earned: float
    total_points: float
    feedback: str

    sections: list[SectionReview] = field(default_factory=list)
    skipped_question_ids: list[int | str] = field(default_factory=list)

    @property
    def detailed_scores(self) -> dict[str, Any]:
        """Counters persisted alongside the submission."""
        return {
            "correct_count": self.correct_count,
            "total_questions": self.total_question_count,
            "percentage": self.percentage,
            "points_earned": self.points_earned,
            "total_points": self.total_points,
        }

    def question_reviews(self) -> list[QuestionReview]:
        return [q for section in self.sections for q in section.questions]

    def to_dict(self) -> dict[str, Any]:
        return {
            "test": {
                "id": self.test_id,
                "title": self.test_title,
                "skill": self.skill,
                "level": self.level,
            },
            "score": self.score,
            "feedback": self.feedback,
            **self.detailed_scores,
            "sections": [s.to_dict() for s in self.sections],
            "skipped_question_ids": self.skipped_question_ids,
        }


# =============================================================================
# Quiz
# =============================================================================


@dataclass
class QuizAnswerResult:
    question_id: int
    user_answer: str | None
    is_correct: bool
    points_earned: float
    needs_manual_grading: bool = False


@dataclass
class QuizResult:
    score: float
    total_points: float
    answers: list[QuizAnswerResult] = field(default_factory=list)
    skipped_question_ids: list[int | str] = field(default_factory=list)

    @property
    def needs_manual_grading(self) -> bool:
        return any(a.needs_manual_grading for a in self.answers)

    @property
    def percentage(self) -> float:
        if self.total_points <= 0:
            return 0.0
        return self.score / self.total_points * 100
