"""
IELTS writing scoring.

A writing submission is scored on the four public band descriptors:

- Task Response (Task Achievement for Task 1)
- Coherence and Cohesion
- Lexical Resource
- Grammatical Range and Accuracy

The overall band is the mean of the four. Teacher and automated scores are
kept side by side; the teacher's score is the one displayed when present.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

MAX_BAND = 9.0

LINKING_WORDS = ("however", "therefore", "furthermore", "moreover", "in addition")
STRUCTURE_MARKERS = ("introduction", "in conclusion")


def count_words(text: str) -> int:
    return len(text.split())


@dataclass(frozen=True)
class RubricScore:
    task_response: float
    coherence_and_cohesion: float
    lexical_resource: float
    grammatical_range: float

    def __post_init__(self) -> None:
        for name, value in self.criteria().items():
            if not 0 <= value <= MAX_BAND:
                raise ValueError(f"{name} must be between 0 and {MAX_BAND:g}, got {value}")

    def criteria(self) -> dict[str, float]:
        return {
            "task_response": self.task_response,
            "coherence_and_cohesion": self.coherence_and_cohesion,
            "lexical_resource": self.lexical_resource,
            "grammatical_range": self.grammatical_range,
        }

    @property
    def overall(self) -> float:
        values = self.criteria().values()
        return sum(values) / len(values)

    def to_dict(self) -> dict[str, float]:
        return {**self.criteria(), "overall": self.overall}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RubricScore | None:
        if not data:
            return None
        return cls(
            task_response=float(data["task_response"]),
            coherence_and_cohesion=float(data["coherence_and_cohesion"]),
            lexical_resource=float(data["lexical_resource"]),
            grammatical_range=float(data["grammatical_range"]),
        )


@dataclass
class WritingFeedback:
    general: str
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> WritingFeedback | None:
        if not data:
            return None
        return cls(
            general=data.get("general", ""),
            strengths=list(data.get("strengths", [])),
            improvements=list(data.get("improvements", [])),
            suggestions=list(data.get("suggestions", [])),
        )


@dataclass
class WritingAssessment:
    score: RubricScore
    feedback: WritingFeedback


@dataclass
class WritingReview:
    """Both scores of a writing submission; `displayed_score` prefers the teacher's."""

    word_count: int
    human_score: RubricScore | None = None
    human_feedback: WritingFeedback | None = None
    ai_score: RubricScore | None = None
    ai_feedback: WritingFeedback | None = None

    @property
    def displayed_score(self) -> RubricScore | None:
        return self.human_score if self.human_score is not None else self.ai_score

    @property
    def displayed_feedback(self) -> WritingFeedback | None:
        if self.human_score is not None:
            return self.human_feedback
        return self.ai_feedback

    @property
    def source(self) -> str | None:
        if self.human_score is not None:
            return "human"
        if self.ai_score is not None:
            return "ai"
        return None

    def to_dict(self) -> dict[str, Any]:
        displayed = self.displayed_score
        feedback = self.displayed_feedback
        return {
            "word_count": self.word_count,
            "score": displayed.to_dict() if displayed else None,
            "overall": displayed.overall if displayed else None,
            "feedback": feedback.to_dict() if feedback else None,
            "source": self.source,
            "human_score": self.human_score.to_dict() if self.human_score else None,
            "human_feedback": self.human_feedback.to_dict() if self.human_feedback else None,
            "ai_score": self.ai_score.to_dict() if self.ai_score else None,
            "ai_feedback": self.ai_feedback.to_dict() if self.ai_feedback else None,
        }


class WritingAssessor(Protocol):
    """Produces an automated rubric score for an essay."""

    def assess(self, content: str, min_words: int) -> WritingAssessment:
        ...


class HeuristicWritingAssessor:
    """
    Surface-feature estimate of the four criteria.

    Every criterion starts at band 5 and earns increments for length against
    the task minimum, paragraphing, linking words, lexical variety and
    sentence count/length. Criteria are capped at 9.
    """

    base_band = 5.0

    def assess(self, content: str, min_words: int) -> WritingAssessment:
        text = content.lower()
        words = content.split()
        word_count = len(words)
        paragraphs = [p for p in content.split("\n\n") if p.strip()]
        sentences = [s for s in re.split(r"[.!?]+", content) if s.strip()]
        unique_words = {w.strip(".,;:!?\"'()").lower() for w in words}
        variety = len(unique_words) / word_count if word_count else 0.0
        avg_sentence_length = word_count / len(sentences) if sentences else 0.0
        has_linking = any(word in text for word in LINKING_WORDS)

        task = self.base_band
        if word_count >= min_words:
            task += 1
        if word_count >= min_words * 1.2:
            task += 0.5
        if any(marker in text for marker in STRUCTURE_MARKERS):
            task += 0.5

        coherence = self.base_band
        if len(paragraphs) >= 3:
            coherence += 1
        if has_linking:
            coherence += 1

        lexical = self.base_band
        if variety > 0.6:
            lexical += 1.5
        elif variety > 0.5:
            lexical += 1

        grammar = self.base_band
        if len(sentences) > 10:
            grammar += 1
        if avg_sentence_length > 15:
            grammar += 0.5

        score = RubricScore(
            task_response=min(task, MAX_BAND),
            coherence_and_cohesion=min(coherence, MAX_BAND),
            lexical_resource=min(lexical, MAX_BAND),
            grammatical_range=min(grammar, MAX_BAND),
        )
        feedback = self._feedback(
            score,
            word_count=word_count,
            min_words=min_words,
            paragraph_count=len(paragraphs),
            has_linking=has_linking,
            variety=variety,
        )
        return WritingAssessment(score=score, feedback=feedback)

    def _feedback(
        self,
        score: RubricScore,
        *,
        word_count: int,
        min_words: int,
        paragraph_count: int,
        has_linking: bool,
        variety: float,
    ) -> WritingFeedback:
        overall = round(score.overall, 1)
        if overall >= 8:
            general = "Excellent writing! You demonstrate strong command of English."
        elif overall >= 7:
            general = "Good writing with clear ideas and appropriate language use."
        elif overall >= 6:
            general = "Competent writing, but there is room for improvement."
        else:
            general = "Your writing needs improvement in several areas."

        strengths: list[str] = []
        improvements: list[str] = []
        suggestions: list[str] = []

        if word_count >= min_words:
            strengths.append("Meets the minimum word count requirement")
        else:
            improvements.append(f"Write at least {min_words} words (currently {word_count})")
            suggestions.append("Develop each main idea with an explanation and an example")

        if paragraph_count >= 3:
            strengths.append("Clear paragraph structure")
        else:
            improvements.append("Organize the essay into an introduction, body paragraphs and a conclusion")

        if has_linking:
            strengths.append("Uses linking words to connect ideas")
        else:
            suggestions.append("Use linking words such as 'however', 'therefore' and 'moreover'")

        if variety > 0.6:
            strengths.append("Good range of vocabulary")
        else:
            suggestions.append("Avoid repeating the same words; use synonyms and paraphrasing")

        return WritingFeedback(
            general=general,
            strengths=strengths,
            improvements=improvements,
            suggestions=suggestions,
        )


def review_writing(submission: Any) -> WritingReview:
    """Build the review of a stored writing submission."""
    return WritingReview(
        word_count=submission.word_count,
        human_score=RubricScore.from_dict(submission.human_score),
        human_feedback=WritingFeedback.from_dict(submission.human_feedback),
        ai_score=RubricScore.from_dict(submission.ai_score),
        ai_feedback=WritingFeedback.from_dict(submission.ai_feedback),
    )
