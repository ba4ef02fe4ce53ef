"""
Immutable test definitions consumed by the aggregator.

ORM rows are converted once with `from_model()`; everything downstream works
on these plain dataclasses, so scoring never touches a database session.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class QuestionDefinition:
    id: int
    type: str
    question: str = ""
    sub_questions: tuple[str, ...] = ()
    options: tuple[str, ...] = ()
    correct_answers: tuple[str, ...] = ()
    points: float = 1.0
    explanation: str | None = None
    order: int = 0

    @property
    def is_grouped(self) -> bool:
        return bool(self.sub_questions)

    @property
    def question_count(self) -> int:
        """Number of gradable positions: one per sub-question, else one."""
        return len(self.sub_questions) or 1

    @classmethod
    def from_model(cls, row: Any) -> QuestionDefinition:
        return cls(
            id=row.id,
            type=row.type,
            question=row.question,
            sub_questions=tuple(row.sub_questions or ()),
            options=tuple(row.options or ()),
            correct_answers=tuple(row.correct_answers or ()),
            points=float(row.points if row.points is not None else 1),
            explanation=row.explanation,
            order=row.order or 0,
        )

    @classmethod
    def from_quiz_model(cls, row: Any) -> QuestionDefinition:
        """Quiz questions hold one correct answer and never sub-questions."""
        return cls(
            id=row.id,
            type=row.type,
            question=row.question,
            options=tuple(row.options or ()),
            correct_answers=(row.correct_answer,) if row.correct_answer is not None else (),
            points=float(row.points if row.points is not None else 1),
            explanation=row.explanation,
            order=row.order or 0,
        )


@dataclass(frozen=True)
class SectionDefinition:
    id: int
    title: str
    order: int = 1
    instructions: str = ""
    passage_text: str | None = None
    audio_url: str | None = None
    image_url: str | None = None
    questions: tuple[QuestionDefinition, ...] = ()

    def ordered_questions(self) -> list[QuestionDefinition]:
        # sorted() is stable, so equal orders keep their stored order
        return sorted(self.questions, key=lambda q: q.order)

    @classmethod
    def from_model(cls, row: Any) -> SectionDefinition:
        return cls(
            id=row.id,
            title=row.title,
            order=row.order,
            instructions=row.instructions or "",
            passage_text=row.passage_text,
            audio_url=row.audio_url,
            image_url=row.image_url,
            questions=tuple(QuestionDefinition.from_model(q) for q in row.questions),
        )


@dataclass(frozen=True)
class TestDefinition:
    id: int
    title: str
    skill: str
    level: str = ""
    description: str = ""
    time_limit: int = 60
    sections: tuple[SectionDefinition, ...] = field(default_factory=tuple)

    __test__ = False  # not a pytest class

    def ordered_sections(self) -> list[SectionDefinition]:
        return sorted(self.sections, key=lambda s: s.order)

    def questions(self) -> Iterable[QuestionDefinition]:
        for section in self.ordered_sections():
            yield from section.ordered_questions()

    @classmethod
    def from_model(cls, row: Any) -> TestDefinition:
        return cls(
            id=row.id,
            title=row.title,
            skill=row.skill,
            level=row.level,
            description=row.description or "",
            time_limit=row.time_limit,
            sections=tuple(SectionDefinition.from_model(s) for s in row.sections),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestDefinition:
        """Build a definition from a plain mapping (CLI scoring files)."""
        sections = []
        for s_index, section in enumerate(data.get("sections", []), start=1):
            questions = []
            for q_index, question in enumerate(section.get("questions", [])):
                questions.append(QuestionDefinition(
                    id=int(question["id"]),
                    type=question["type"],
                    question=question.get("question", ""),
                    sub_questions=tuple(question.get("sub_questions") or ()),
                    options=tuple(question.get("options") or ()),
                    correct_answers=tuple(question.get("correct_answers") or ()),
                    points=float(question.get("points", 1)),
                    explanation=question.get("explanation"),
                    order=question.get("order", q_index),
                ))
            sections.append(SectionDefinition(
                id=int(section.get("id", s_index)),
                title=section.get("title", f"Section {s_index}"),
                order=section.get("order", s_index),
                instructions=section.get("instructions", ""),
                passage_text=section.get("passage_text"),
                audio_url=section.get("audio_url"),
                image_url=section.get("image_url"),
                questions=tuple(questions),
            ))
        return cls(
            id=int(data.get("id", 0)),
            title=data.get("title", ""),
            skill=data.get("skill", "READING"),
            level=data.get("level", ""),
            description=data.get("description", ""),
            time_limit=data.get("time_limit", 60),
            sections=tuple(sections),
        )
