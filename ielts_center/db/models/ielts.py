"""
IELTS reading/listening test models.

Implements:
- IeltsTest: Test metadata, owned by its creator
- IeltsSection: Ordered part of a test (passage, audio, image)
- IeltsQuestion: Question group with optional sub-questions
- IeltsSubmission: One user's answers to one test
- IeltsAnswer: Per-question grading detail for a submission

Question groups store sub-questions and correct answers as index-aligned
JSON lists. A submission stores the raw answers keyed by question id
(as strings, since JSON object keys are strings).
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class IeltsTest(Base):
    __tablename__ = "ielts_tests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    instructions: Mapped[str] = mapped_column(Text, default="")

    # READING | LISTENING | WRITING | SPEAKING
    skill: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    # BEGINNER | INTERMEDIATE | ADVANCED
    level: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    time_limit: Mapped[int] = mapped_column(Integer, default=60)  # minutes

    created_by: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now()
    )

    # Relationships
    sections: Mapped[list[IeltsSection]] = relationship(
        back_populates="test",
        cascade="all, delete-orphan",
        order_by=lambda: [IeltsSection.order, IeltsSection.id],
    )
    submissions: Mapped[list[IeltsSubmission]] = relationship(
        back_populates="test",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<IeltsTest(id={self.id}, skill={self.skill}, title={self.title!r})>"

    @property
    def question_groups(self) -> list[IeltsQuestion]:
        return [q for section in self.sections for q in section.questions]


class IeltsSection(Base):
    __tablename__ = "ielts_sections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    test_id: Mapped[int] = mapped_column(
        ForeignKey("ielts_tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    instructions: Mapped[str] = mapped_column(Text, default="")
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Material
    passage_text: Mapped[str | None] = mapped_column(Text)
    audio_url: Mapped[str | None] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(Text)
    time_limit: Mapped[int] = mapped_column(Integer, default=20)  # minutes

    # Relationships
    test: Mapped[IeltsTest] = relationship(back_populates="sections")
    questions: Mapped[list[IeltsQuestion]] = relationship(
        back_populates="section",
        cascade="all, delete-orphan",
        order_by=lambda: [IeltsQuestion.order, IeltsQuestion.id],
    )

    def __repr__(self) -> str:
        return f"<IeltsSection(id={self.id}, test_id={self.test_id}, order={self.order})>"


class IeltsQuestion(Base):
    """
    A question group.

    Single-answer groups have no sub-questions and exactly one correct
    answer (or several for "choose N" questions). Grouped ones carry one
    correct answer per sub-question, at the same index:

        sub_questions:   ["Paragraph A", "Paragraph B"]
        correct_answers: ["iv", "ii"]
    """

    __tablename__ = "ielts_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    section_id: Mapped[int] = mapped_column(
        ForeignKey("ielts_sections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)

    sub_questions: Mapped[list] = mapped_column(JSON, default=list)
    options: Mapped[list] = mapped_column(JSON, default=list)
    correct_answers: Mapped[list] = mapped_column(JSON, default=list)

    points: Mapped[int] = mapped_column(Integer, default=1)
    explanation: Mapped[str | None] = mapped_column(Text)
    order: Mapped[int] = mapped_column(Integer, default=0)

    # Relationships
    section: Mapped[IeltsSection] = relationship(back_populates="questions")

    def __repr__(self) -> str:
        return f"<IeltsQuestion(id={self.id}, type={self.type}, sub_questions={len(self.sub_questions or [])})>"


class IeltsSubmission(Base):
    __tablename__ = "ielts_submissions"
    __table_args__ = (
        UniqueConstraint("test_id", "user_id", name="uq_ielts_submission_test_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    test_id: Mapped[int] = mapped_column(
        ForeignKey("ielts_tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    # {"<question id>": "<raw answer>"}
    answers: Mapped[dict] = mapped_column(JSON, default=dict)

    score: Mapped[float | None] = mapped_column(Float)  # band 0-9
    # {"correct_count", "total_questions", "percentage"}
    detailed_scores: Mapped[dict | None] = mapped_column(JSON)
    feedback: Mapped[str | None] = mapped_column(Text)

    # SUBMITTED | GRADED
    status: Mapped[str] = mapped_column(Text, default="SUBMITTED")
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())
    graded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    test: Mapped[IeltsTest] = relationship(back_populates="submissions")
    answer_details: Mapped[list[IeltsAnswer]] = relationship(
        back_populates="submission",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<IeltsSubmission(id={self.id}, test_id={self.test_id}, user_id={self.user_id}, score={self.score})>"


class IeltsAnswer(Base):
    __tablename__ = "ielts_answers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[int] = mapped_column(
        ForeignKey("ielts_submissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id: Mapped[int] = mapped_column(
        ForeignKey("ielts_questions.id", ondelete="CASCADE"), nullable=False
    )
    user_answer: Mapped[str | None] = mapped_column(Text)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    # One flag per sub-question for grouped questions
    sub_results: Mapped[list | None] = mapped_column(JSON)
    points_earned: Mapped[float] = mapped_column(Float, default=0.0)

    submission: Mapped[IeltsSubmission] = relationship(back_populates="answer_details")

    def __repr__(self) -> str:
        return f"<IeltsAnswer(question_id={self.question_id}, is_correct={self.is_correct})>"
