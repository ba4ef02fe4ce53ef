"""
Quiz models.

Implements:
- Quiz: Points-based quiz with a lifecycle (DRAFT -> ACTIVE -> CLOSED)
- QuizQuestion: One question with a single correct answer
- QuizSubmission: One user's attempt (single attempt per quiz)
- QuizAnswer: Per-question result of an attempt

Question Types:
- MULTIPLE_CHOICE: Answer is one of the options
- TRUE_FALSE: 'true' or 'false'
- FILL_BLANK: Free text, compared ignoring case and surrounding spaces
- ESSAY: Graded manually
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


class Quiz(Base):
    __tablename__ = "quizzes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    # DRAFT | ACTIVE | CLOSED
    status: Mapped[str] = mapped_column(Text, default="DRAFT")
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    time_limit: Mapped[int | None] = mapped_column(Integer)  # minutes

    created_by: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())

    # Denormalized statistics, refreshed on each submission
    total_submissions: Mapped[int] = mapped_column(Integer, default=0)
    average_score: Mapped[float] = mapped_column(Float, default=0.0)

    questions: Mapped[list[QuizQuestion]] = relationship(
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by=lambda: [QuizQuestion.order, QuizQuestion.id],
    )
    submissions: Mapped[list[QuizSubmission]] = relationship(
        back_populates="quiz",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Quiz(id={self.id}, status={self.status}, title={self.title!r})>"

    @property
    def total_points(self) -> float:
        return float(sum(q.points for q in self.questions))


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    quiz_id: Mapped[int] = mapped_column(
        ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list] = mapped_column(JSON, default=list)
    correct_answer: Mapped[str | None] = mapped_column(Text)
    points: Mapped[int] = mapped_column(Integer, default=1)
    explanation: Mapped[str | None] = mapped_column(Text)
    order: Mapped[int] = mapped_column(Integer, default=0)

    quiz: Mapped[Quiz] = relationship(back_populates="questions")

    def __repr__(self) -> str:
        return f"<QuizQuestion(id={self.id}, type={self.type})>"


class QuizSubmission(Base):
    __tablename__ = "quiz_submissions"
    __table_args__ = (
        UniqueConstraint("quiz_id", "user_id", name="uq_quiz_submission_quiz_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    quiz_id: Mapped[int] = mapped_column(
        ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    score: Mapped[float] = mapped_column(Float, default=0.0)
    total_points: Mapped[float] = mapped_column(Float, default=0.0)
    time_spent: Mapped[int | None] = mapped_column(Integer)  # seconds
    feedback: Mapped[str | None] = mapped_column(Text)

    # SUBMITTED | GRADED
    status: Mapped[str] = mapped_column(Text, default="SUBMITTED")
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())
    graded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    quiz: Mapped[Quiz] = relationship(back_populates="submissions")
    answers: Mapped[list[QuizAnswer]] = relationship(
        back_populates="submission",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<QuizSubmission(id={self.id}, quiz_id={self.quiz_id}, score={self.score}/{self.total_points})>"


class QuizAnswer(Base):
    __tablename__ = "quiz_answers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[int] = mapped_column(
        ForeignKey("quiz_submissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id: Mapped[int] = mapped_column(
        ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False
    )
    user_answer: Mapped[str | None] = mapped_column(Text)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    points_earned: Mapped[float] = mapped_column(Float, default=0.0)
    needs_manual_grading: Mapped[bool] = mapped_column(Boolean, default=False)

    submission: Mapped[QuizSubmission] = relationship(back_populates="answers")

    def __repr__(self) -> str:
        return f"<QuizAnswer(question_id={self.question_id}, is_correct={self.is_correct})>"
