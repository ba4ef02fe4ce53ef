"""
IELTS writing models.

A writing submission keeps the teacher's rubric score and the automated
assessment side by side; neither overwrites the other.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class WritingTest(Base):
    __tablename__ = "writing_tests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    # IELTS_TASK1 | IELTS_TASK2
    type: Mapped[str] = mapped_column(Text, nullable=False)
    level: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text)
    time_limit: Mapped[int] = mapped_column(Integer, default=40)  # minutes

    created_by: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())

    submissions: Mapped[list[WritingSubmission]] = relationship(
        back_populates="test",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<WritingTest(id={self.id}, type={self.type})>"


class WritingSubmission(Base):
    __tablename__ = "writing_submissions"
    __table_args__ = (
        UniqueConstraint("test_id", "user_id", name="uq_writing_submission_test_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    test_id: Mapped[int] = mapped_column(
        ForeignKey("writing_tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    word_count: Mapped[int] = mapped_column(Integer, default=0)

    # Rubric: {"task_response", "coherence_and_cohesion", "lexical_resource",
    #          "grammatical_range", "overall"}
    human_score: Mapped[dict | None] = mapped_column(JSON)
    human_feedback: Mapped[dict | None] = mapped_column(JSON)
    ai_score: Mapped[dict | None] = mapped_column(JSON)
    ai_feedback: Mapped[dict | None] = mapped_column(JSON)

    # SUBMITTED | GRADED
    status: Mapped[str] = mapped_column(Text, default="SUBMITTED")
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())
    graded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    test: Mapped[WritingTest] = relationship(back_populates="submissions")

    def __repr__(self) -> str:
        return f"<WritingSubmission(id={self.id}, test_id={self.test_id}, user_id={self.user_id}, status={self.status})>"
