"""
Request and response models.

Authoring models validate question shape with the registered grader for the
question type, so invalid question groups are rejected with 422 before they
reach the database.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ielts_center.grading import IELTS_QUESTION_TYPES, QUIZ_QUESTION_TYPES, QuestionType, get_grader


class Skill(str, Enum):
    READING = "READING"
    LISTENING = "LISTENING"
    WRITING = "WRITING"
    SPEAKING = "SPEAKING"


class Level(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class SubmissionStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    GRADED = "GRADED"


class QuizStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class WritingType(str, Enum):
    IELTS_TASK1 = "IELTS_TASK1"
    IELTS_TASK2 = "IELTS_TASK2"


def question_errors(question: Any) -> list[str]:
    """Authoring errors reported by the grader of the question's type."""
    grader = get_grader(question.type)
    if grader is None:
        return [f"Unsupported question type: {question.type}"]
    return grader.validate(question)


# ========================================
# IELTS Request Models
# ========================================


class QuestionCreate(BaseModel):
    """A question group. Correct answers align by index with sub-questions."""

    question: str = Field(..., min_length=1, description="Prompt shown above the group")
    type: QuestionType
    sub_questions: list[str] = Field(default_factory=list)
    options: list[str] = Field(default_factory=list)
    correct_answers: list[str] = Field(default_factory=list)
    points: int = Field(1, gt=0)
    explanation: str | None = None
    order: int = Field(0, ge=0)

    @field_validator("type")
    @classmethod
    def check_ielts_type(cls, value: QuestionType) -> QuestionType:
        if value not in IELTS_QUESTION_TYPES:
            raise ValueError(f"{value.value} is not an IELTS question type")
        return value

    @model_validator(mode="after")
    def check_shape(self) -> QuestionCreate:
        errors = question_errors(self)
        if errors:
            raise ValueError("; ".join(errors))
        return self


class QuestionUpdate(BaseModel):
    question: str | None = Field(None, min_length=1)
    type: QuestionType | None = None
    sub_questions: list[str] | None = None
    options: list[str] | None = None
    correct_answers: list[str] | None = None
    points: int | None = Field(None, gt=0)
    explanation: str | None = None
    order: int | None = Field(None, ge=0)

    @field_validator("type")
    @classmethod
    def check_ielts_type(cls, value: QuestionType | None) -> QuestionType | None:
        if value is not None and value not in IELTS_QUESTION_TYPES:
            raise ValueError(f"{value.value} is not an IELTS question type")
        return value


class SectionCreate(BaseModel):
    title: str = Field(..., min_length=1)
    instructions: str = ""
    order: int = Field(1, ge=1)
    passage_text: str | None = None
    audio_url: str | None = None
    image_url: str | None = None
    time_limit: int = Field(20, ge=1, le=300)
    questions: list[QuestionCreate] = Field(default_factory=list)


class SectionUpdate(BaseModel):
    title: str | None = Field(None, min_length=1)
    instructions: str | None = None
    order: int | None = Field(None, ge=1)
    passage_text: str | None = None
    audio_url: str | None = None
    image_url: str | None = None
    time_limit: int | None = Field(None, ge=1, le=300)


class TestCreate(BaseModel):
    __test__ = False  # not a pytest class

    title: str = Field(..., min_length=1)
    description: str = ""
    instructions: str = ""
    skill: Skill
    level: Level
    time_limit: int = Field(60, ge=1, le=300, description="Minutes")
    sections: list[SectionCreate] = Field(default_factory=list)


class TestUpdate(BaseModel):
    __test__ = False

    title: str | None = Field(None, min_length=1)
    description: str | None = None
    instructions: str | None = None
    skill: Skill | None = None
    level: Level | None = None
    time_limit: int | None = Field(None, ge=1, le=300)


RawAnswer = str | dict[str, Any] | list[Any] | None


class SubmissionCreate(BaseModel):
    """Answers keyed by question id. Grouped answers may be a JSON string or an object."""

    answers: dict[str, RawAnswer] = Field(default_factory=dict)


class RegradeRequest(BaseModel):
    score: float = Field(..., ge=0, le=9)
    feedback: str | None = None


# ========================================
# IELTS Response Models
# ========================================


class QuestionPublic(BaseModel):
    """Question as shown to a candidate (no answers)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    section_id: int
    question: str
    type: str
    sub_questions: list[str]
    options: list[str]
    points: int
    order: int


class QuestionResponse(QuestionPublic):
    correct_answers: list[str]
    explanation: str | None


class SectionPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    test_id: int
    title: str
    instructions: str
    order: int
    passage_text: str | None
    audio_url: str | None
    image_url: str | None
    time_limit: int
    questions: list[QuestionPublic]


class SectionResponse(SectionPublic):
    questions: list[QuestionResponse]


class TestSummary(BaseModel):
    __test__ = False

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    skill: str
    level: str
    time_limit: int
    created_by: int
    created_at: datetime | None


class TestPublic(TestSummary):
    instructions: str
    sections: list[SectionPublic]


class TestResponse(TestSummary):
    instructions: str
    sections: list[SectionResponse]


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    test_id: int
    user_id: int
    score: float | None
    detailed_scores: dict[str, Any] | None
    feedback: str | None
    status: str
    submitted_at: datetime | None
    graded_at: datetime | None


# ========================================
# Writing Models
# ========================================


class WritingTestCreate(BaseModel):
    title: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)
    type: WritingType
    level: Level
    image_url: str | None = None
    time_limit: int = Field(40, ge=1, le=300)


class WritingTestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    prompt: str
    type: str
    level: str
    image_url: str | None
    time_limit: int
    created_by: int
    created_at: datetime | None


class WritingSubmitRequest(BaseModel):
    content: str = Field(..., min_length=1)


class RubricScoreInput(BaseModel):
    task_response: float = Field(..., ge=0, le=9)
    coherence_and_cohesion: float = Field(..., ge=0, le=9)
    lexical_resource: float = Field(..., ge=0, le=9)
    grammatical_range: float = Field(..., ge=0, le=9)


class WritingFeedbackInput(BaseModel):
    general: str = ""
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class WritingGradeRequest(BaseModel):
    score: RubricScoreInput
    feedback: WritingFeedbackInput = Field(default_factory=WritingFeedbackInput)


class WritingSubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    test_id: int
    user_id: int
    content: str
    word_count: int
    status: str
    human_score: dict[str, float] | None
    ai_score: dict[str, float] | None
    submitted_at: datetime | None
    graded_at: datetime | None


# ========================================
# Quiz Models
# ========================================


class QuizQuestionCreate(BaseModel):
    question: str = Field(..., min_length=1)
    type: QuestionType
    options: list[str] = Field(default_factory=list)
    correct_answer: str | None = None
    points: int = Field(1, gt=0)
    explanation: str | None = None
    order: int = Field(0, ge=0)

    # Grader view: one correct answer, never sub-questions
    @property
    def correct_answers(self) -> list[str]:
        return [self.correct_answer] if self.correct_answer is not None else []

    @property
    def sub_questions(self) -> list[str]:
        return []

    @field_validator("type")
    @classmethod
    def check_quiz_type(cls, value: QuestionType) -> QuestionType:
        if value not in QUIZ_QUESTION_TYPES:
            raise ValueError(f"{value.value} is not a quiz question type")
        return value

    @model_validator(mode="after")
    def check_shape(self) -> QuizQuestionCreate:
        errors = question_errors(self)
        if (
            self.type == QuestionType.MULTIPLE_CHOICE
            and self.correct_answer is not None
            and self.correct_answer not in self.options
        ):
            errors.append("Correct answer must be one of the options")
        if errors:
            raise ValueError("; ".join(errors))
        return self


class QuizCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    deadline: datetime | None = None
    time_limit: int | None = Field(None, ge=1, le=300)
    status: QuizStatus = QuizStatus.DRAFT
    questions: list[QuizQuestionCreate] = Field(default_factory=list)


class QuizStatusUpdate(BaseModel):
    status: QuizStatus


class QuizSubmitRequest(BaseModel):
    answers: dict[str, str | None] = Field(default_factory=dict)
    time_spent: int | None = Field(None, ge=0, description="Seconds")


class QuizGradeRequest(BaseModel):
    score: float = Field(..., ge=0)
    feedback: str | None = None


class QuizQuestionPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question: str
    type: str
    options: list[str]
    points: int
    order: int


class QuizQuestionResponse(QuizQuestionPublic):
    correct_answer: str | None
    explanation: str | None


class QuizSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    status: str
    deadline: datetime | None
    time_limit: int | None
    created_by: int
    total_submissions: int
    average_score: float


class QuizPublic(QuizSummary):
    questions: list[QuizQuestionPublic]


class QuizResponse(QuizSummary):
    questions: list[QuizQuestionResponse]


class QuizAnswerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: int
    user_answer: str | None
    is_correct: bool
    points_earned: float
    needs_manual_grading: bool


class QuizSubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    quiz_id: int
    user_id: int
    score: float
    total_points: float
    time_spent: int | None
    feedback: str | None
    status: str
    submitted_at: datetime | None
    graded_at: datetime | None
    answers: list[QuizAnswerResponse]
