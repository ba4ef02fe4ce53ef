# SQLAlchemy models
from .base import Base
from .ielts import (
    IeltsAnswer,
    IeltsQuestion,
    IeltsSection,
    IeltsSubmission,
    IeltsTest,
)
from .quiz import (
    Quiz,
    QuizAnswer,
    QuizQuestion,
    QuizSubmission,
)
from .writing import (
    WritingSubmission,
    WritingTest,
)

__all__ = [
    # Base
    "Base",
    # IELTS reading / listening
    "IeltsTest",
    "IeltsSection",
    "IeltsQuestion",
    "IeltsSubmission",
    "IeltsAnswer",
    # Writing
    "WritingTest",
    "WritingSubmission",
    # Quiz
    "Quiz",
    "QuizQuestion",
    "QuizSubmission",
    "QuizAnswer",
]
