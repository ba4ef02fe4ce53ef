"""
Service layer: business operations over a SQLAlchemy session.
"""

from .ielts_service import IeltsService
from .quiz_service import QuizService
from .writing_service import WritingService

__all__ = ["IeltsService", "QuizService", "WritingService"]
